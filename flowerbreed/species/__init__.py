"""Species tables and genotype spelling."""

from .serde import GenotypeSerde  # noqa: F401
from .species import SPECIES_NAMES, Species, get_species  # noqa: F401

__all__ = [
    'GenotypeSerde',
    'Species',
    'SPECIES_NAMES',
    'get_species',
]
