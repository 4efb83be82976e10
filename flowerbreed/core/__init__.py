"""Core genetic arithmetic for flowerbreed."""

from .distribution import PUNNETT_SQUARE, GeneticDistribution, breed, offspring, reduce  # noqa: F401
from .genotype import (  # noqa: F401
    DOMINANT,
    GENOTYPE_SPACE,
    HETEROZYGOUS,
    MAX_GENES,
    RECESSIVE,
    Genotype,
)

__all__ = [
    'Genotype',
    'GeneticDistribution',
    'breed',
    'reduce',
    'offspring',
    'PUNNETT_SQUARE',
    'GENOTYPE_SPACE',
    'MAX_GENES',
    'RECESSIVE',
    'HETEROZYGOUS',
    'DOMINANT',
]
