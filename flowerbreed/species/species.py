"""Species: an immutable genotype -> phenotype lookup plus its genotype spelling."""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import lru_cache
from types import MappingProxyType
from typing import Mapping

from flowerbreed.core.distribution import GeneticDistribution
from flowerbreed.core.genotype import Genotype
from flowerbreed.species.serde import GenotypeSerde
from flowerbreed.species.tables import SPECIES_TABLES
from flowerbreed.utils.validation import ValidationError

_EXPECTED_ENTRIES = {3: 27, 4: 81}


@dataclass(frozen=True)
class Species:
    """A flower species, e.g. Roses.

    Attributes:
        name: Human-readable species name
        serde: Gene spelling; also determines the gene count
        table: Read-only mapping from genotype code to phenotype label
    """

    name: str
    serde: GenotypeSerde
    table: Mapping[int, str] = field(repr=False, hash=False)

    @classmethod
    def from_table(cls, name: str, phenotypes: Mapping[str, str]) -> "Species":
        if not phenotypes:
            raise ValidationError("empty_species_table", "Species table has no entries", species=name)
        serde: GenotypeSerde | None = None
        table: dict[int, str] = {}
        for genotype_str, phenotype in phenotypes.items():
            if serde is None:
                serde = GenotypeSerde.from_example(genotype_str)
            g = serde.parse_genotype(genotype_str)
            if int(g) in table:
                raise ValidationError("duplicate_genotype", f"Genotype {genotype_str!r} listed twice",
                                      species=name)
            table[int(g)] = phenotype
        assert serde is not None
        expected = _EXPECTED_ENTRIES.get(serde.gene_count)
        if expected is None or len(table) != expected:
            raise ValidationError("incomplete_species_table",
                                  f"Got {len(table)} phenotypes, expected {expected}",
                                  species=name, gene_count=serde.gene_count)
        return cls(name=name, serde=serde, table=MappingProxyType(table))

    @property
    def gene_count(self) -> int:
        return self.serde.gene_count

    def phenotype(self, genotype: int) -> str:
        try:
            return self.table[int(genotype)]
        except KeyError:
            raise ValidationError("unknown_genotype", f"Genotype {int(genotype):#010b} is not part of {self.name}",
                                  species=self.name) from None

    def phenotypes(self) -> list[str]:
        """Distinct phenotype labels, sorted."""
        return sorted(set(self.table.values()))

    def all_phenotype(self, d: GeneticDistribution, phenotype: str) -> bool:
        """True if every genotype with nonzero weight in ``d`` shows ``phenotype``."""
        return not d.is_zero() and all(self.phenotype(g) == phenotype for g in d.support())

    def parse_genotype(self, genotype: str) -> Genotype:
        return self.serde.parse_genotype(genotype)

    def render_genotype(self, genotype: int) -> str:
        return self.serde.render_genotype(genotype)

    def parse_distribution(self, text: str) -> GeneticDistribution:
        return self.serde.parse_distribution(text)

    def render_distribution(self, d: GeneticDistribution) -> str:
        return self.serde.render_distribution(d)


SPECIES_NAMES: tuple[str, ...] = tuple(SPECIES_TABLES)


@lru_cache(maxsize=None)
def _builtin(name: str) -> Species:
    return Species.from_table(name, SPECIES_TABLES[name])


def get_species(name: str) -> Species:
    """Look up a built-in species by name (case-insensitive)."""
    for known in SPECIES_NAMES:
        if known.lower() == name.strip().lower():
            return _builtin(known)
    raise ValidationError("unknown_species", f"Unknown species {name!r}", known=SPECIES_NAMES)


__all__ = ["Species", "SPECIES_NAMES", "get_species"]
