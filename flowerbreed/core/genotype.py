"""Bit-packed genotype codes.

Each gene occupies two bits of the code:
- 0 == 0b00 is homozygous recessive (rr)
- 1 == 0b01 is heterozygous (Rr)
- 2 == 0b10 is homozygous dominant (RR)
- 3 == 0b11 is unused

Up to four genes are supported, so every code fits in a single byte.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from flowerbreed.utils.validation import ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from flowerbreed.core.distribution import GeneticDistribution

MAX_GENES = 4
GENOTYPE_SPACE = 1 << (2 * MAX_GENES)

RECESSIVE = 0
HETEROZYGOUS = 1
DOMINANT = 2


class Genotype(int):
    """Immutable genotype code."""

    __slots__ = ()

    def __new__(cls, code: int) -> "Genotype":
        code = int(code)
        if not 0 <= code < GENOTYPE_SPACE:
            raise ValidationError("bad_genotype_code", f"Genotype code out of range: {code}", genotype=code)
        for locus in range(MAX_GENES):
            if (code >> (2 * locus)) & 0b11 == 0b11:
                raise ValidationError("bad_genotype_code", "Genotype code uses reserved zygosity 3",
                                      genotype=code, locus=locus)
        return super().__new__(cls, code)

    @classmethod
    def from_genes(cls, genes: "list[int] | tuple[int, ...]") -> "Genotype":
        if len(genes) > MAX_GENES:
            raise ValidationError("too_many_genes", f"At most {MAX_GENES} genes are supported", genes=tuple(genes))
        code = 0
        for locus, zygosity in enumerate(genes):
            if zygosity not in (RECESSIVE, HETEROZYGOUS, DOMINANT):
                raise ValidationError("bad_zygosity", f"Invalid zygosity {zygosity}", locus=locus)
            code |= zygosity << (2 * locus)
        return cls(code)

    def gene(self, locus: int) -> int:
        return (int(self) >> (2 * locus)) & 0b11

    def genes(self, count: int = MAX_GENES) -> tuple[int, ...]:
        return tuple(self.gene(i) for i in range(count))

    def to_distribution(self) -> "GeneticDistribution":
        from flowerbreed.core.distribution import GeneticDistribution

        return GeneticDistribution.from_weights({self: 1})

    def __repr__(self) -> str:
        return f"Genotype({int(self):#010b})"


def is_valid_code(code: int) -> bool:
    if not 0 <= code < GENOTYPE_SPACE:
        return False
    return all((code >> (2 * locus)) & 0b11 != 0b11 for locus in range(MAX_GENES))


__all__ = [
    "Genotype",
    "GENOTYPE_SPACE",
    "MAX_GENES",
    "RECESSIVE",
    "HETEROZYGOUS",
    "DOMINANT",
    "is_valid_code",
]
