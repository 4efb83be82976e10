"""Exact integer-weighted distributions over genotypes and the breeding combinator.

A GeneticDistribution maps every genotype code to a nonnegative integer weight.
Distributions produced by the engine are kept in lowest terms (the nonzero
weights share no common divisor greater than 1) so that two equal
distributions always compare and hash equal. The all-zero value is reserved as
an "invalid" sentinel and is never a genuine breeding outcome.
"""

from __future__ import annotations

import math
from functools import lru_cache
from typing import Callable, Iterable, Iterator, Mapping

from flowerbreed.core.genotype import GENOTYPE_SPACE, MAX_GENES, Genotype, is_valid_code
from flowerbreed.utils.validation import ValidationError

# PUNNETT_SQUARE[a][b][c] is the relative frequency of offspring zygosity c
# when crossing parental zygosities a and b at a single locus.
PUNNETT_SQUARE: tuple[tuple[tuple[int, int, int], ...], ...] = (
    # a == 0 (rr)
    (
        (4, 0, 0),
        (2, 2, 0),
        (0, 4, 0),
    ),
    # a == 1 (Rr)
    (
        (2, 2, 0),
        (1, 2, 1),
        (0, 2, 2),
    ),
    # a == 2 (RR)
    (
        (0, 4, 0),
        (0, 2, 2),
        (0, 0, 4),
    ),
)


class GeneticDistribution:
    """Immutable value: a 256-entry tuple of integer weights indexed by genotype code."""

    __slots__ = ("_weights", "_hash", "_support")

    def __init__(self, weights: Iterable[int]) -> None:
        values = tuple(weights)
        if len(values) != GENOTYPE_SPACE:
            raise ValidationError("bad_distribution_size",
                                  f"Expected {GENOTYPE_SPACE} weights, got {len(values)}",
                                  size=len(values))
        for code, w in enumerate(values):
            if not isinstance(w, int) or isinstance(w, bool) or w < 0:
                raise ValidationError("bad_weight", "Weights must be nonnegative integers",
                                      genotype=code, weight=w)
            if w and not is_valid_code(code):
                raise ValidationError("bad_weight", "Nonzero weight on reserved genotype code", genotype=code)
        self._init(values)

    def _init(self, values: tuple[int, ...]) -> None:
        self._weights = values
        self._hash = hash(values)
        self._support = tuple(Genotype(code) for code, w in enumerate(values) if w)

    @classmethod
    def _trusted(cls, values: tuple[int, ...]) -> "GeneticDistribution":
        # Skips validation; used on engine-internal paths that cannot produce bad weights.
        obj = cls.__new__(cls)
        obj._init(values)
        return obj

    @classmethod
    def zero(cls) -> "GeneticDistribution":
        return _ZERO

    @classmethod
    def from_weights(cls, weights: Mapping[int, int]) -> "GeneticDistribution":
        """Build a reduced distribution from a sparse ``{genotype: weight}`` mapping."""
        values = [0] * GENOTYPE_SPACE
        for g, w in weights.items():
            code = int(Genotype(g))
            values[code] = w
        return cls(values).reduce()

    # Accessors

    @property
    def weights(self) -> tuple[int, ...]:
        return self._weights

    def weight(self, genotype: int) -> int:
        return self._weights[int(genotype)]

    def support(self) -> tuple[Genotype, ...]:
        """Genotypes with nonzero weight, in code order."""
        return self._support

    def items(self) -> Iterator[tuple[Genotype, int]]:
        for g in self._support:
            yield g, self._weights[g]

    def total(self) -> int:
        return sum(self._weights[g] for g in self._support)

    def is_zero(self) -> bool:
        return not self._support

    def filtered(self, keep: Callable[[Genotype], bool]) -> "GeneticDistribution":
        """Zero every genotype for which ``keep`` is false. The result is not reduced."""
        values = list(self._weights)
        for g in self._support:
            if not keep(g):
                values[g] = 0
        return GeneticDistribution._trusted(tuple(values))

    # Arithmetic

    def reduce(self) -> "GeneticDistribution":
        return reduce(self)

    def breed(self, other: "GeneticDistribution") -> "GeneticDistribution":
        return breed(self, other)

    # Value semantics

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, GeneticDistribution):
            return NotImplemented
        return self._hash == other._hash and self._weights == other._weights

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        terms = ", ".join(f"{int(g):#010b}: {w}" for g, w in self.items())
        return f"GeneticDistribution({{{terms}}})"


_ZERO = GeneticDistribution._trusted((0,) * GENOTYPE_SPACE)


def reduce(d: GeneticDistribution) -> GeneticDistribution:
    """Divide every weight by the GCD of the nonzero weights.

    Idempotent. Returns ``d`` itself when it is already in lowest terms or is
    the zero sentinel.
    """
    support = d.support()
    if not support:
        return d
    weights = d.weights
    divisor = math.gcd(*(weights[g] for g in support))
    if divisor == 1:
        return d
    return GeneticDistribution._trusted(tuple(w // divisor for w in weights))


@lru_cache(maxsize=None)
def offspring(ga: int, gb: int) -> tuple[tuple[int, int], ...]:
    """Offspring ``(genotype code, relative weight)`` pairs for a cross of two genotypes.

    Loci assort independently, so the weight of a child is the product of the
    per-locus Punnett frequencies.
    """
    children: list[tuple[int, int]] = [(0, 1)]
    for locus in range(MAX_GENES):
        shift = 2 * locus
        row = PUNNETT_SQUARE[(ga >> shift) & 0b11][(gb >> shift) & 0b11]
        children = [
            (code | (zygosity << shift), weight * freq)
            for code, weight in children
            for zygosity, freq in enumerate(row)
            if freq
        ]
    return tuple(children)


def breed(a: GeneticDistribution, b: GeneticDistribution) -> GeneticDistribution:
    """Cross two distributions. Commutative; the result is in lowest terms."""
    values = [0] * GENOTYPE_SPACE
    wa, wb = a.weights, b.weights
    for ga in a.support():
        pa = wa[ga]
        for gb in b.support():
            scale = pa * wb[gb]
            for child, weight in offspring(int(ga), int(gb)):
                values[child] += scale * weight
    rslt = GeneticDistribution._trusted(tuple(values))
    assert a.is_zero() or b.is_zero() or not rslt.is_zero(), "breeding two real distributions produced nothing"
    return reduce(rslt)


__all__ = [
    "GeneticDistribution",
    "PUNNETT_SQUARE",
    "breed",
    "offspring",
    "reduce",
]
