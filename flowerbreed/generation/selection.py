"""Selection tests applied to the offspring of a cross.

A Test filters a distribution and reports the expected number of breeding
attempts needed to obtain a passing individual. A Test that cannot be applied
(nothing would pass) returns INAPPLICABLE, which the graph silently prunes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fractions import Fraction
from itertools import combinations
from typing import Callable, Iterable, Optional

from flowerbreed.core.distribution import GeneticDistribution
from flowerbreed.species.species import Species

INAPPLICABLE = None


@dataclass(frozen=True)
class TestResult:
    """Filtered distribution plus the expected cost of obtaining it."""

    __test__ = False

    distribution: GeneticDistribution
    cost: Fraction


@dataclass(frozen=True, eq=False)
class Test:
    """Named selection strategy.

    Attributes:
        name: Label used when rendering edges (empty for NO_TEST)
        priority: Tie-break between equal-cost candidates; smaller is preferred
        fn: Pure function distribution -> TestResult | INAPPLICABLE
    """

    __test__ = False

    name: str
    priority: int
    fn: Callable[[GeneticDistribution], Optional[TestResult]] = field(repr=False)

    def apply(self, d: GeneticDistribution) -> Optional[TestResult]:
        return self.fn(d)


def _accept_all(d: GeneticDistribution) -> TestResult:
    return TestResult(d, Fraction(1))


NO_TEST = Test("", 0, _accept_all)


def phenotype_test(species: Species, allowed: Iterable[str]) -> Test:
    """Keep only offspring whose phenotype is in ``allowed``.

    Cost is total weight / surviving weight. Priority is the number of allowed
    phenotypes.
    """
    labels = list(dict.fromkeys(allowed))
    allowed_set = frozenset(labels)
    allowed_codes = frozenset(code for code, phenotype in species.table.items() if phenotype in allowed_set)

    def run(d: GeneticDistribution) -> Optional[TestResult]:
        survivors = d.filtered(allowed_codes.__contains__)
        passed = survivors.total()
        if passed == 0:
            return INAPPLICABLE
        return TestResult(survivors.reduce(), Fraction(d.total(), passed))

    return Test(f"P∈{{{','.join(labels)}}}", len(labels), run)


def phenotype_tests_up_to_size(species: Species, max_size: int) -> list[Test]:
    """One phenotype test per non-empty phenotype subset of size 1..max_size."""
    phenotypes = species.phenotypes()
    max_size = min(int(max_size), len(phenotypes))
    tests: list[Test] = []
    for size in range(1, max_size + 1):
        for subset in combinations(phenotypes, size):
            tests.append(phenotype_test(species, subset))
    return tests


def phenotype_tests(species: Species) -> list[Test]:
    """All proper non-empty phenotype subsets.

    The full set is left out: it keeps everything, like NO_TEST, with a worse
    priority.
    """
    return phenotype_tests_up_to_size(species, len(species.phenotypes()) - 1)


def default_tests(species: Species, config: dict | None = None) -> list[Test]:
    config = config or {}
    tests: list[Test] = []
    if config.get('include_no_test', True):
        tests.append(NO_TEST)
    max_size = config.get('max_test_subset_size')
    if max_size is None:
        tests.extend(phenotype_tests(species))
    else:
        tests.extend(phenotype_tests_up_to_size(species, int(max_size)))
    return tests


__all__ = [
    "INAPPLICABLE",
    "NO_TEST",
    "Test",
    "TestResult",
    "default_tests",
    "phenotype_test",
    "phenotype_tests",
    "phenotype_tests_up_to_size",
]
