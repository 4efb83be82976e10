from fractions import Fraction
from itertools import combinations

from flowerbreed.core.distribution import breed
from flowerbreed.generation.selection import (
    INAPPLICABLE,
    NO_TEST,
    default_tests,
    phenotype_test,
    phenotype_tests,
    phenotype_tests_up_to_size,
)
from flowerbreed.species import get_species


def _white_hyacinth_selfed():
    hyacinths = get_species("Hyacinths")
    white = hyacinths.parse_distribution("rryyWw")
    return hyacinths, breed(white, white)


def test_empty_allowed_set_is_inapplicable():
    roses = get_species("Roses")
    test = phenotype_test(roses, [])
    for text in ("rryyWwss", "{1:RRYYwwss, 2:rrYYWWss}"):
        assert test.apply(roses.parse_distribution(text)) is INAPPLICABLE


def test_full_phenotype_set_is_identity_with_unit_cost():
    roses = get_species("Roses")
    d = breed(roses.parse_distribution("RryyWwSs"), roses.parse_distribution("rrYyWwss"))
    rslt = phenotype_test(roses, roses.phenotypes()).apply(d)
    assert rslt is not INAPPLICABLE
    assert rslt.cost == 1
    assert rslt.distribution == d


def test_phenotype_test_filters_and_costs_exactly():
    hyacinths, selfed = _white_hyacinth_selfed()
    # 1 rryyWW : 2 rryyWw : 1 rryyww -> White, White, Blue
    blue = phenotype_test(hyacinths, ["Blue"]).apply(selfed)
    assert blue.cost == Fraction(4)
    assert blue.distribution == hyacinths.parse_distribution("rryyww")

    white = phenotype_test(hyacinths, ["White"]).apply(selfed)
    assert white.cost == Fraction(4, 3)
    assert white.distribution == hyacinths.parse_distribution("{1:rryyWW, 2:rryyWw}")

    assert phenotype_test(hyacinths, ["Purple"]).apply(selfed) is INAPPLICABLE


def test_phenotype_test_name_and_priority():
    hyacinths = get_species("Hyacinths")
    t = phenotype_test(hyacinths, ["Blue", "White"])
    assert t.name == "P∈{Blue,White}"
    assert t.priority == 2


def test_no_test_is_identity():
    _, selfed = _white_hyacinth_selfed()
    rslt = NO_TEST.apply(selfed)
    assert rslt.distribution is selfed
    assert rslt.cost == 1
    assert NO_TEST.priority == 0
    assert NO_TEST.name == ""


def test_enumeration_is_exhaustive_up_to_size():
    hyacinths = get_species("Hyacinths")
    phenotypes = hyacinths.phenotypes()
    assert len(phenotypes) == 7

    tests = phenotype_tests_up_to_size(hyacinths, 2)
    assert len(tests) == 7 + 21
    names = {t.name for t in tests}
    for size in (1, 2):
        for subset in combinations(phenotypes, size):
            assert f"P∈{{{','.join(subset)}}}" in names

    # sizes beyond the phenotype count are clamped
    assert len(phenotype_tests_up_to_size(hyacinths, 100)) == 2 ** 7 - 1
    # the full set is left out of the default enumeration
    assert len(phenotype_tests(hyacinths)) == 2 ** 7 - 2


def test_default_tests_follow_config():
    hyacinths = get_species("Hyacinths")
    tests = default_tests(hyacinths, {'include_no_test': True, 'max_test_subset_size': 1})
    assert tests[0] is NO_TEST
    assert len(tests) == 8

    no_identity = default_tests(hyacinths, {'include_no_test': False, 'max_test_subset_size': 1})
    assert NO_TEST not in no_identity
    assert len(no_identity) == 7
