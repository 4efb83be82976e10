"""
Observability & Determinism Tutorial

Goals:
- Build a graph report after two expansion steps
- Show the determinism signature is the same for 1 and 4 workers
"""

from flowerbreed.generation import BreedGraph, default_tests
from flowerbreed.species import get_species
from flowerbreed.utils.observability import (
    assert_determinism_equivalence,
    determinism_signature,
    graph_report,
)


def build(workers):
    tulips = get_species("Tulips")
    seeds = [tulips.parse_distribution(s) for s in ("rryySs", "rrYYss", "RRyySs")]
    config = {'max_workers': workers, 'max_test_subset_size': 1}
    g = BreedGraph(default_tests(tulips, config), seeds, config)
    g.expand()
    g.expand()
    return graph_report(g, tulips)


def main():
    reports = [build(1), build(4)]
    assert_determinism_equivalence(reports)
    print('schema_version:', reports[0]['schema_version'])
    print('vertices:', reports[0]['vertex_count'])
    print('determinism_sig:', determinism_signature(reports[0]))


if __name__ == '__main__':
    main()
