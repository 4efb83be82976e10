from flowerbreed.generation import BreedGraph, default_tests
from flowerbreed.render import dot_path_to
from flowerbreed.species import get_species


def main():
    # Quickstart goal:
    # 1) Seed a breeding graph with the three store-bought hyacinths
    # 2) Run a single expansion step
    # 3) Find the cheapest plan for an all-blue hyacinth and print it as DOT

    hyacinths = get_species("Hyacinths")

    # Seeds are single genotypes here, but any "{odds:genotype, ...}" text works too.
    seeds = [hyacinths.parse_distribution(s) for s in ("rryyWw", "rrYYWW", "RRyyWW")]

    # NO_TEST plus one phenotype test per subset of at most two colours.
    tests = default_tests(hyacinths, {'max_test_subset_size': 2})

    graph = BreedGraph(tests, seeds, {'max_workers': 2})
    stats = graph.expand()
    print('vertices:', graph.vertex_count, 'new:', stats.new_vertices)

    blue = graph.search(lambda d: hyacinths.all_phenotype(d, "Blue"))
    print('expected cost:', float(blue.path_cost))
    print(dot_path_to(blue, hyacinths), end='')


if __name__ == '__main__':
    main()
