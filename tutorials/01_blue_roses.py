"""
Blue Roses Tutorial

Goals:
- Expand a rose graph over several generations with pruning on the last step
- Compare the cheapest plans found after each step
- Label well-known distributions when printing the lineage
"""

from flowerbreed.config import resolve_config
from flowerbreed.generation import BreedGraph, default_tests
from flowerbreed.render import lineage_lines
from flowerbreed.species import get_species


def main():
    roses = get_species("Roses")
    seeds = {
        'seed white': roses.parse_distribution("rryyWwss"),
        'seed yellow': roses.parse_distribution("rrYYWWss"),
        'seed red': roses.parse_distribution("RRyyWWSs"),
    }
    config = resolve_config({'max_test_subset_size': 2}, preset='standard')
    graph = BreedGraph(default_tests(roses, config), seeds.values(), config)

    def is_blue(d):
        return roses.all_phenotype(d, "Blue")

    steps = config['expand_steps']
    for step in range(steps):
        keep = is_blue if step == steps - 1 else None
        graph.expand(keep)
        best = graph.search(is_blue)
        print(f"step {step + 1}:", 'none' if best is None else f"{float(best.path_cost):.2f}")

    names = {d: label for label, d in seeds.items()}
    for line in lineage_lines(graph, roses, names)[-10:]:
        print(line)


if __name__ == '__main__':
    main()
