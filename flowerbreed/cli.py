"""Command-line entry point.

Example:
    flowerbreed --species roses --seed rryyWwss --seed rrYYWWss --seed RRyyWWSs --target Blue

Seeds a breeding graph, expands it for the configured number of steps and
prints the cheapest plan found for a distribution whose every genotype shows
the target phenotype.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any

from flowerbreed.config import PRESETS, resolve_config
from flowerbreed.generation.breed_graph import BreedGraph
from flowerbreed.generation.selection import default_tests
from flowerbreed.render.dot import dot_path_to, lineage_lines
from flowerbreed.species.species import SPECIES_NAMES, get_species
from flowerbreed.utils.observability import graph_report
from flowerbreed.utils.validation import ValidationError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='flowerbreed',
        description='Find the cheapest breeding plan that reaches a target flower colour.',
    )
    parser.add_argument('--species', default='Roses', help=f"one of: {', '.join(SPECIES_NAMES)}")
    parser.add_argument('--seed', action='append', required=True,
                        help='seed genotype (e.g. rryyWwss) or distribution (e.g. "{1:rryyWWss, 2:rryyWwss}"); repeatable')
    parser.add_argument('--target', required=True, help='phenotype every genotype of the result must show')
    parser.add_argument('--preset', choices=sorted(PRESETS), default=None)
    parser.add_argument('--steps', type=int, default=None, help='number of expansion steps')
    parser.add_argument('--max-test-size', type=int, default=None,
                        help='largest phenotype subset to build a selection test for')
    parser.add_argument('--workers', type=int, default=None, help='expansion worker threads (default: CPU count)')
    parser.add_argument('--no-prune', action='store_true', help='keep every new vertex on the last step')
    parser.add_argument('--format', choices=('dot', 'lineage', 'report'), default='dot')
    parser.add_argument('--name', action='append', default=[], metavar='LABEL=DIST',
                        help='display LABEL instead of the rendered distribution DIST; repeatable')
    parser.add_argument('-v', '--verbose', action='store_true', help='debug logging')
    return parser


def _overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.steps is not None:
        overrides['expand_steps'] = args.steps
    if args.max_test_size is not None:
        overrides['max_test_subset_size'] = args.max_test_size
    if args.workers is not None:
        overrides['max_workers'] = args.workers
    if args.no_prune:
        overrides['prune_final_step'] = False
    return overrides


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s %(levelname)s %(message)s',
        stream=sys.stderr,
    )

    try:
        config = resolve_config(_overrides(args), preset=args.preset)
        species = get_species(args.species)
        seeds = [species.parse_distribution(s) for s in args.seed]
        names = {}
        for entry in args.name:
            label, sep, dist = entry.partition('=')
            if not sep:
                raise ValidationError("bad_name", f"Expected LABEL=DIST, got {entry!r}")
            names[species.parse_distribution(dist)] = label
        if args.target not in species.phenotypes():
            raise ValidationError("unknown_phenotype", f"{species.name} have no phenotype {args.target!r}",
                                  known=tuple(species.phenotypes()))
    except ValidationError as exc:
        print(f"flowerbreed: error: {exc}", file=sys.stderr)
        return 2

    def is_target(gd) -> bool:
        return species.all_phenotype(gd, args.target)

    tests = default_tests(species, config)
    graph = BreedGraph(tests, seeds, config)
    steps = int(config['expand_steps'])
    logging.info(f"{species.name}: {len(seeds)} seeds, {len(tests)} tests, {steps} expansion steps")
    for step in range(steps):
        logging.info(f"Beginning graph expansion step {step + 1}...")
        keep = None
        if step == steps - 1 and config.get('prune_final_step', True):
            # Nothing is expanded after the last step, so only solutions are worth keeping.
            keep = is_target
        graph.expand(keep)

    candidate = graph.search(is_target)
    if candidate is None:
        print(f"No {args.target.lower()} {species.name.lower()} possible within {steps} steps.", file=sys.stderr)
        return 1

    if args.format == 'dot':
        sys.stdout.write(dot_path_to(candidate, species, names))
    elif args.format == 'lineage':
        for line in lineage_lines(graph, species, names):
            print(line)
        print(f"Best: {names.get(candidate.value) or species.render_distribution(candidate.value)} "
              f"(expected cost {float(candidate.path_cost):.2f})")
    else:
        print(json.dumps(graph_report(graph, species), indent=2, ensure_ascii=False))
    return 0


__all__ = ['build_parser', 'main']
