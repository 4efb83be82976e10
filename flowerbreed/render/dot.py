"""Lineage listings and Graphviz DOT output for breeding graphs."""

from __future__ import annotations

from fractions import Fraction
from typing import Callable, MutableMapping, Optional

from flowerbreed.core.distribution import GeneticDistribution
from flowerbreed.generation.breed_graph import BreedGraph, Edge, Vertex
from flowerbreed.species.species import Species

Names = MutableMapping[GeneticDistribution, str]


def _namer(species: Species, names: Optional[Names]) -> Callable[[GeneticDistribution], str]:
    cache: Names = names if names is not None else {}

    def name(gd: GeneticDistribution) -> str:
        if gd not in cache:
            cache[gd] = species.render_distribution(gd)
        return cache[gd]

    return name


def _quote(text: str) -> str:
    return '"' + text.replace('\\', '\\\\').replace('"', '\\"') + '"'


def edge_label(test_name: str, cost: Fraction | float) -> str:
    if test_name:
        return f"{test_name} ({float(cost):.2f})"
    return f"{float(cost):.2f}"


def _dot_edge(name: Callable[[GeneticDistribution], str], e: Edge) -> str:
    first = _quote(name(e.first_parent.value))
    second = _quote(name(e.second_parent.value))
    child = _quote(name(e.child.value))
    label = _quote(edge_label(e.test.name, e.edge_cost))
    return f"  {{{first} {second}}} -> {child} [headlabel={label}]"


def lineage_lines(graph: BreedGraph, species: Species, names: Optional[Names] = None) -> list[str]:
    """Plain listing of every vertex followed by every current best-predecessor edge."""
    name = _namer(species, names)
    lines = ["All flowers:"]
    graph.visit_vertices(lambda v: lines.append(f"  {name(v.value)}"))
    lines.append("Lineage:")

    def add_edge(e: Edge) -> None:
        lines.append(
            f"  {name(e.first_parent.value)} and {name(e.second_parent.value)} make {name(e.child.value)} "
            f"[test = \"{e.test.name}\", cost = {float(e.edge_cost):.2f}]"
        )

    graph.visit_edges(add_edge)
    return lines


def dot_graph(graph: BreedGraph, species: Species, names: Optional[Names] = None) -> str:
    name = _namer(species, names)
    lines = ["digraph {"]
    graph.visit_vertices(lambda v: lines.append(f"  {_quote(name(v.value))}"))
    lines.append("")
    graph.visit_edges(lambda e: lines.append(_dot_edge(name, e)))
    lines.append("}")
    return "\n".join(lines) + "\n"


def dot_path_to(vertex: Vertex, species: Species, names: Optional[Names] = None) -> str:
    """DOT graph containing only the best path to ``vertex``."""
    name = _namer(species, names)
    lines = ["digraph {"]
    vertex_lines: list[str] = []
    edge_lines: list[str] = []
    vertex.visit_path_to(
        lambda v: vertex_lines.append(f"  {_quote(name(v.value))}"),
        lambda e: edge_lines.append(_dot_edge(name, e)),
    )
    lines.extend(vertex_lines)
    lines.append("")
    lines.extend(edge_lines)
    lines.append("}")
    return "\n".join(lines) + "\n"


__all__ = ['dot_graph', 'dot_path_to', 'edge_label', 'lineage_lines']
