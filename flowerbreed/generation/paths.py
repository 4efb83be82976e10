"""Path reconstruction over best-predecessor chains.

Vertices and edges are addressed by integer handles into the graph's arenas.
Traversals use an explicit work stack and a handled set keyed by
``(kind, handle)``, so shared ancestors ("diamonds") are visited once and a
malformed cyclic chain cannot loop forever.
"""

from __future__ import annotations

from fractions import Fraction
from typing import TYPE_CHECKING, Callable, Iterable, Optional

if TYPE_CHECKING:  # pragma: no cover
    from flowerbreed.generation.breed_graph import BreedGraph

VERTEX = 0
EDGE = 1

Node = tuple[int, int]


def visit_subgraph(graph: "BreedGraph", roots: Iterable[Node],
                   on_vertex: Optional[Callable[[int], None]] = None,
                   on_edge: Optional[Callable[[int], None]] = None) -> None:
    """Visit every vertex and edge reachable from ``roots`` through best predecessors."""
    stack = list(roots)
    handled: set[Node] = set()
    while stack:
        node = stack.pop()
        if node in handled:
            continue
        handled.add(node)

        kind, handle = node
        if kind == VERTEX:
            if on_vertex is not None:
                on_vertex(handle)
            pred = graph._vertices[handle].pred
            if pred is not None:
                stack.append((EDGE, pred))
        elif kind == EDGE:
            if on_edge is not None:
                on_edge(handle)
            first, second = graph._edges[handle].parents
            stack.append((VERTEX, first))
            stack.append((VERTEX, second))
        else:
            raise ValueError(f"visit_subgraph: unexpected node kind {kind!r}")


def subgraph_cost(graph: "BreedGraph", roots: Iterable[Node]) -> Fraction:
    total = Fraction(0)

    def add(edge_handle: int) -> None:
        nonlocal total
        total += graph._edges[edge_handle].cost

    visit_subgraph(graph, roots, on_edge=add)
    return total


def path_cost(graph: "BreedGraph", vertex_handle: int) -> Fraction:
    """0 for a seed; otherwise the summed cost of the distinct edges on its best path."""
    pred = graph._vertices[vertex_handle].pred
    if pred is None:
        return Fraction(0)
    return edge_path_cost(graph, pred)


def edge_path_cost(graph: "BreedGraph", edge_handle: int) -> Fraction:
    return subgraph_cost(graph, [(EDGE, edge_handle)])


def candidate_path_cost(graph: "BreedGraph", first: int, second: int, cost: Fraction) -> Fraction:
    """Path cost an edge from ``first`` x ``second`` would have, before it is stored."""
    return cost + subgraph_cost(graph, [(VERTEX, first), (VERTEX, second)])


def visit_path_to(graph: "BreedGraph", vertex_handle: int,
                  vertex_visitor: Callable[[int], None],
                  edge_visitor: Callable[[int], None]) -> None:
    """Report each vertex, then each edge, on the best path to ``vertex_handle`` exactly once."""
    verts: list[int] = []
    edges: list[int] = []
    visit_subgraph(graph, [(VERTEX, vertex_handle)], on_vertex=verts.append, on_edge=edges.append)
    for v in verts:
        vertex_visitor(v)
    for e in edges:
        edge_visitor(e)


__all__ = [
    'VERTEX',
    'EDGE',
    'candidate_path_cost',
    'edge_path_cost',
    'path_cost',
    'subgraph_cost',
    'visit_path_to',
    'visit_subgraph',
]
