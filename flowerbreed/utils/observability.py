"""Graph reports and determinism signatures.

A report is a JSON-serialisable snapshot of a breeding graph: every vertex in
discovery order with its path cost and best predecessor. Two runs that made
the same decisions produce byte-identical canonical JSON and therefore the
same signature.
"""

from __future__ import annotations

import hashlib
import json
from typing import TYPE_CHECKING, Any, Iterable, Optional

from .validation import ValidationError

if TYPE_CHECKING:  # pragma: no cover
    from flowerbreed.generation.breed_graph import BreedGraph
    from flowerbreed.species.species import Species

SCHEMA_VERSION = 1


def _distribution_key(gd, species: Optional["Species"]) -> Any:
    if species is not None:
        return species.render_distribution(gd)
    return {str(int(g)): w for g, w in gd.items()}


def graph_report(graph: "BreedGraph", species: Optional["Species"] = None) -> dict[str, Any]:
    vertices: list[dict[str, Any]] = []
    for v in graph.vertices():
        entry: dict[str, Any] = {
            'handle': v.handle,
            'distribution': _distribution_key(v.value, species),
            'path_cost': str(v.path_cost),
            'pred': None,
        }
        pred = v.best_predecessor
        if pred is not None:
            entry['pred'] = {
                'parents': [pred.first_parent.handle, pred.second_parent.handle],
                'test': pred.test.name,
                'edge_cost': str(pred.edge_cost),
                'generation': pred.generation,
            }
        vertices.append(entry)

    live_edges: list[int] = []
    graph.visit_edges(lambda e: live_edges.append(e.handle))

    return {
        'schema_version': SCHEMA_VERSION,
        'species': species.name if species is not None else None,
        'generation': graph.generation,
        'frontier': graph.frontier,
        'vertex_count': graph.vertex_count,
        'edge_count': graph.edge_count,
        'live_edge_count': len(live_edges),
        'vertices': vertices,
    }


def determinism_signature(report: dict[str, Any]) -> str:
    canonical = json.dumps(report, sort_keys=True, separators=(',', ':'), ensure_ascii=False)
    return hashlib.sha256(canonical.encode('utf-8')).hexdigest()


def assert_determinism_equivalence(reports: Iterable[dict[str, Any]]) -> None:
    """Raise ValidationError unless every report has the same signature."""
    signatures = [determinism_signature(r) for r in reports]
    if len(set(signatures)) > 1:
        raise ValidationError("determinism_drift", "Graph reports differ between runs",
                              signatures=tuple(signatures))


__all__ = [
    'SCHEMA_VERSION',
    'assert_determinism_equivalence',
    'determinism_signature',
    'graph_report',
]
