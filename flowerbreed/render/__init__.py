"""Textual output of breeding graphs."""

from .dot import dot_graph, dot_path_to, edge_label, lineage_lines  # noqa: F401

__all__ = [
    'dot_graph',
    'dot_path_to',
    'edge_label',
    'lineage_lines',
]
