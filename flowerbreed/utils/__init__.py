"""Utility helpers for flowerbreed."""

from .observability import assert_determinism_equivalence, determinism_signature, graph_report  # noqa: F401
from .validation import ValidationError  # noqa: F401

__all__ = [
    'ValidationError',
    'graph_report',
    'determinism_signature',
    'assert_determinism_equivalence',
]
