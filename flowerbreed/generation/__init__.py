"""Breeding-graph generation engine for flowerbreed."""

from .breed_graph import BreedGraph, Edge, ExpansionStats, Vertex  # noqa: F401
from .paths import edge_path_cost, path_cost, visit_path_to, visit_subgraph  # noqa: F401
from .selection import (  # noqa: F401
    INAPPLICABLE,
    NO_TEST,
    Test,
    TestResult,
    default_tests,
    phenotype_test,
    phenotype_tests,
    phenotype_tests_up_to_size,
)

__all__ = [
    'BreedGraph',
    'Vertex',
    'Edge',
    'ExpansionStats',
    'Test',
    'TestResult',
    'INAPPLICABLE',
    'NO_TEST',
    'phenotype_test',
    'phenotype_tests',
    'phenotype_tests_up_to_size',
    'default_tests',
    'path_cost',
    'edge_path_cost',
    'visit_path_to',
    'visit_subgraph',
]
