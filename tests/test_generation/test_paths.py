from fractions import Fraction

from flowerbreed.core.distribution import breed
from flowerbreed.generation import BreedGraph, Test, TestResult
from flowerbreed.generation.paths import EDGE, VERTEX, candidate_path_cost, subgraph_cost
from flowerbreed.species import get_species


def _rule_test(name, raw, result, cost):
    """Test that fires only on offspring equal to ``raw``."""

    def fn(d):
        if d != raw:
            return None
        return TestResult(result, Fraction(cost))

    return Test(name, 1, fn)


def _diamond_graph():
    hyacinths = get_species("Hyacinths")
    seed = hyacinths.parse_distribution("rryyWw")
    a1 = hyacinths.parse_distribution("rryyww")
    a2 = hyacinths.parse_distribution("rryyWW")
    b = hyacinths.parse_distribution("rrYYWW")
    c = hyacinths.parse_distribution("RRyyWW")
    tests = [
        _rule_test("to-a1", breed(seed, seed), a1, 2),
        _rule_test("to-a2", breed(seed, seed), a2, 3),
        # rryyww x rryyWW gives rryyWw
        _rule_test("to-b", breed(a1, a2), b, 1),
        _rule_test("to-c", breed(a1, a1), c, 1),
    ]
    g = BreedGraph(tests, [seed], {'max_workers': 2})
    g.expand()
    g.expand()
    return g, {"seed": seed, "a1": a1, "a2": a2, "b": b, "c": c}


def _path_of(vertex):
    verts, edges = [], []
    vertex.visit_path_to(verts.append, edges.append)
    return verts, edges


def test_diamond_counts_shared_ancestor_once():
    g, d = _diamond_graph()
    b = g.find(d["b"])
    assert b.path_cost == Fraction(6)

    verts, edges = _path_of(b)
    assert len(verts) == 4
    assert {v.handle for v in verts} == {g.find(d[k]).handle for k in ("seed", "a1", "a2", "b")}
    assert len(edges) == 3
    assert len({e.handle for e in edges}) == 3


def test_shared_edge_is_paid_for_once():
    g, d = _diamond_graph()
    c = g.find(d["c"])
    edge = c.best_predecessor
    assert edge.first_parent == edge.second_parent == g.find(d["a1"])
    # a tree-shaped sum would be 1 + 2 + 2
    assert c.path_cost == Fraction(3)
    verts, edges = _path_of(c)
    assert len(verts) == 3
    assert len(edges) == 2


def test_path_cost_is_sum_of_visited_edges():
    g, _ = _diamond_graph()
    for v in g.vertices():
        _, edges = _path_of(v)
        assert v.path_cost == sum((e.edge_cost for e in edges), Fraction(0))
        if v.best_predecessor is not None:
            assert v.best_predecessor.path_cost == v.path_cost


def test_vertices_are_reported_before_edges():
    g, d = _diamond_graph()
    order = []
    g.find(d["b"]).visit_path_to(lambda v: order.append("v"), lambda e: order.append("e"))
    assert order == ["v"] * 4 + ["e"] * 3


def test_candidate_cost_matches_stored_edge():
    g, d = _diamond_graph()
    a1 = g.find(d["a1"]).handle
    a2 = g.find(d["a2"]).handle
    assert candidate_path_cost(g, a1, a2, Fraction(1)) == g.find(d["b"]).path_cost
    assert subgraph_cost(g, [(VERTEX, a1), (VERTEX, a1)]) == Fraction(2)
    edge = g.find(d["b"]).best_predecessor.handle
    assert subgraph_cost(g, [(EDGE, edge)]) == Fraction(6)
