import threading
import time
from collections import Counter
from fractions import Fraction

import pytest

import flowerbreed.generation.breed_graph as breed_graph_module
from flowerbreed.core.distribution import breed
from flowerbreed.generation import NO_TEST, BreedGraph, Test, TestResult, default_tests
from flowerbreed.species import get_species
from flowerbreed.utils.validation import ValidationError


def _hyacinth_seeds():
    hyacinths = get_species("Hyacinths")
    seeds = [hyacinths.parse_distribution(s) for s in ("rryyWw", "rrYYWW", "RRyyWW")]
    return hyacinths, seeds


def _constant_test(name, priority, result, cost):
    return Test(name, priority, lambda d: TestResult(result, Fraction(cost)))


def test_seeds_are_deduplicated_and_free():
    _, seeds = _hyacinth_seeds()
    g = BreedGraph([NO_TEST], seeds + [seeds[0]], {'max_workers': 1})
    assert g.vertex_count == 3
    for v in g.vertices():
        assert v.is_seed
        assert v.path_cost == 0
        assert v.best_predecessor is None


def test_graph_needs_seeds():
    with pytest.raises(ValidationError):
        BreedGraph([NO_TEST], [])


def test_every_unordered_pair_is_crossed_exactly_once(monkeypatch):
    crosses = []

    def recording_breed(a, b):
        crosses.append((a, b))
        return breed(a, b)

    monkeypatch.setattr(breed_graph_module, "breed", recording_breed)
    _, seeds = _hyacinth_seeds()
    g = BreedGraph([NO_TEST], seeds, {'max_workers': 3})

    stats = g.expand()
    assert stats.pairs == 6
    assert g.frontier == 3
    n_before_second = g.vertex_count
    g.expand()
    assert g.frontier == n_before_second

    pairs = Counter()
    for a, b in crosses:
        i, j = g.find(a).handle, g.find(b).handle
        pairs[(min(i, j), max(i, j))] += 1
    assert set(pairs.values()) == {1}
    assert len(pairs) == n_before_second * (n_before_second + 1) // 2


def test_frontier_prevents_re_pairing_and_keep_gates_new_vertices():
    _, seeds = _hyacinth_seeds()
    g = BreedGraph([NO_TEST], seeds, {'max_workers': 2})
    stats = g.expand(keep=lambda d: False)
    assert g.vertex_count == 3
    assert stats.new_vertices == 0
    assert stats.discarded > 0
    assert g.frontier == 3

    again = g.expand()
    assert again.pairs == 0
    assert again.candidates == 0


def test_seed_rediscovered_stays_a_seed():
    _, seeds = _hyacinth_seeds()
    g = BreedGraph([NO_TEST], seeds, {'max_workers': 1})
    g.expand()
    # rrYYWW x rrYYWW breeds true
    assert g.vertex(1).is_seed
    assert g.vertex(1).path_cost == 0


def test_blue_hyacinth_is_one_selective_cross_away():
    hyacinths, seeds = _hyacinth_seeds()
    g = BreedGraph(default_tests(hyacinths), seeds, {'max_workers': 4})
    g.expand()

    found = g.search(lambda d: hyacinths.all_phenotype(d, "Blue"))
    assert found is not None
    assert found.value == hyacinths.parse_distribution("rryyww")
    assert found.path_cost == Fraction(4)
    edge = found.best_predecessor
    assert edge.test.name == "P∈{Blue}"
    assert edge.first_parent.handle == edge.second_parent.handle == 0
    assert edge.child == found


def test_search_reports_not_found_and_keeps_first_of_ties():
    _, seeds = _hyacinth_seeds()
    g = BreedGraph([NO_TEST], seeds, {'max_workers': 1})
    assert g.search(lambda d: False) is None
    assert g.search(lambda d: True).handle == 0


def test_cheaper_candidate_replaces_and_stale_edge_is_hidden():
    hyacinths, seeds = _hyacinth_seeds()
    target = hyacinths.parse_distribution("rryyww")
    tests = [
        _constant_test("expensive", 1, target, 10),
        _constant_test("cheap", 5, target, 2),
    ]
    g = BreedGraph(tests, seeds[:1], {'max_workers': 1})
    stats = g.expand()

    assert stats.new_vertices == 1
    assert stats.replaced == 1
    v = g.find(target)
    assert v.path_cost == 2
    assert v.best_predecessor.test.name == "cheap"
    assert g.edge_count == 2

    live = []
    g.visit_edges(live.append)
    assert [e.test.name for e in live] == ["cheap"]


def test_equal_cost_prefers_lower_priority_then_incumbent():
    hyacinths, seeds = _hyacinth_seeds()
    target = hyacinths.parse_distribution("rryyww")

    g = BreedGraph([_constant_test("wide", 3, target, 3), _constant_test("narrow", 1, target, 3)],
                   seeds[:1], {'max_workers': 1})
    g.expand()
    assert g.find(target).best_predecessor.test.name == "narrow"

    g = BreedGraph([_constant_test("first", 1, target, 3), _constant_test("second", 1, target, 3)],
                   seeds[:1], {'max_workers': 1})
    g.expand()
    assert g.find(target).best_predecessor.test.name == "first"


def test_best_predecessor_parents_predate_their_edge():
    hyacinths, seeds = _hyacinth_seeds()
    g = BreedGraph(default_tests(hyacinths, {'max_test_subset_size': 1}), seeds, {'max_workers': 3})
    counts = [g.vertex_count]
    for _ in range(2):
        g.expand()
        counts.append(g.vertex_count)

    edges = []
    g.visit_edges(edges.append)
    assert edges
    for e in edges:
        limit = counts[e.generation - 1]
        assert e.first_parent.handle < limit
        assert e.second_parent.handle < limit
        assert e.child.best_predecessor == e

    for v in g.vertices():
        if v.is_seed:
            continue
        on_path = []
        v.visit_path_to(lambda _: None, on_path.append)
        assert v.path_cost == sum((e.edge_cost for e in on_path), Fraction(0))


def test_rose_seeds_cannot_reach_blue_in_two_generations():
    roses = get_species("Roses")
    seeds = [roses.parse_distribution(s) for s in ("rryyWwss", "rrYYWWss", "RRyyWWSs")]
    tests = [NO_TEST] + default_tests(roses, {'include_no_test': False})
    g = BreedGraph(tests, seeds)
    for _ in range(2):
        g.expand()

    assert g.vertex_count > 3
    assert g.search(lambda d: roses.all_phenotype(d, "Blue")) is None


def test_worker_failure_is_raised_from_expand():
    _, seeds = _hyacinth_seeds()

    def boom(d):
        raise RuntimeError("test exploded")

    g = BreedGraph([Test("boom", 0, boom)], seeds, {'max_workers': 2, 'queue_size': 1})
    with pytest.raises(RuntimeError):
        g.expand()


def test_failed_expansion_leaves_graph_untouched():
    hyacinths, seeds = _hyacinth_seeds()
    red = hyacinths.parse_distribution("RRyyWW")
    armed = [True]

    def fragile(d):
        if armed[0] and d == breed(red, red):
            raise RuntimeError("selection failed")
        return TestResult(d, Fraction(1))

    g = BreedGraph([Test("fragile", 0, fragile)], seeds, {'max_workers': 1})
    with pytest.raises(RuntimeError):
        g.expand()
    assert g.vertex_count == 3
    assert g.edge_count == 0
    assert g.frontier == 0
    assert g.generation == 0
    assert [g.find(s).handle for s in seeds] == [0, 1, 2]

    armed[0] = False
    stats = g.expand()
    assert stats.generation == 1
    assert stats.pairs == 6
    fresh = BreedGraph([NO_TEST], seeds, {'max_workers': 1})
    fresh.expand()
    assert [v.value for v in g.vertices()] == [v.value for v in fresh.vertices()]


def _rule_test(name, raw, result, cost):
    def fn(d):
        if d != raw:
            return None
        return TestResult(result, Fraction(cost))

    return Test(name, 1, fn)


def _relay_graph():
    # Generation 1: white x white -> blue (slow), yellow x yellow -> purple.
    # Generation 2: purple x purple -> blue (fast), blue x blue -> yellow het.
    hyacinths = get_species("Hyacinths")
    white, yellow = (hyacinths.parse_distribution(s) for s in ("rryyWw", "rrYYWW"))
    blue, purple, descendant = (hyacinths.parse_distribution(s) for s in ("rryyww", "RRYYWW", "rrYyWw"))
    tests = [
        _rule_test("slow", breed(white, white), blue, 10),
        _rule_test("to-purple", breed(yellow, yellow), purple, 1),
        _rule_test("fast", breed(purple, purple), blue, 1),
        _rule_test("to-descendant", breed(blue, blue), descendant, 1),
    ]
    g = BreedGraph(tests, [white, yellow], {'max_workers': 2})
    g.expand()
    assert g.find(blue).path_cost == 10
    return g, blue, descendant


def test_keep_does_not_gate_cheaper_predecessor_for_known_vertex():
    g, blue, descendant = _relay_graph()
    stats = g.expand(keep=lambda d: False)

    assert stats.new_vertices == 0
    assert stats.replaced == 1
    assert stats.discarded == 1
    assert g.find(descendant) is None
    b = g.find(blue)
    assert b.path_cost == 2
    assert b.best_predecessor.test.name == "fast"


def test_descendant_edge_is_not_rebuilt_when_ancestor_improves():
    g, blue, descendant = _relay_graph()
    g.expand()

    d = g.find(descendant)
    edge = d.best_predecessor
    # created from the slow blue before the same generation improved it
    assert edge.test.name == "to-descendant"
    assert edge.first_parent == edge.second_parent == g.find(blue)
    assert edge.generation == 2
    assert edge.edge_cost == 1
    assert g.find(blue).best_predecessor.test.name == "fast"
    assert g.edge_count == 4
    assert d.path_cost == 1 + 2

    g.expand()
    assert g.find(descendant).best_predecessor == edge


def test_slow_row_holds_back_rows_beyond_the_queue_window(monkeypatch):
    hyacinths, seeds = _hyacinth_seeds()
    config = {'max_workers': 3, 'queue_size': 2, 'max_test_subset_size': 1}
    g = BreedGraph(default_tests(hyacinths, config), seeds, config)
    g.expand()
    assert g.vertex_count > 6

    lock = threading.Lock()
    applied = [0]
    too_early = []
    cross_row = BreedGraph._cross_row
    aggregate = BreedGraph._aggregate

    def slow_cross_row(self, values, i, frontier):
        with lock:
            if i >= applied[0] + config['queue_size']:
                too_early.append((i, applied[0]))
        if i == 0:
            time.sleep(0.05)
        return cross_row(self, values, i, frontier)

    def counting_aggregate(self, batch, keep, counters, journal):
        aggregate(self, batch, keep, counters, journal)
        with lock:
            applied[0] += 1

    monkeypatch.setattr(BreedGraph, "_cross_row", slow_cross_row)
    monkeypatch.setattr(BreedGraph, "_aggregate", counting_aggregate)
    stats = g.expand()
    assert stats.pairs > 0
    assert too_early == []
