"""Breeding graph: generation-based expansion with best-predecessor tracking.

Each vertex is a distinct GeneticDistribution reached so far; each edge is a
cross of two vertices followed by a Test. Every vertex remembers the cheapest
known edge producing it (its best predecessor), so the best-predecessor
pointers form a forest rooted at the seed vertices.

Expansion runs in two roles:
- Workers (a fixed ThreadPoolExecutor) breed vertex pairs and apply every Test.
  They only read an immutable snapshot of vertex values taken at the start of
  the step, and push one batch per row onto a bounded queue.
- A single aggregator (the calling thread) drains the queue and performs all
  mutation of the vertex map, arenas and best-predecessor pointers.

The aggregator applies batches in row order, so the decisions made are those
of a serial run regardless of worker count or scheduling. A failed expansion
is rolled back before the error propagates, leaving the graph as it was.

Crossing and Test evaluation are pure Python and hold the GIL, so on CPython
the workers overlap but do not run in parallel. The worker boundary is kept
narrow (a snapshot in, a batch out) so the pool can be swapped for a
ProcessPoolExecutor when Tests are picklable.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from fractions import Fraction
from typing import Any, Callable, Iterable, Iterator, Optional

from flowerbreed.config import resolve_config, worker_count
from flowerbreed.core.distribution import GeneticDistribution, breed
from flowerbreed.generation import paths
from flowerbreed.generation.selection import INAPPLICABLE, Test, TestResult
from flowerbreed.utils.validation import ValidationError


@dataclass
class _VertexRecord:
    value: GeneticDistribution
    pred: Optional[int] = None  # edge handle


@dataclass
class _EdgeRecord:
    parents: tuple[int, int]
    test: Test
    cost: Fraction
    child: int
    generation: int


@dataclass
class _Batch:
    row: int
    pairs: int = 0
    items: list[tuple[int, int, TestResult]] = field(default_factory=list)


@dataclass
class _Journal:
    """Arena sizes at the start of an expansion plus every predecessor it replaced."""

    vertex_count: int
    edge_count: int
    replaced: list[tuple[int, int]] = field(default_factory=list)


_DONE = object()


@dataclass(frozen=True)
class ExpansionStats:
    """Counters describing one call to BreedGraph.expand."""

    generation: int
    workers: int
    pairs: int = 0
    candidates: int = 0
    new_vertices: int = 0
    replaced: int = 0
    discarded: int = 0


def _keep_all(_: GeneticDistribution) -> bool:
    return True


class BreedGraph:
    """Owns all vertices and edges reached while searching for breeding plans."""

    def __init__(self, tests: Iterable[Test], seeds: Iterable[GeneticDistribution],
                 config: dict[str, Any] | None = None) -> None:
        self.config = resolve_config(config)
        self._tests: tuple[Test, ...] = tuple(tests)
        self._vertices: list[_VertexRecord] = []
        self._edges: list[_EdgeRecord] = []
        self._index: dict[GeneticDistribution, int] = {}
        self._frontier = 0
        self._generation = 0

        for gd in seeds:
            if gd.is_zero():
                raise ValidationError("zero_seed", "Seed distributions must have a nonzero weight")
            if gd in self._index:
                continue
            self._index[gd] = len(self._vertices)
            self._vertices.append(_VertexRecord(gd))
        if not self._vertices:
            raise ValidationError("no_seeds", "A breeding graph needs at least one seed distribution")

    # Introspection

    @property
    def tests(self) -> tuple[Test, ...]:
        return self._tests

    @property
    def frontier(self) -> int:
        return self._frontier

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def vertex_count(self) -> int:
        return len(self._vertices)

    @property
    def edge_count(self) -> int:
        """Edges ever stored, including stale ones."""
        return len(self._edges)

    def vertex(self, handle: int) -> "Vertex":
        if not 0 <= handle < len(self._vertices):
            raise IndexError(f"no vertex with handle {handle}")
        return Vertex(self, handle)

    def edge(self, handle: int) -> "Edge":
        if not 0 <= handle < len(self._edges):
            raise IndexError(f"no edge with handle {handle}")
        return Edge(self, handle)

    def find(self, d: GeneticDistribution) -> Optional["Vertex"]:
        handle = self._index.get(d)
        return None if handle is None else Vertex(self, handle)

    def vertices(self) -> Iterator["Vertex"]:
        for handle in range(len(self._vertices)):
            yield Vertex(self, handle)

    # Queries

    def search(self, predicate: Callable[[GeneticDistribution], bool]) -> Optional["Vertex"]:
        """Lowest path-cost vertex satisfying ``predicate``; None if there is none.

        Ties keep the earliest-discovered vertex.
        """
        best: Optional[int] = None
        best_cost = Fraction(0)
        for handle, rec in enumerate(self._vertices):
            if not predicate(rec.value):
                continue
            cost = paths.path_cost(self, handle)
            if best is None or cost < best_cost:
                best, best_cost = handle, cost
        return None if best is None else Vertex(self, best)

    def visit_vertices(self, visitor: Callable[["Vertex"], None]) -> None:
        for v in self.vertices():
            visitor(v)

    def visit_edges(self, visitor: Callable[["Edge"], None]) -> None:
        """Visit each edge currently serving as some vertex's best predecessor."""
        roots = [(paths.VERTEX, h) for h in range(len(self._vertices))]
        paths.visit_subgraph(self, roots, on_edge=lambda h: visitor(Edge(self, h)))

    # Expansion

    def expand(self, keep: Callable[[GeneticDistribution], bool] | None = None) -> ExpansionStats:
        """Run one generation: cross every not-yet-paired vertex pair and apply every Test.

        ``keep`` only gates the creation of brand-new vertices; candidates for
        already-known distributions always compete for best predecessor.
        """
        keep = keep or _keep_all
        n = len(self._vertices)
        frontier = self._frontier
        values = tuple(rec.value for rec in self._vertices)
        workers = worker_count(self.config)
        queue_size = int(self.config.get('queue_size', 0)) or 2 * workers
        self._generation += 1

        counters = {'pairs': 0, 'candidates': 0, 'new_vertices': 0, 'replaced': 0, 'discarded': 0}
        journal = _Journal(len(self._vertices), len(self._edges))
        rslts: queue.Queue = queue.Queue(maxsize=queue_size)
        remaining = [workers]
        lock = threading.Lock()
        # Rows at or beyond next_row + queue_size wait, so at most queue_size
        # batches are ever buffered between the workers and the aggregator.
        window = threading.Condition()
        state = {'next_row': 0, 'aborted': False}

        def abort() -> None:
            with window:
                state['aborted'] = True
                window.notify_all()

        def work(base: int) -> None:
            try:
                for i in range(base, n, workers):
                    with window:
                        window.wait_for(lambda: state['aborted'] or i < state['next_row'] + queue_size)
                        if state['aborted']:
                            return
                    rslts.put(self._cross_row(values, i, frontier))
            except BaseException:
                abort()
                raise
            finally:
                with lock:
                    remaining[0] -= 1
                    last = remaining[0] == 0
                if last:
                    rslts.put(_DONE)

        logging.debug(f"Generation {self._generation}: {n} vertices, frontier {frontier}, {workers} workers")
        try:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='breed') as pool:
                futures = [pool.submit(work, base) for base in range(workers)]
                pending: dict[int, _Batch] = {}
                next_row = 0
                try:
                    while True:
                        batch = rslts.get()
                        if batch is _DONE:
                            break
                        pending[batch.row] = batch
                        while next_row in pending:
                            self._aggregate(pending.pop(next_row), keep, counters, journal)
                            next_row += 1
                        with window:
                            state['next_row'] = next_row
                            window.notify_all()
                except BaseException:
                    abort()
                    # Keep draining so blocked workers can finish before the pool shuts down.
                    while rslts.get() is not _DONE:
                        pass
                    raise
                for fut in futures:
                    fut.result()
        except BaseException:
            self._rollback(journal)
            logging.warning(f"Generation {self._generation + 1} failed; graph restored to generation {self._generation}")
            raise

        self._frontier = n
        stats = ExpansionStats(generation=self._generation, workers=workers, **counters)
        logging.info(
            f"Generation {stats.generation}: {stats.pairs} pairs, {stats.candidates} candidates, "
            f"{stats.new_vertices} new vertices, {stats.replaced} improved, {stats.discarded} discarded"
        )
        return stats

    def _cross_row(self, values: tuple[GeneticDistribution, ...], i: int, frontier: int) -> _Batch:
        # Worker side: pure computation over the snapshot, no graph state touched.
        start = max(frontier, i)
        batch = _Batch(i, pairs=len(values) - start)
        va = values[i]
        for j in range(start, len(values)):
            raw = breed(va, values[j])
            for t_index, test in enumerate(self._tests):
                rslt = test.apply(raw)
                if rslt is INAPPLICABLE:
                    continue
                batch.items.append((j, t_index, rslt))
        return batch

    def _rollback(self, journal: _Journal) -> None:
        """Undo every mutation made since ``journal`` was opened."""
        for handle, pred in reversed(journal.replaced):
            self._vertices[handle].pred = pred
        for rec in self._vertices[journal.vertex_count:]:
            del self._index[rec.value]
        del self._vertices[journal.vertex_count:]
        del self._edges[journal.edge_count:]
        self._generation -= 1

    def _aggregate(self, batch: _Batch, keep: Callable[[GeneticDistribution], bool],
                   counters: dict[str, int], journal: _Journal) -> None:
        i = batch.row
        counters['pairs'] += batch.pairs
        for j, t_index, rslt in batch.items:
            counters['candidates'] += 1
            test = self._tests[t_index]
            gd = rslt.distribution
            handle = self._index.get(gd)
            if handle is not None:
                rec = self._vertices[handle]
                if rec.pred is None:
                    # Seeds cost nothing; no edge can beat them.
                    continue
                old_cost = paths.path_cost(self, handle)
                new_cost = paths.candidate_path_cost(self, i, j, rslt.cost)
                incumbent = self._edges[rec.pred]
                if new_cost < old_cost or (new_cost == old_cost and test.priority < incumbent.test.priority):
                    journal.replaced.append((handle, rec.pred))
                    rec.pred =self._add_edge(i, j, test, rslt.cost, handle)
                    counters['replaced'] += 1
                continue

            if not keep(gd):
                counters['discarded'] += 1
                continue
            handle = len(self._vertices)
            self._vertices.append(_VertexRecord(gd))
            self._index[gd] = handle
            self._vertices[handle].pred = self._add_edge(i, j, test, rslt.cost, handle)
            counters['new_vertices'] += 1

    def _add_edge(self, first: int, second: int, test: Test, cost: Fraction, child: int) -> int:
        self._edges.append(_EdgeRecord((first, second), test, cost, child, self._generation))
        return len(self._edges) - 1


@dataclass(frozen=True)
class Vertex:
    """Read-only view of a vertex; resolves its handle through the owning graph."""

    graph: BreedGraph = field(repr=False)
    handle: int

    @property
    def value(self) -> GeneticDistribution:
        return self.graph._vertices[self.handle].value

    @property
    def is_seed(self) -> bool:
        return self.graph._vertices[self.handle].pred is None

    @property
    def best_predecessor(self) -> Optional["Edge"]:
        pred = self.graph._vertices[self.handle].pred
        return None if pred is None else Edge(self.graph, pred)

    @property
    def path_cost(self) -> Fraction:
        return paths.path_cost(self.graph, self.handle)

    def visit_path_to(self, vertex_visitor: Callable[["Vertex"], None],
                      edge_visitor: Callable[["Edge"], None]) -> None:
        paths.visit_path_to(
            self.graph,
            self.handle,
            lambda h: vertex_visitor(Vertex(self.graph, h)),
            lambda h: edge_visitor(Edge(self.graph, h)),
        )


@dataclass(frozen=True)
class Edge:
    """Read-only view of an edge: two parents crossed, then a Test applied."""

    graph: BreedGraph = field(repr=False)
    handle: int

    @property
    def first_parent(self) -> Vertex:
        return Vertex(self.graph, self.graph._edges[self.handle].parents[0])

    @property
    def second_parent(self) -> Vertex:
        return Vertex(self.graph, self.graph._edges[self.handle].parents[1])

    @property
    def child(self) -> Vertex:
        return Vertex(self.graph, self.graph._edges[self.handle].child)

    @property
    def test(self) -> Test:
        return self.graph._edges[self.handle].test

    @property
    def edge_cost(self) -> Fraction:
        return self.graph._edges[self.handle].cost

    @property
    def generation(self) -> int:
        """Expansion step that created this edge."""
        return self.graph._edges[self.handle].generation

    @property
    def path_cost(self) -> Fraction:
        return paths.edge_path_cost(self.graph, self.handle)


__all__ = ['BreedGraph', 'Edge', 'ExpansionStats', 'Vertex']
