# pylint: disable=logging-fstring-interpolation
"""Graph validity workload.

Graphs are adjacency lists keyed by vertex number. The input holds
:code:`graph_size` lines per graph followed by an empty line, each line lists a
vertex and the vertices it points to:

..  code-block:: text

    1, 2, 3
    2, 4
    3
    4

Only graphs that are free of cycles and connected pass the filter and are
written to the output in the same format.
"""

import logging
import math
import random
from pathlib import Path
from typing import Dict, Hashable, Iterable, Iterator, List, Optional, Union

from topicq.util.defaults import DEFAULT_GRAPH_COUNT, DEFAULT_GRAPH_SIZE
from topicq.util.deque import Deque
from topicq.workload.exceptions import InputFormatError
from topicq.workload.sink import ResultWriter

logger = logging.getLogger("Graph")

Graph = Dict[int, List[int]]


class UnionFind:
    """Disjoint sets over arbitrary hashable items."""

    def __init__(self) -> None:
        self._parent: Dict[Hashable, Hashable] = {}
        self._size: Dict[Hashable, int] = {}

    def add(self, item: Hashable) -> None:
        """Add item as a singleton set if it is unknown."""
        if item not in self._parent:
            self._parent[item] = item
            self._size[item] = 1

    def find(self, item: Hashable) -> Hashable:
        """Return the representative of the set containing item."""
        self.add(item)
        root = item
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[item] != root:
            self._parent[item], item = root, self._parent[item]
        return root

    def union(self, first: Hashable, second: Hashable) -> Hashable:
        """Merge the sets of both items and return the new representative."""
        first_root, second_root = self.find(first), self.find(second)
        if first_root == second_root:
            return first_root
        if self._size[first_root] < self._size[second_root]:
            first_root, second_root = second_root, first_root
        self._parent[second_root] = first_root
        self._size[first_root] += self._size[second_root]
        return first_root

    def components(self) -> int:
        """Number of disjoint sets."""
        return len({self.find(item) for item in self._parent})


def has_cycle(graph: Graph) -> bool:
    """Check whether a breadth-first walk reaches a vertex twice.

    The walk starts at the lowest vertex with outgoing edges. A graph without
    any edge is reported as cyclic, so it never passes the filter.
    """
    start = next((vertex for vertex in sorted(graph) if graph[vertex]), None)
    if start is None:
        return True
    visited = set()
    pending: Deque[int] = Deque()
    pending.push_back(start)
    while pending:
        vertex = pending.pop_front()
        if vertex in visited:
            return True
        visited.add(vertex)
        for neighbour in graph.get(vertex, ()):
            pending.push_back(neighbour)
    return False


def is_connected(graph: Graph) -> bool:
    """Check whether all vertices and edge endpoints form a single component."""
    sets = UnionFind()
    for vertex, neighbours in graph.items():
        sets.add(vertex)
        for neighbour in neighbours:
            sets.union(vertex, neighbour)
    return sets.components() == 1


def is_valid(graph: Graph) -> bool:
    """A graph is valid if it has no cycle and is connected."""
    return not has_cycle(graph) and is_connected(graph)


def graph_to_lines(graph: Graph) -> List[str]:
    """Render graph as one line per vertex in vertex order."""
    return [", ".join(str(item) for item in (vertex, *graph[vertex])) for vertex in sorted(graph)]


def _parse_line(line_number: int, line: str) -> Optional[List[int]]:
    if not line.strip():
        return None
    try:
        return [int(part) for part in line.split(",")]
    except ValueError as error:
        raise InputFormatError(line_number, line, str(error)) from error


def read_graphs(lines: Iterable[str], graph_size: int = DEFAULT_GRAPH_SIZE) -> Iterator[Graph]:
    """Parse graphs of graph_size vertices from lines.

    Reading ends at the first incomplete graph or empty line inside a graph.
    A line with a vertex that is not an integer raises :code:`InputFormatError`.
    """
    numbered = enumerate((line.rstrip("\r\n") for line in lines), start=1)
    while True:
        graph: Graph = {}
        for _ in range(graph_size):
            entry = next(numbered, None)
            if entry is None:
                return
            parsed = _parse_line(*entry)
            if parsed is None:
                logger.debug(f"Stopped reading graphs on line {entry[0]}")
                return
            graph[parsed[0]] = parsed[1:]
        yield graph
        next(numbered, None)  # block separator


def generate_dependency_graph(size: int, rng: Optional[random.Random] = None) -> Graph:
    """Generate a tree rooted at vertex 1 where every vertex has at most two children."""
    rng = rng or random.Random()
    graph: Graph = {vertex: [] for vertex in range(1, size + 1)}
    remaining = set(range(2, size + 1))
    parents = [1]
    while parents and remaining:
        parent = parents.pop()
        children = rng.sample(sorted(remaining), min(len(remaining), 2))
        remaining.difference_update(children)
        graph[parent] = children
        parents.extend(reversed(children))
    return graph


def generate_random_graph(
    size: int, allow_cycles: bool, rng: Optional[random.Random] = None
) -> Graph:
    """Generate a random graph.

    Without :code:`allow_cycles` every vertex only points to vertices that were
    neither pointed to before nor created before, which rules out cycles but not
    disconnected parts.
    """
    rng = rng or random.Random()
    graph: Graph = {}
    candidates = set(range(1, size + 1))
    max_edges = max(int(math.sqrt(size)), 2)
    for vertex in range(1, size + 1):
        graph[vertex] = []
        if not allow_cycles:
            candidates.discard(vertex)
        for _ in range(min(len(candidates), rng.randrange(1, max_edges))):
            neighbour = rng.choice(sorted(candidates))
            if not allow_cycles:
                candidates.discard(neighbour)
            graph[vertex].append(neighbour)
    return graph


def generate_adjacency_lists(
    path: Union[str, Path],
    graph_count: int = DEFAULT_GRAPH_COUNT,
    graph_size: int = DEFAULT_GRAPH_SIZE,
    seed: Optional[int] = None,
) -> Path:
    """Write an input file with a random mix of trees and random graphs."""
    rng = random.Random(seed)
    generators = (
        lambda: generate_dependency_graph(graph_size, rng),
        lambda: generate_random_graph(graph_size, True, rng),
        lambda: generate_random_graph(graph_size, False, rng),
    )
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as stream:
        for _ in range(graph_count):
            graph = rng.choice(generators)()
            stream.writelines(f"{line}\n" for line in graph_to_lines(graph))
            stream.write("\n")
    logger.info(f"Wrote {graph_count} graphs to '{path}'")
    return path


class GraphHandler:
    """Consumer handler writing every valid graph to a sink."""

    def __init__(self, sink: ResultWriter) -> None:
        self._sink = sink
        self.rejected = 0

    def __call__(self, graph: Graph) -> None:
        if not is_valid(graph):
            self.rejected += 1
            return
        self._sink.write_block(graph_to_lines(graph))
