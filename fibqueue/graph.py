"""A directed graph stored as an adjacency matrix, with a minimum spanning forest built on :class:`FibonacciHeap`."""

import logging
from typing import Dict, Generic, Hashable, Iterable, Iterator, List, Optional, Set, Tuple, TypeVar

from tqdm import tqdm

from .fibonacci import FibonacciHeap

log = logging.getLogger(__name__)

V = TypeVar('V', bound=Hashable)
E = TypeVar('E')

ForestEdge = Tuple[V, V, E]


class VertexNotFoundError(KeyError):
    """Raised when an operation refers to a vertex that is not in the graph."""
    pass


class Graph(Generic[V, E]):
    """A directed graph whose edges carry comparable weights.

    Vertices are assigned consecutive indexes as they are inserted, and edges are stored in a square matrix over those
    indexes. Indexes of removed vertices are never reused.

    """
    def __init__(self, vertices: Iterable[V] = ()):
        self._matrix: List[List[Optional[E]]] = []
        self._neighbors: List[Set[int]] = []
        self._code: Dict[V, int] = {}
        self._decode: List[V] = []
        for vertex in vertices:
            self.insert_vertex(vertex)

    def _index_of(self, vertex: V) -> int:
        try:
            return self._code[vertex]
        except KeyError:
            raise VertexNotFoundError(vertex) from None

    def insert_vertex(self, vertex: V):
        """Adds a vertex to the graph. Adding a vertex that is already present has no effect."""
        if vertex in self._code:
            return
        self._code[vertex] = len(self._decode)
        self._decode.append(vertex)
        self._neighbors.append(set())
        for row in self._matrix:
            row.append(None)
        self._matrix.append([None] * len(self._decode))

    def insert_edge(self, from_vertex: V, to_vertex: V, edge: E):
        """Adds an edge, replacing any existing edge between the same two vertices in the same direction.

        Args:
            from_vertex: The source of the edge.
            to_vertex: The destination of the edge.
            edge: The edge weight.

        Raises:
            VertexNotFoundError: If either vertex is not in the graph.
            ValueError: If :obj:`edge` is :const:`None`.

        """
        from_index = self._index_of(from_vertex)
        to_index = self._index_of(to_vertex)
        if edge is None:
            raise ValueError(f"The edge from {from_vertex!r} to {to_vertex!r} must have a weight")
        self._neighbors[from_index].add(to_index)
        self._matrix[from_index][to_index] = edge

    def remove_vertex(self, vertex: V):
        """Removes a vertex along with every edge into or out of it.

        Raises:
            VertexNotFoundError: If the vertex is not in the graph.

        """
        index = self._index_of(vertex)
        for i, row in enumerate(self._matrix):
            row[index] = None
            self._neighbors[i].discard(index)
        self._matrix[index] = [None] * len(self._matrix[index])
        self._neighbors[index] = set()
        del self._code[vertex]

    def remove_edge(self, from_vertex: V, to_vertex: V) -> Optional[E]:
        """Removes an edge.

        Returns:
            Optional[E]: The removed edge, or :const:`None` if there was no such edge.

        Raises:
            VertexNotFoundError: If either vertex is not in the graph.

        """
        from_index = self._index_of(from_vertex)
        to_index = self._index_of(to_vertex)
        removed = self._matrix[from_index][to_index]
        self._matrix[from_index][to_index] = None
        self._neighbors[from_index].discard(to_index)
        return removed

    def edge(self, from_vertex: V, to_vertex: V) -> Optional[E]:
        """Returns the edge from one vertex to another, or :const:`None` if there is none."""
        return self._matrix[self._index_of(from_vertex)][self._index_of(to_vertex)]

    def are_adjacent(self, v: V, u: V) -> bool:
        """Returns whether there is an edge between two vertices in either direction."""
        v_index = self._index_of(v)
        u_index = self._index_of(u)
        return u_index in self._neighbors[v_index] or v_index in self._neighbors[u_index]

    def degree(self, vertex: V) -> int:
        """Returns the number of edges out of the given vertex."""
        return len(self._neighbors[self._index_of(vertex)])

    def vertices(self) -> Iterator[V]:
        """Iterates over the vertices in the order they were inserted."""
        for index, vertex in enumerate(self._decode):
            if self._code.get(vertex) == index:
                yield vertex

    def edges(self) -> Iterator[ForestEdge]:
        """Iterates over every edge as a ``(from_vertex, to_vertex, edge)`` tuple."""
        for from_vertex in self.vertices():
            from_index = self._code[from_vertex]
            for to_index in sorted(self._neighbors[from_index]):
                yield from_vertex, self._decode[to_index], self._matrix[from_index][to_index]

    def size(self) -> int:
        """Returns the number of vertices in the graph."""
        return len(self._code)

    def is_empty(self) -> bool:
        return not self._code

    def __len__(self):
        return len(self._code)

    def __contains__(self, vertex) -> bool:
        return vertex in self._code

    def __repr__(self):
        return f"{self.__class__.__name__}(vertices={list(self.vertices())!r})"

    def minimum_spanning_forest(self, show_progress: bool = False) -> List[ForestEdge]:
        """Calculates a minimum spanning forest using Prim's algorithm.

        Each tree is grown from the lowest-indexed vertex not yet visited. Candidate edges are kept in a
        :class:`FibonacciHeap` as ``(edge, (from_index, to_index))`` tuples, so ties between equal edges are broken
        by vertex index.

        Args:
            show_progress: Whether to display a :mod:`tqdm` progress bar over the vertices.

        Returns:
            List[Tuple[V, V, E]]: The ``(from_vertex, to_vertex, edge)`` tuples of the forest, in the order they were
            added.

        """
        visited: Set[int] = set()
        forest: List[ForestEdge] = []
        with tqdm(total=len(self._code), desc="Spanning", leave=False, unit=" vertices",
                  disable=not show_progress) as progress:
            for index, vertex in enumerate(self._decode):
                if index in visited or self._code.get(vertex) != index:
                    continue
                visited.add(index)
                progress.update(1)
                candidates: FibonacciHeap[Tuple[E, Tuple[int, int]]] = FibonacciHeap()
                self._push_edges(candidates, index, visited)
                while candidates:
                    edge, (from_index, to_index) = candidates.extract_min()
                    if to_index in visited:
                        log.debug(f"Skipping edge {self._decode[from_index]!r} -> {self._decode[to_index]!r}")
                        continue
                    forest.append((self._decode[from_index], self._decode[to_index], edge))
                    visited.add(to_index)
                    progress.update(1)
                    self._push_edges(candidates, to_index, visited)
        log.debug(f"Minimum spanning forest has {len(forest)} edges over {len(self._code)} vertices")
        return forest

    def _push_edges(self, candidates: FibonacciHeap, from_index: int, visited: Set[int]):
        for to_index in self._neighbors[from_index]:
            if to_index not in visited:
                candidates.insert((self._matrix[from_index][to_index], (from_index, to_index)))


def format_forest(forest: Iterable[ForestEdge]) -> str:
    """Formats a minimum spanning forest as space-terminated ``from:to`` pairs, *e.g.*, ``"a:b b:c "``."""
    return ''.join(f"{from_vertex!s}:{to_vertex!s} " for from_vertex, to_vertex, _ in forest)
