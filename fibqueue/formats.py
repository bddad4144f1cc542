"""Loaders for the graph file formats understood by the ``fibqueue`` command.

Each :class:`GraphFormat` subclass registers itself by name and MIME type when it is defined, so :func:`get_format`
and the command line arguments pick it up automatically.

JSON, JSON5, and YAML documents are either a list of edges or a mapping with optional ``vertices`` and ``edges``
lists::

    {
        "vertices": ["a", "b", "c", "isolated"],
        "edges": [["a", "b", 1], {"from": "b", "to": "c", "weight": 2.5}]
    }

CSV files have one ``from,to,weight`` edge per row; a row with a single column declares a vertex.

"""

import csv
import json
import logging
import mimetypes
from abc import ABCMeta, abstractmethod
from typing import Any, Dict, Iterable, Optional, Tuple

import json5
from tqdm import tqdm
from yaml import load_all, YAMLError
try:
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Loader

from .graph import Graph

log = logging.getLogger(__name__)

FORMATS_BY_NAME: Dict[str, 'GraphFormat'] = {}
"""Maps format names to registered formats."""
FORMATS_BY_MIME: Dict[str, 'GraphFormat'] = {}
"""Maps MIME types to registered formats."""


class GraphFormatError(ValueError):
    """Raised when a graph file cannot be parsed."""
    pass


class GraphFormatWatcher(ABCMeta):
    """Metaclass that instantiates every concrete :class:`GraphFormat` subclass, registering it."""
    def __init__(cls, name, bases, clsdict):
        if len(cls.mro()) > 2:
            instance = cls()
            assert FORMATS_BY_NAME[instance.name] is instance
        super().__init__(name, bases, clsdict)


class GraphFormat(metaclass=GraphFormatWatcher):
    """Abstract base class for graph file formats."""
    def __init__(self, name: str, default_mimetype: str, *mime_types: str):
        """Registers a new graph file format.

        Args:
            name: A short name for the format, used on the command line.
            default_mimetype: The default MIME type of the format.
            *mime_types: Zero or more additional MIME types to associate with the format.

        Raises:
            ValueError: If the name or one of the MIME types is already registered.

        """
        self.name: str = name
        self.default_mimetype: str = default_mimetype
        self.mime_types: Tuple[str, ...] = (default_mimetype,) + tuple(mime_types)
        if name in FORMATS_BY_NAME:
            raise ValueError(f"Format {name} is already registered as {FORMATS_BY_NAME[name]!r}")
        for mime_type in self.mime_types:
            if mime_type in FORMATS_BY_MIME:
                raise ValueError(f"MIME type {mime_type} is already assigned to {FORMATS_BY_MIME[mime_type]!r}")
            FORMATS_BY_MIME[mime_type] = self
        FORMATS_BY_NAME[name] = self

    @abstractmethod
    def load(self, path: str) -> Any:
        """Parses the file at :obj:`path` into a document of lists and mappings.

        Raises:
            GraphFormatError: If the file is not valid in this format.

        """
        raise NotImplementedError()

    def __repr__(self):
        return f"{self.__class__.__name__}()"


class JSON(GraphFormat):
    def __init__(self):
        super().__init__('json', 'application/json', 'text/json')

    def load(self, path: str) -> Any:
        with open(path) as f:
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise GraphFormatError(f"{path}: {e!s}") from e


class JSON5(GraphFormat):
    def __init__(self):
        super().__init__('json5', 'application/json5', 'text/x-json5')

    def load(self, path: str) -> Any:
        with open(path) as f:
            try:
                return json5.load(f)
            except ValueError as e:
                raise GraphFormatError(f"{path}: {e!s}") from e


class YAML(GraphFormat):
    def __init__(self):
        super().__init__('yaml', 'application/x-yaml', 'application/yaml', 'text/yaml', 'text/x-yaml')

    def load(self, path: str) -> Any:
        with open(path, 'rb') as stream:
            try:
                documents = list(load_all(stream, Loader=Loader))
            except YAMLError as e:
                raise GraphFormatError(f"{path}: {e!s}") from e
        if not documents:
            return []
        elif len(documents) > 1:
            raise GraphFormatError(f"{path}: expected a single YAML document but found {len(documents)}")
        return documents[0]


def parse_weight(text: str):
    """Parses a CSV cell as an :class:`int`, then as a :class:`float`, and otherwise returns it unchanged."""
    for parser in (int, float):
        try:
            return parser(text)
        except ValueError:
            pass
    return text


class CSV(GraphFormat):
    def __init__(self):
        super().__init__('csv', 'text/csv')

    def load(self, path: str) -> Any:
        vertices = []
        edges = []
        with open(path, newline='') as f:
            try:
                for line, row in enumerate(csv.reader(f), start=1):
                    row = [cell.strip() for cell in row]
                    if not row or not any(row):
                        continue
                    elif len(row) == 1:
                        vertices.append(row[0])
                    elif len(row) == 3:
                        edges.append([row[0], row[1], parse_weight(row[2])])
                    else:
                        raise GraphFormatError(f"{path}:{line}: expected `from,to,weight` but got {len(row)} columns")
            except csv.Error as e:
                raise GraphFormatError(f"{path}: {e!s}") from e
        return {'vertices': vertices, 'edges': edges}


def init_mimetypes():
    """Registers the file extensions that :mod:`mimetypes` does not know about on every platform."""
    mimetypes.init()
    if '.yml' not in mimetypes.types_map and '.yaml' not in mimetypes.types_map:
        mimetypes.add_type('application/x-yaml', '.yml')
        mimetypes.suffix_map['.yaml'] = '.yml'
    elif '.yml' not in mimetypes.types_map:
        mimetypes.suffix_map['.yml'] = '.yaml'
    elif '.yaml' not in mimetypes.types_map:
        mimetypes.suffix_map['.yaml'] = '.yml'
    if '.json5' not in mimetypes.types_map:
        mimetypes.add_type('application/json5', '.json5')
    if '.csv' not in mimetypes.types_map:
        mimetypes.add_type('text/csv', '.csv')


def get_format(path: Optional[str] = None, mime_type: Optional[str] = None) -> GraphFormat:
    """Looks up the graph format for the given path or MIME type.

    If :obj:`mime_type` is provided it takes precedence; otherwise it is guessed from :obj:`path` with
    :func:`mimetypes.guess_type`.

    Raises:
        ValueError: If both arguments are :const:`None`, if the MIME type cannot be guessed, or if no format is
            registered for it.

    """
    if path is None and mime_type is None:
        raise ValueError("get_format requires a path or a MIME type")
    elif mime_type is None:
        init_mimetypes()
        mime_type = mimetypes.guess_type(path)[0]
    if mime_type is None:
        raise ValueError(f"Could not determine the graph format for {path}")
    elif mime_type not in FORMATS_BY_MIME:
        raise ValueError(f"Unsupported MIME type {mime_type} for {path}")
    return FORMATS_BY_MIME[mime_type]


def _parse_edge(edge: Any) -> Tuple[Any, Any, Any]:
    if isinstance(edge, dict):
        try:
            return edge['from'], edge['to'], edge['weight']
        except KeyError as e:
            raise GraphFormatError(f"Edge {edge!r} is missing the {e.args[0]!r} key") from e
    elif isinstance(edge, (list, tuple)) and len(edge) == 3:
        return edge[0], edge[1], edge[2]
    raise GraphFormatError(f"Expected an edge of the form [from, to, weight] but got {edge!r}")


def _hashable(vertex: Any) -> Any:
    if isinstance(vertex, list):
        return tuple(_hashable(v) for v in vertex)
    elif isinstance(vertex, dict):
        raise GraphFormatError(f"A vertex cannot be a mapping: {vertex!r}")
    return vertex


def build_graph(
        document: Any,
        undirected: bool = False,
        show_progress: bool = False
) -> Graph:
    """Builds a :class:`Graph` from a parsed graph document.

    Vertices named by edges are added implicitly. Edges are added in document order, so an edge listed twice keeps
    its last weight.

    Args:
        document: A list of edges, or a mapping with optional ``vertices`` and ``edges`` lists.
        undirected: Whether to add every edge in both directions.
        show_progress: Whether to display a :mod:`tqdm` progress bar over the edges.

    Raises:
        GraphFormatError: If the document is malformed.

    """
    if document is None:
        document = []
    if isinstance(document, dict):
        unknown = set(document.keys()) - {'vertices', 'edges'}
        if unknown:
            raise GraphFormatError(f"Unexpected keys in graph document: {', '.join(map(repr, sorted(unknown)))}")
        vertices: Iterable[Any] = document.get('vertices') or []
        edges: Iterable[Any] = document.get('edges') or []
    elif isinstance(document, list):
        vertices = []
        edges = document
    else:
        raise GraphFormatError(f"Expected a list of edges or a mapping but got {type(document).__name__}")
    if not isinstance(vertices, list) or not isinstance(edges, list):
        raise GraphFormatError("The `vertices` and `edges` entries must be lists")

    graph: Graph = Graph()
    for vertex in vertices:
        graph.insert_vertex(_hashable(vertex))
    for edge in tqdm(edges, desc="Loading", leave=False, unit=" edges", disable=not show_progress):
        from_vertex, to_vertex, weight = _parse_edge(edge)
        from_vertex, to_vertex = _hashable(from_vertex), _hashable(to_vertex)
        if weight is None:
            raise GraphFormatError(f"The edge from {from_vertex!r} to {to_vertex!r} must have a weight")
        graph.insert_vertex(from_vertex)
        graph.insert_vertex(to_vertex)
        pairs = [(from_vertex, to_vertex)]
        if undirected and from_vertex != to_vertex:
            pairs.append((to_vertex, from_vertex))
        for u, v in pairs:
            previous = graph.edge(u, v)
            if previous is not None and previous != weight:
                log.warning(f"Edge {u!r} -> {v!r} is redefined from {previous!r} to {weight!r}")
            graph.insert_edge(u, v, weight)
    log.debug(f"Loaded a graph with {len(graph)} vertices")
    return graph


def load_graph(
        path: str,
        mime_type: Optional[str] = None,
        undirected: bool = False,
        show_progress: bool = False
) -> Graph:
    """Loads a :class:`Graph` from a file, detecting its format with :func:`get_format`."""
    graph_format = get_format(path, mime_type)
    log.debug(f"Loading {path} as {graph_format.name}")
    return build_graph(graph_format.load(path), undirected=undirected, show_progress=show_progress)
