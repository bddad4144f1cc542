from .fibonacci import *
from .graph import Graph, format_forest, VertexNotFoundError

from .version import __version__, VERSION_STRING
from . import fibonacci, formats, graph
