import argparse
import logging
import os
import sys
import tempfile
from typing import Optional

from . import formats
from . import version
from .graph import format_forest, VertexNotFoundError


log = logging.getLogger('fibqueue')


class PathOrStdin:
    """Context manager yielding a path to read, copying STDIN to a temporary file when the path is ``-``."""
    def __init__(self, path: str):
        self._path: str = path
        self._temp_path: Optional[str] = None

    def __enter__(self) -> str:
        if self._path != '-':
            return self._path
        with tempfile.NamedTemporaryFile(delete=False) as temp:
            temp.write(sys.stdin.buffer.read())
            self._temp_path = temp.name
        return self._temp_path

    def __exit__(self, *args, **kwargs):
        if self._temp_path is not None:
            os.unlink(self._temp_path)
            self._temp_path = None


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description='Computes the minimum spanning forest of a weighted graph using a Fibonacci heap.'
    )
    parser.add_argument('GRAPH_PATH', type=str, nargs='?', default='-',
                        help='the graph file to read; pass \'-\' to read from STDIN')
    format_group = parser.add_argument_group(title='input file types').add_mutually_exclusive_group()
    format_group.add_argument(
        '--mime',
        type=str,
        default=None,
        help='explicitly specify the MIME type of the graph file',
        choices=formats.FORMATS_BY_MIME.keys()
    )
    for name, graph_format in sorted(formats.FORMATS_BY_NAME.items()):
        format_group.add_argument(
            f'--{name}',
            dest='mime',
            action='store_const',
            const=graph_format.default_mimetype,
            help=f'equivalent to `--mime {graph_format.default_mimetype}`'
        )
    parser.add_argument('--undirected', '-u', action='store_true',
                        help='treat every edge as undirected by inserting it in both directions')
    parser.add_argument('--weights', '-w', action='store_true',
                        help='print one `FROM TO WEIGHT` line per forest edge rather than a single line of '
                             '`FROM:TO` pairs')
    parser.add_argument(
        '--no-status',
        action='store_true',
        help='do not display progress bars'
    )
    log_section = parser.add_argument_group(title='logging')
    log_group = log_section.add_mutually_exclusive_group()
    log_group.add_argument('--log-level', type=str, default='INFO', choices=list(
        logging.getLevelName(x)
        for x in range(1, 101)
        if not logging.getLevelName(x).startswith('Level')
    ), help='sets the log level for fibqueue (default=INFO)')
    log_group.add_argument('--debug', action='store_true', help='equivalent to `--log-level=DEBUG`')
    log_group.add_argument('--quiet', action='store_true', help='equivalent to `--log-level=CRITICAL --no-status`')
    parser.add_argument('--version', '-v', action='store_true', help='print fibqueue\'s version information to STDERR')
    parser.add_argument('-dumpversion', action='store_true',
                        help='print fibqueue\'s raw version information to STDOUT and exit')

    if argv is None:
        argv = sys.argv

    args = parser.parse_args(argv[1:])

    if args.debug:
        numeric_log_level = logging.DEBUG
    elif args.quiet:
        numeric_log_level = logging.CRITICAL
    else:
        numeric_log_level = getattr(logging, args.log_level.upper(), None)
        if not isinstance(numeric_log_level, int):
            sys.stderr.write(f'Invalid log level: {args.log_level}\n')
            return 1

    if args.dumpversion:
        print(version.VERSION_STRING)
        return 0

    if args.version:
        sys.stderr.write(f"fibqueue version {version.VERSION_STRING}\n")
        if args.GRAPH_PATH == '-':
            return 0

    logging.basicConfig(level=numeric_log_level, stream=sys.stderr)
    show_progress = not (args.no_status or args.quiet)

    try:
        with PathOrStdin(args.GRAPH_PATH) as path:
            graph = formats.load_graph(
                path,
                mime_type=args.mime,
                undirected=args.undirected,
                show_progress=show_progress
            )
        try:
            forest = graph.minimum_spanning_forest(show_progress=show_progress)
        except TypeError as e:
            raise ValueError(f"The edge weights of {args.GRAPH_PATH} cannot be compared with each other: {e!s}") from e
    except (OSError, ValueError, VertexNotFoundError) as e:
        log.debug(f"Failed to process {args.GRAPH_PATH}", exc_info=e)
        sys.stderr.write(f"{e!s}\n")
        return 1
    except KeyboardInterrupt:
        sys.stderr.write("Interrupted\n")
        return 1

    if args.weights:
        for from_vertex, to_vertex, edge in forest:
            print(f"{from_vertex!s} {to_vertex!s} {edge!s}")
    else:
        print(format_forest(forest))
    return 0


if __name__ == '__main__':
    sys.exit(main())
