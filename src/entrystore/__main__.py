"""
=============================================================================
ENTRYSTORE CLI ENTRY POINT
=============================================================================

    # Run with defaults (0.0.0.0:8080, ./data.json)
    python -m entrystore

    # Custom port and data file
    python -m entrystore --port 3000 --data-file /var/lib/entrystore/data.json

    # Cap concurrent connections (503 beyond the cap)
    python -m entrystore --max-connections 256

    # Give up on clients that stall for 30 seconds
    python -m entrystore --timeout 30

Every flag defaults to the matching ENTRYSTORE_* environment variable (see
ServerConfig.from_env), so flags override the environment.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .server import EntryServer
from .config import LOG_FORMATS, ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    """Build the argument parser, with defaults taken from `defaults`."""
    parser = argparse.ArgumentParser(
        prog="entrystore",
        description="Minimal network data-entry store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m entrystore                          # Run with defaults
  python -m entrystore --port 3000              # Custom port
  python -m entrystore --data-file ./todo.json  # Custom data file
  python -m entrystore --max-connections 256    # Cap concurrent handlers
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})"
    )

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})"
    )

    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout,
        help="Client read timeout in seconds (default: wait forever)"
    )

    parser.add_argument(
        "--max-connections", "-m",
        type=int,
        default=defaults.max_connections,
        help="Maximum concurrent connections, extra ones get 503 (default: unbounded)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # STORAGE ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--data-file", "-d",
        default=defaults.data_file,
        help=f"JSON file holding the collection (default: {defaults.data_file})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level.upper()})"
    )

    parser.add_argument(
        "--log-format",
        choices=list(LOG_FORMATS),
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"EntryStore {__version__}"
    )

    return parser


def config_from_args(args: argparse.Namespace) -> ServerConfig:
    """Translate parsed CLI arguments to a ServerConfig."""
    return ServerConfig(
        host=args.host,
        port=args.port,
        timeout=args.timeout,
        max_connections=args.max_connections,
        data_file=args.data_file,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv=None) -> int:
    """
    Main CLI entry point.

    Returns:
        Process exit code.
    """
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment configuration: {e}", file=sys.stderr)
        return 1

    args = build_parser(defaults).parse_args(argv)

    try:
        server = EntryServer(config_from_args(args))
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
