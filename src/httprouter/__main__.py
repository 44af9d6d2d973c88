"""
=============================================================================
CLI ENTRY POINT
=============================================================================

    # Defaults (127.0.0.1:4221, 4 workers)
    python -m httprouter

    # Custom port, verbose logging
    python -m httprouter --port 3000 --log-level DEBUG

    # One connection at a time on the accept thread
    python -m httprouter --workers 0

Defaults come from the environment (HTTP_HOST, HTTP_PORT, HTTP_WORKERS,
HTTP_TIMEOUT, HTTP_LOG_LEVEL); flags override them.

=============================================================================
"""

import argparse
import sys
from typing import Optional, Sequence

from . import __version__
from .app import build_router
from .config import ServerConfig
from .server import HTTPServer


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="httprouter",
        description="Minimal HTTP/1.1 request router over raw TCP sockets",
    )

    parser.add_argument(
        "--host", "-H",
        default=defaults.host,
        help=f"Host to bind to (default: {defaults.host})",
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=defaults.port,
        help=f"Port to listen on (default: {defaults.port})",
    )
    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.workers,
        help=f"Worker threads, 0 to serve inline (default: {defaults.workers})",
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=defaults.timeout,
        help=f"Per-connection timeout in seconds (default: {defaults.timeout})",
    )
    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level.upper(),
        help=f"Logging level (default: {defaults.log_level})",
    )
    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"httprouter {__version__}",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Parse arguments, build the demo router and serve it until stopped."""
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: bad environment setting: {e}", file=sys.stderr)
        return 1

    args = build_parser(defaults).parse_args(argv)

    config = ServerConfig(
        host=args.host,
        port=args.port,
        workers=args.workers,
        timeout=args.timeout,
        log_level=args.log_level,
    )

    try:
        server = HTTPServer(build_router(), config)
        server.run()
    except (OSError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
