"""
=============================================================================
LOOKUP SERVER CLI ENTRY POINT
=============================================================================

    # Serve /items/:id on port 8080, token "s3cret", 200 ms per request
    python -m lookupserver -a s3cret -t 200

    # Different route and port
    lookup-server -p 3000 -r /users/ -a s3cret

    # Token from the environment, JSON access log
    LOOKUP_AUTH_TOKEN=s3cret lookup-server --log-format json

Command-line arguments win over LOOKUP_* environment variables, which win
over the ServerConfig defaults. An invalid configuration (a route with
more than one segment, no token, a negative delay) exits with status 2
before any socket is opened.

=============================================================================
"""

import argparse
import os
import sys
from typing import Optional, Sequence

from . import __version__
from .config import ServerConfig, ConfigError
from .server import LookupServer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lookup-server",
        description=(
            "Test double for an inventory lookup service: authorization, "
            "a fixed concurrency ceiling and simulated processing time"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  lookup-server -a s3cret                   # /items/:id on port 8080
  lookup-server -a s3cret -t 250            # 250 ms per request
  lookup-server -p 3000 -r /users/ -a tok   # /users/:id on port 3000
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOOKUP ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--route", "-r",
        default=None,
        help="Top-level route to serve (default: /items/)"
    )

    parser.add_argument(
        "--authorization", "-a",
        dest="auth_token",
        default=None,
        help="Authorization header value to require "
             "(required unless LOOKUP_AUTH_TOKEN is set)"
    )

    parser.add_argument(
        "--time", "-t",
        dest="processing_delay_ms",
        type=int,
        default=None,
        help="Processing time per request in milliseconds (default: 0)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port to listen on (default: 8080)"
    )

    parser.add_argument(
        "--host",
        default=None,
        help="Host to bind to (default: 127.0.0.1, use 0.0.0.0 for containers)"
    )

    parser.add_argument(
        "--workers", "-w",
        dest="max_workers",
        type=int,
        default=None,
        help="Maximum worker threads (default: 32)"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING ARGUMENTS
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: INFO)"
    )

    parser.add_argument(
        "--log-format",
        choices=["text", "json"],
        default=None,
        help="Access log format (default: text)"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"lookup-server {__version__}"
    )

    return parser


def main(argv: Optional[Sequence[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.auth_token is None and not os.getenv("LOOKUP_AUTH_TOKEN"):
        parser.error("the following arguments are required: -a/--authorization")

    try:
        config = ServerConfig.from_env(**vars(args))
        server = LookupServer(config)
    except ConfigError as e:
        parser.error(str(e))

    try:
        server.run()
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
