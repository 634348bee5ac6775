"""
=============================================================================
USER API CLI ENTRY POINT
=============================================================================

    # Defaults (127.0.0.1:8080), overridable through USERAPI_* variables
    python -m userapi

    # Custom port
    python -m userapi --port 3000

    # Listen on all interfaces, JSON access log (containers)
    python -m userapi --host 0.0.0.0 --log-format json

    # More worker threads
    python -m userapi --workers 32

Settings resolve as flags, then environment, then defaults
(see ServerConfig.from_env).

Exit status is 0 after a clean SIGINT/SIGTERM shutdown and 1 when the
server cannot start, e.g. the port is already taken.

=============================================================================
"""

import argparse
import sys

from . import __version__
from .app import create_app
from .config import LOG_FORMATS, ServerConfig


def build_parser(defaults: ServerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="userapi",
        description="In-memory user management HTTP service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m userapi                         # Run with defaults
  python -m userapi --port 3000             # Custom port
  python -m userapi --host 0.0.0.0          # Listen on all interfaces
  python -m userapi --log-format json       # Machine-readable access log
        """
    )

    # ─────────────────────────────────────────────────────────────────────
    # NETWORK
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
        help=f"Port to listen on, 0 for any free port (default: {defaults.port})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # PERFORMANCE
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--workers", "-w",
        type=int,
        default=defaults.max_workers,
        help=f"Maximum worker threads (default: {defaults.max_workers})"
    )

    # ─────────────────────────────────────────────────────────────────────
    # LOGGING
    # ─────────────────────────────────────────────────────────────────────

    parser.add_argument(
        "--log-level", "-l",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=defaults.log_level,
        help=f"Logging level (default: {defaults.log_level})"
    )
    parser.add_argument(
        "--log-format",
        choices=LOG_FORMATS,
        default=defaults.log_format,
        help=f"Access log format (default: {defaults.log_format})"
    )

    parser.add_argument(
        "--version", "-v",
        action="version",
        version=f"userapi {__version__}"
    )
    return parser


def config_from_args(args: argparse.Namespace, defaults: ServerConfig) -> ServerConfig:
    return ServerConfig(
        host=args.host,
        port=args.port,
        min_workers=min(defaults.min_workers, args.workers),
        max_workers=args.workers,
        timeout=defaults.timeout,
        log_level=args.log_level,
        log_format=args.log_format,
    )


def main(argv=None):
    try:
        defaults = ServerConfig.from_env()
    except ValueError as e:
        print(f"Error: invalid environment: {e}", file=sys.stderr)
        sys.exit(1)

    args = build_parser(defaults).parse_args(argv)

    try:
        server = create_app(config_from_args(args, defaults))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    server.print_banner()

    try:
        server.run()
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
