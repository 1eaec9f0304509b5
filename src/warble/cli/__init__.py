"""Warble CLI — serve an app or list its routes.

Entry point registered as ``warble`` in ``pyproject.toml``::

    [project.scripts]
    warble = "warble.cli:main"
"""

import argparse
import sys

DEFAULT_APP = "warble.service:create_app"


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``warble`` command."""
    parser = argparse.ArgumentParser(
        prog="warble",
        description="Warble — a hook-pipeline HTTP service.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- warble run -------------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve until SIGINT/SIGTERM")
    run_parser.add_argument(
        "app",
        nargs="?",
        default=DEFAULT_APP,
        help=f"Import string (default: {DEFAULT_APP})",
    )
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Bind port number")
    run_parser.add_argument(
        "--log-level",
        default=None,
        choices=["debug", "info", "warning", "error", "critical"],
        help="Log level (default: from config)",
    )
    run_parser.add_argument(
        "--log-format",
        default=None,
        choices=["text", "json"],
        help="Log line format (default: from config)",
    )

    # -- warble routes ----------------------------------------------------
    routes_parser = subparsers.add_parser("routes", help="List registered routes")
    routes_parser.add_argument(
        "app",
        nargs="?",
        default=DEFAULT_APP,
        help=f"Import string (default: {DEFAULT_APP})",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from warble.cli._run import run_server

        run_server(args)
    elif args.command == "routes":
        from warble.cli._routes import run_routes

        run_routes(args)
