"""``warble routes`` — list registered routes.

Resolves an import string to a warble App and prints every route with
its methods, path, group, body schema and handler.
"""

import argparse
import sys

from warble.cli._resolve import resolve_app
from warble.errors import ConfigurationError


def run_routes(args: argparse.Namespace) -> None:
    """Print a table of METHOD, PATH, GROUP, BODY and HANDLER."""
    try:
        app = resolve_app(args.app)
        routes = app.routes
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, ...]] = [("METHOD", "PATH", "GROUP", "BODY", "HANDLER")]
    for route in routes:
        handler_name = getattr(route.handler, "__name__", str(route.handler))
        if route.name:
            handler_name = f"{handler_name} ({route.name})"
        rows.append(
            (
                ", ".join(sorted(route.methods)),
                route.path,
                route.group or "-",
                route.body_schema.id if route.body_schema else "-",
                handler_name,
            )
        )

    widths = [max(len(row[i]) for row in rows) for i in range(len(rows[0]) - 1)]
    for index, row in enumerate(rows):
        cells = [cell.ljust(width) for cell, width in zip(row, widths, strict=False)]
        print("  ".join([*cells, row[-1]]).rstrip())
        if index == 0:
            print("-" * min(sum(widths) + 2 * len(widths) + len("HANDLER"), 80))
