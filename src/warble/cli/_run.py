"""``warble run`` — serve an app until SIGINT/SIGTERM.

Configuration comes from ``WARBLE_*`` environment variables; the
``--host``, ``--port``, ``--log-level`` and ``--log-format`` flags take
precedence. The process exits with the lifecycle's exit code.
"""

import argparse
import dataclasses
import sys

from warble.cli._resolve import resolve_app
from warble.config import AppConfig
from warble.errors import ConfigurationError
from warble.logs import configure_logging


def run_server(args: argparse.Namespace) -> None:
    """Resolve ``args.app``, configure logging and serve.

    Always ends with ``SystemExit``: ``0`` after a clean close, ``1`` if
    the app cannot be loaded, the port cannot be bound, or closing fails.
    """
    try:
        config = AppConfig.from_env()
        overrides = {
            name: value
            for name, value in (
                ("host", args.host),
                ("port", args.port),
                ("log_level", args.log_level),
                ("log_format", args.log_format),
            )
            if value is not None
        }
        config = dataclasses.replace(config, **overrides)
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    configure_logging(config.log_level, config.log_format)

    try:
        app = resolve_app(args.app, config)
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    # An App instance resolved as-is keeps its own config; flags still win.
    host = args.host or app.config.host
    port = args.port if args.port is not None else app.config.port

    raise SystemExit(app.run(host, port))
