"""Logging setup for the warble process.

Library modules only create ``warble.*`` loggers; nothing is configured
until ``configure_logging()`` runs (the CLI calls it before serving).
``fmt="json"`` writes one JSON object per line, ``"text"`` a readable
line per record.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

# Attributes every LogRecord has; anything else was passed via ``extra=``.
_RESERVED = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# uvicorn logs under its own names; keep them at the app's level.
_SERVER_LOGGERS = ("uvicorn", "uvicorn.error", "uvicorn.access")

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Format records as single-line JSON objects."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED and not key.startswith("_"):
                entry[key] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(
    level: str = "debug",
    fmt: str = "text",
    *,
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a single stream handler on the ``warble`` logger.

    Calling it again replaces the handler installed by the previous call,
    so it is safe to call from tests and from the CLI alike.

    Returns:
        The installed handler.
    """
    numeric = logging.getLevelNamesMapping().get(level.upper())
    if numeric is None:
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.set_name("warble")
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger("warble")
    for existing in list(root.handlers):
        if existing.get_name() == "warble":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False

    for name in _SERVER_LOGGERS:
        logging.getLogger(name).setLevel(numeric)
    uvicorn_root = logging.getLogger("uvicorn")
    for existing in list(uvicorn_root.handlers):
        if existing.get_name() == "warble":
            uvicorn_root.removeHandler(existing)
    uvicorn_root.addHandler(handler)
    uvicorn_root.propagate = False

    return handler
