"""Application configuration.

AppConfig is a frozen dataclass — immutable after creation, IDE-autocompletable,
no string-key dict lookups.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields

from warble.errors import ConfigurationError

_TRUE = frozenset({"1", "true", "yes", "on"})
_FALSE = frozenset({"0", "false", "no", "off", ""})
_LOG_LEVELS = frozenset({"debug", "info", "warning", "error", "critical"})
_LOG_FORMATS = frozenset({"text", "json"})


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(port=8080, log_level="info")

    or read them from ``WARBLE_*`` environment variables with
    :meth:`from_env`.
    """

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    debug: bool = False

    # Shutdown: seconds to wait for in-flight requests before force-closing
    drain_timeout: float = 30.0

    # Logging
    log_level: str = "debug"
    log_format: str = "text"  # "text" or "json"

    # Schemas
    enforce_response_schema: bool = False

    # Persistence (connector is a placeholder, the URL is only logged)
    database_url: str = "mongodb://localhost:27017/test"

    # Limits
    max_content_length: int = 1024 * 1024  # 1 MiB

    def __post_init__(self) -> None:
        if not 0 <= self.port <= 65535:
            msg = f"port must be between 0 and 65535, got {self.port}"
            raise ConfigurationError(msg)
        if self.drain_timeout < 0:
            msg = f"drain_timeout must be >= 0, got {self.drain_timeout}"
            raise ConfigurationError(msg)
        if self.log_level.lower() not in _LOG_LEVELS:
            msg = f"log_level must be one of {sorted(_LOG_LEVELS)}, got {self.log_level!r}"
            raise ConfigurationError(msg)
        if self.log_format not in _LOG_FORMATS:
            msg = f"log_format must be one of {sorted(_LOG_FORMATS)}, got {self.log_format!r}"
            raise ConfigurationError(msg)

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        prefix: str = "WARBLE_",
    ) -> AppConfig:
        """Build a config from environment variables.

        Each field maps to ``{prefix}{FIELD_NAME}``, e.g. ``WARBLE_PORT``.
        Unset variables keep the field default.

        Raises:
            ConfigurationError: If a value cannot be coerced to the
                field's type.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, object] = {}
        for f in fields(cls):
            raw = env.get(f"{prefix}{f.name.upper()}")
            if raw is None:
                continue
            overrides[f.name] = _coerce(f.name, f.type, raw)
        return cls(**overrides)


def _coerce(name: str, annotation: object, raw: str) -> object:
    """Convert an environment string to the annotated field type."""
    kind = annotation if isinstance(annotation, str) else getattr(annotation, "__name__", "")
    try:
        if kind == "bool":
            value = raw.strip().lower()
            if value in _TRUE:
                return True
            if value in _FALSE:
                return False
            raise ValueError(raw)
        if kind == "int":
            return int(raw)
        if kind == "float":
            return float(raw)
    except ValueError:
        msg = f"Invalid value for {name}: {raw!r} is not a valid {kind}"
        raise ConfigurationError(msg) from None
    return raw
