"""Tests for warble.config — AppConfig frozen dataclass."""

import pytest

from warble.config import AppConfig
from warble.errors import ConfigurationError


class TestAppConfig:
    def test_defaults(self) -> None:
        cfg = AppConfig()

        assert cfg.host == "0.0.0.0"
        assert cfg.port == 3000
        assert cfg.debug is False
        assert cfg.log_level == "debug"
        assert cfg.log_format == "text"
        assert cfg.drain_timeout == 30.0
        assert cfg.enforce_response_schema is False
        assert cfg.database_url == "mongodb://localhost:27017/test"
        assert cfg.max_content_length == 1024 * 1024

    def test_override(self) -> None:
        cfg = AppConfig(host="127.0.0.1", port=8080, debug=True)

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8080
        assert cfg.debug is True

    def test_frozen(self) -> None:
        cfg = AppConfig()

        with pytest.raises(AttributeError):
            cfg.debug = True  # type: ignore[misc]

    def test_port_zero_allowed(self) -> None:
        assert AppConfig(port=0).port == 0

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"port": -1},
            {"port": 70000},
            {"drain_timeout": -1.0},
            {"log_level": "loud"},
            {"log_format": "xml"},
        ],
    )
    def test_invalid_values_rejected(self, kwargs: dict) -> None:
        with pytest.raises(ConfigurationError):
            AppConfig(**kwargs)


class TestFromEnv:
    def test_empty_environment_gives_defaults(self) -> None:
        assert AppConfig.from_env({}) == AppConfig()

    def test_reads_prefixed_variables(self) -> None:
        cfg = AppConfig.from_env(
            {
                "WARBLE_HOST": "127.0.0.1",
                "WARBLE_PORT": "8080",
                "WARBLE_DEBUG": "true",
                "WARBLE_DRAIN_TIMEOUT": "2.5",
                "WARBLE_LOG_FORMAT": "json",
            }
        )

        assert cfg.host == "127.0.0.1"
        assert cfg.port == 8080
        assert cfg.debug is True
        assert cfg.drain_timeout == 2.5
        assert cfg.log_format == "json"

    def test_custom_prefix(self) -> None:
        cfg = AppConfig.from_env({"APP_PORT": "9000", "WARBLE_PORT": "1"}, prefix="APP_")
        assert cfg.port == 9000

    @pytest.mark.parametrize("raw", ["0", "false", "no", "off"])
    def test_false_booleans(self, raw: str) -> None:
        cfg = AppConfig.from_env({"WARBLE_ENFORCE_RESPONSE_SCHEMA": raw})
        assert cfg.enforce_response_schema is False

    def test_bad_int_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="WARBLE_PORT|port"):
            AppConfig.from_env({"WARBLE_PORT": "three thousand"})

    def test_bad_bool_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="debug"):
            AppConfig.from_env({"WARBLE_DEBUG": "maybe"})

    def test_reads_os_environ_by_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("WARBLE_PORT", "4321")
        assert AppConfig.from_env().port == 4321
