"""Tests for warble.data.connector — the placeholder database connector."""

import logging

import pytest

from warble.app import App
from warble.data.connector import Connector, NullConnector
from warble.testing import TestClient


class TestNullConnector:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(NullConnector(), Connector)

    def test_default_url(self) -> None:
        assert NullConnector().url == "mongodb://localhost:27017/test"

    def test_display_url_masks_password(self) -> None:
        connector = NullConnector("mongodb://admin:hunter2@db:27017/app")
        assert connector.display_url == "mongodb://admin:***@db:27017/app"
        assert "hunter2" not in repr(connector)

    def test_display_url_without_password(self) -> None:
        connector = NullConnector("mongodb://db:27017/app")
        assert connector.display_url == "mongodb://db:27017/app"

    async def test_connect_disconnect(self, caplog: pytest.LogCaptureFixture) -> None:
        connector = NullConnector("mongodb://user:secret@db/app")
        with caplog.at_level(logging.INFO, logger="warble.data"):
            await connector.connect()
            assert connector.connected
            await connector.disconnect()
            assert not connector.connected

        messages = [r.getMessage() for r in caplog.records if r.name == "warble.data"]
        assert messages == [
            "Connected to database at mongodb://user:***@db/app",
            "Disconnected from database",
        ]

    async def test_idempotent(self, caplog: pytest.LogCaptureFixture) -> None:
        connector = NullConnector()
        with caplog.at_level(logging.INFO, logger="warble.data"):
            await connector.connect()
            await connector.connect()
            await connector.disconnect()
            await connector.disconnect()
        assert len([r for r in caplog.records if r.name == "warble.data"]) == 2


class TestAppConnector:
    async def test_default_connector_uses_config_url(self) -> None:
        from warble.config import AppConfig

        app = App(AppConfig(database_url="mongodb://other:27017/x"))
        assert isinstance(app._connector, NullConnector)
        assert app._connector.url == "mongodb://other:27017/x"

    async def test_connected_for_the_client_lifetime(self) -> None:
        connector = NullConnector()
        app = App(connector=connector)

        async with TestClient(app):
            assert connector.connected
        assert not connector.connected
