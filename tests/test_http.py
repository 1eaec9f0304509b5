"""Tests for warble.http — headers, request body access and responses."""

import pytest

from warble.errors import ClientDisconnected, PayloadTooLarge
from warble.http.headers import Headers
from warble.http.request import Request
from warble.http.response import JSON_CONTENT_TYPE, Response


def _receiver(*chunks: bytes):
    messages = [
        {"type": "http.request", "body": chunk, "more_body": i < len(chunks) - 1}
        for i, chunk in enumerate(chunks)
    ]
    calls = {"count": 0}

    async def receive() -> dict:
        calls["count"] += 1
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return receive, calls


def _request(*chunks: bytes, headers: dict[str, str] | None = None) -> tuple[Request, dict]:
    receive, calls = _receiver(*chunks)
    scope = {
        "type": "http",
        "method": "POST",
        "path": "/api/users/",
        "headers": list(Headers.from_pairs(headers).raw),
        "query_string": b"a=1",
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 5000),
    }
    return Request.from_asgi(scope, receive), calls


class TestHeaders:
    def test_case_insensitive_lookup(self) -> None:
        headers = Headers(((b"Content-Type", b"application/json"),))
        assert headers["content-type"] == "application/json"
        assert headers.get("CONTENT-TYPE") == "application/json"
        assert "Content-type" in headers

    def test_missing_header(self) -> None:
        headers = Headers()
        assert headers.get("x-missing") is None
        assert headers.get("x-missing", "d") == "d"
        with pytest.raises(KeyError):
            headers["x-missing"]

    def test_repeated_header(self) -> None:
        headers = Headers(((b"accept", b"a"), (b"Accept", b"b")))
        assert headers["accept"] == "a"
        assert list(headers) == ["accept"]
        assert len(headers) == 1

    def test_from_pairs(self) -> None:
        headers = Headers.from_pairs({"X-Token": "abc"})
        assert headers.raw == ((b"x-token", b"abc"),)


class TestRequest:
    def test_from_asgi(self) -> None:
        request, _ = _request(headers={"content-type": "application/json"})
        assert request.method == "POST"
        assert request.path == "/api/users/"
        assert request.query_string == b"a=1"
        assert request.client == ("127.0.0.1", 5000)
        assert request.is_json

    def test_content_length(self) -> None:
        request, _ = _request(headers={"content-length": "12"})
        assert request.content_length == 12
        bad, _ = _request(headers={"content-length": "twelve"})
        assert bad.content_length is None

    async def test_body_joins_chunks(self) -> None:
        request, _ = _request(b'{"name":', b'"Ada"}')
        assert await request.body() == b'{"name":"Ada"}'

    async def test_body_is_cached(self) -> None:
        request, calls = _request(b"abc")
        await request.body()
        await request.body()
        assert calls["count"] == 1

    async def test_json(self) -> None:
        request, _ = _request(b'{"name": "Ada"}')
        assert await request.json() == {"name": "Ada"}

    async def test_invalid_json_raises_value_error(self) -> None:
        request, _ = _request(b"{nope")
        with pytest.raises(ValueError):
            await request.json()

    async def test_declared_length_over_limit(self) -> None:
        request, calls = _request(b"x" * 5, headers={"content-length": "500"})
        with pytest.raises(PayloadTooLarge):
            await request.body(limit=100)
        assert calls["count"] == 0

    async def test_streamed_length_over_limit(self) -> None:
        request, _ = _request(b"x" * 60, b"x" * 60)
        with pytest.raises(PayloadTooLarge):
            await request.body(limit=100)

    async def test_failure_is_remembered(self) -> None:
        request, calls = _request(b"x" * 60, b"x" * 60)
        with pytest.raises(PayloadTooLarge):
            await request.body(limit=100)
        with pytest.raises(PayloadTooLarge):
            await request.body()
        assert calls["count"] == 2

    async def test_disconnect_mid_body(self) -> None:
        messages = [{"type": "http.request", "body": b"partial", "more_body": True}]

        async def receive() -> dict:
            return messages.pop(0) if messages else {"type": "http.disconnect"}

        request = Request.from_asgi({"method": "post", "path": "/"}, receive)
        with pytest.raises(ClientDisconnected, match="during POST /"):
            await request.body()

    async def test_wait_disconnect_skips_other_messages(self) -> None:
        request, calls = _request(b"abc")
        await request.body()
        await request.wait_disconnect()
        assert calls["count"] == 2


class TestResponse:
    def test_defaults(self) -> None:
        response = Response()
        assert response.status == 200
        assert response.body == ""
        assert response.content_type.startswith("text/plain")

    def test_from_json_is_compact(self) -> None:
        response = Response.from_json({"message": "Hello World"})
        assert response.text == '{"message":"Hello World"}'
        assert response.content_type == JSON_CONTENT_TYPE
        assert response.is_json

    def test_with_status_returns_new_response(self) -> None:
        original = Response("x")
        changed = original.with_status(201)
        assert original.status == 200
        assert changed.status == 201

    def test_headers(self) -> None:
        response = Response().with_header("X-A", "1").with_headers({"X-B": "2"})
        assert response.header("x-a") == "1"
        assert response.header("X-B") == "2"
        assert response.header("x-c") is None

    def test_body_bytes(self) -> None:
        assert Response("é").body_bytes == "é".encode()
        assert Response(b"raw").body_bytes == b"raw"

    def test_json(self) -> None:
        assert Response.from_json([1, 2]).json() == [1, 2]

    def test_frozen(self) -> None:
        with pytest.raises(AttributeError):
            Response().status = 500  # type: ignore[misc]
