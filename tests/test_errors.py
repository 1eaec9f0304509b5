"""Tests for warble.errors — exception hierarchy and error messages."""

import errno

import pytest

from warble.errors import (
    BindError,
    ConfigurationError,
    DuplicateRoute,
    DuplicateSchema,
    HookError,
    HTTPError,
    NotFound,
    PayloadTooLarge,
    SchemaError,
    ServiceUnavailable,
    ShutdownError,
    StartupError,
    ValidationError,
    WarbleError,
)
from warble.validation.result import Violation


class TestHierarchy:
    def test_http_error_is_warble_error(self) -> None:
        assert issubclass(HTTPError, WarbleError)

    @pytest.mark.parametrize(
        "cls",
        [NotFound, ValidationError, PayloadTooLarge, ServiceUnavailable, HookError],
    )
    def test_request_errors_are_http_errors(self, cls: type) -> None:
        assert issubclass(cls, HTTPError)

    @pytest.mark.parametrize("cls", [DuplicateRoute, DuplicateSchema, SchemaError])
    def test_setup_errors_are_configuration_errors(self, cls: type) -> None:
        assert issubclass(cls, ConfigurationError)

    @pytest.mark.parametrize("cls", [BindError, StartupError, ShutdownError])
    def test_process_errors_are_not_http_errors(self, cls: type) -> None:
        assert issubclass(cls, WarbleError)
        assert not issubclass(cls, HTTPError)


class TestHTTPError:
    def test_status_and_detail(self) -> None:
        err = HTTPError(status=400, detail="Bad request body")
        assert err.status == 400
        assert err.detail == "Bad request body"

    def test_str_with_detail(self) -> None:
        assert str(HTTPError(status=400, detail="Bad request body")) == "400: Bad request body"

    def test_str_without_detail(self) -> None:
        assert str(HTTPError(status=500)) == "500"

    def test_not_found_default_detail(self) -> None:
        err = NotFound()
        assert err.status == 404
        assert err.detail == "Not Found"


class TestValidationError:
    def test_collects_violations(self) -> None:
        violations = [Violation("/name", "required", "is required")]
        err = ValidationError(violations)
        assert err.status == 400
        assert err.violations == tuple(violations)

    def test_detail_lists_paths(self) -> None:
        err = ValidationError(
            [Violation("/name", "required", "is required"), Violation("", "json", "bad")]
        )
        assert err.detail == "/name is required; / bad"

    def test_explicit_detail_wins(self) -> None:
        err = ValidationError([], "nope")
        assert err.detail == "nope"


class TestOtherErrors:
    def test_duplicate_route_message(self) -> None:
        err = DuplicateRoute("GET", "/users")
        assert err.method == "GET"
        assert err.path == "/users"
        assert "GET '/users'" in str(err)

    def test_duplicate_schema_message(self) -> None:
        err = DuplicateSchema("userSchema")
        assert err.schema_id == "userSchema"
        assert "userSchema" in str(err)

    def test_payload_too_large(self) -> None:
        err = PayloadTooLarge(10)
        assert err.status == 413
        assert "10 bytes" in err.detail

    def test_service_unavailable_closes_connection(self) -> None:
        err = ServiceUnavailable()
        assert err.status == 503
        assert ("Connection", "close") in err.headers

    def test_hook_error_names_phase_and_hook(self) -> None:
        err = HookError("preHandler", "load_user")
        assert err.status == 500
        assert err.phase == "preHandler"
        assert err.hook == "load_user"
        assert err.detail == "Internal Server Error"
        assert str(err) == "preHandler hook 'load_user' failed"

    def test_bind_error_message(self) -> None:
        reason = OSError(errno.EADDRINUSE, "Address already in use")
        err = BindError("0.0.0.0", 3000, reason)
        assert err.host == "0.0.0.0"
        assert err.port == 3000
        assert str(err) == "Cannot bind 0.0.0.0:3000: Address already in use"
