"""Unit tests for network data models."""

from types import NoneType

import httpx
import pytest

from authfetch.features.network.models import (
    AuthenticatorError,
    BadResponseError,
    Failure,
    HttpError,
    InterceptorError,
    NetworkError,
    NoDataError,
    Resource,
    Success,
    TransportError,
)
from authfetch.features.network.status import HttpStatusCode
from tests.helpers.network import make_request


class TestResource:
    """Tests for Resource body narrowing."""

    def test_defaults(self) -> None:
        """Test the default remote and local types and error parser."""
        resource: Resource[bytes] = Resource(make_request())

        assert resource.remote_type is bytes
        assert resource.local_type is bytes
        assert resource.expects_no_content is False
        assert resource.error_parser(b"anything") is None

    def test_unit_local_type(self) -> None:
        """Test that NoneType marks a resource expecting no content."""
        resource: Resource[bytes] = Resource(make_request(), local_type=NoneType)

        assert resource.expects_no_content is True

    @pytest.mark.parametrize("body", [None, b""])
    def test_missing_body_does_not_narrow(self, body: bytes | None) -> None:
        """Test that an absent or empty body never narrows."""
        assert Resource(make_request()).narrow_body(body) is None

    def test_bytes_remote_type(self) -> None:
        """Test that bytes narrow to themselves."""
        assert Resource(make_request()).narrow_body(b"data") == b"data"

    def test_str_remote_type(self) -> None:
        """Test that UTF-8 bodies narrow to str and others do not."""
        resource: Resource[str] = Resource(make_request(), remote_type=str)

        assert resource.narrow_body(b"caf\xc3\xa9") == "café"
        assert resource.narrow_body(b"\xff") is None

    def test_unsupported_remote_type(self) -> None:
        """Test that bytes never narrow to an unrelated type."""
        resource: Resource[dict[str, str]] = Resource(make_request(), remote_type=dict)

        assert resource.narrow_body(b"{}") is None

    def test_is_immutable(self) -> None:
        """Test that resources cannot be modified."""
        resource: Resource[bytes] = Resource(make_request())

        other = make_request("https://other.example.com")

        with pytest.raises(AttributeError):
            resource.request = other  # type: ignore[misc]


class TestResult:
    """Tests for Success and Failure."""

    def test_success_unwraps_value(self) -> None:
        """Test that a success returns its value."""
        result = Success(42)

        assert result.is_success is True
        assert result.unwrap() == 42

    def test_failure_unwrap_raises(self) -> None:
        """Test that unwrapping a failure raises its error."""
        result = Failure(NoDataError())

        assert result.is_success is False
        with pytest.raises(NoDataError):
            result.unwrap()


class TestNetworkErrors:
    """Tests for the network error hierarchy."""

    def test_all_errors_share_base(self) -> None:
        """Test that each error kind derives from NetworkError."""
        errors: list[NetworkError] = [
            TransportError(httpx.ConnectError("refused")),
            BadResponseError(),
            NoDataError(),
            HttpError(HttpStatusCode(500)),
            AuthenticatorError(RuntimeError("expired")),
            InterceptorError(RuntimeError("hook failed")),
        ]

        assert [error.kind for error in errors] == [
            "transport",
            "bad_response",
            "no_data",
            "http",
            "authenticator",
            "interceptor",
        ]

    def test_http_error_message_includes_api_error(self) -> None:
        """Test that the API error is part of the message."""
        error = HttpError(HttpStatusCode(409), ValueError("duplicate id"))

        assert error.status_code == 409
        assert "409" in str(error)
        assert "duplicate id" in str(error)

    def test_http_error_without_api_error(self) -> None:
        """Test the message of an HTTP error without an API error."""
        error = HttpError(HttpStatusCode(404))

        assert str(error) == "HTTP error 404"
        assert error.api_error is None
