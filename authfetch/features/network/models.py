"""Data models for the network layer."""

from collections.abc import Callable
from dataclasses import dataclass, field
from types import NoneType
from typing import Any, Generic, TypeVar

import httpx

from authfetch.features.network.status import HttpStatusCode


RemoteT = TypeVar("RemoteT")
ValueT = TypeVar("ValueT")


def _no_api_error(_remote: Any) -> Exception | None:
    return None


@dataclass(frozen=True)
class Resource(Generic[RemoteT]):
    """Description of one fetchable unit.

    Attributes:
        request: Outbound request to issue.
        remote_type: Wire payload type the body must narrow to
            (``bytes`` for raw bytes, ``str`` for UTF-8 text).
        local_type: Caller-facing result type. ``NoneType`` marks a resource
            that expects no content.
        error_parser: Extracts a domain-specific API error from a remote
            payload, or returns None.
    """

    request: httpx.Request
    remote_type: type = bytes
    local_type: type = bytes
    error_parser: Callable[[RemoteT], Exception | None] = field(
        default=_no_api_error
    )

    @property
    def expects_no_content(self) -> bool:
        """Check if the local type is the unit/empty type."""
        return self.local_type is NoneType

    def narrow_body(self, body: bytes | None) -> RemoteT | None:
        """Narrow a raw response body to the remote type.

        Args:
            body: Raw body bytes, or None when the response carried none.

        Returns:
            The body as the remote type, or None if it does not narrow.
        """
        if not body:
            return None
        if self.remote_type is bytes:
            return body  # type: ignore[return-value]
        if self.remote_type is str:
            try:
                return body.decode("utf-8")  # type: ignore[return-value]
            except UnicodeDecodeError:
                return None
        if isinstance(body, self.remote_type):
            return body  # type: ignore[return-value]
        return None


@dataclass(frozen=True)
class Success(Generic[ValueT]):
    """Successful outcome carrying a value."""

    value: ValueT

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> ValueT:
        """Return the value."""
        return self.value


@dataclass(frozen=True)
class Failure:
    """Failed outcome carrying an error."""

    error: Exception

    @property
    def is_success(self) -> bool:
        return False

    def unwrap(self) -> Any:
        """Raise the carried error."""
        raise self.error


Result = Success[Any] | Failure
CompletionCallback = Callable[[Result], None]


class NetworkError(Exception):
    """Base class for fetch pipeline failures.

    Attributes:
        kind: Stable identifier of the failure, used in logs and metrics.
    """

    kind = "unknown"


class TransportError(NetworkError):
    """The transport failed before a response arrived.

    Attributes:
        underlying: The error raised by the transport.
    """

    kind = "transport"

    def __init__(self, underlying: BaseException) -> None:
        super().__init__(f"Transport error: {underlying}")
        self.underlying = underlying


class BadResponseError(NetworkError):
    """The response is not a well-formed HTTP response."""

    kind = "bad_response"

    def __init__(self, message: str = "Response is not a valid HTTP response") -> None:
        super().__init__(message)


class NoDataError(NetworkError):
    """A success status arrived without a usable payload."""

    kind = "no_data"

    def __init__(self, status: HttpStatusCode | None = None) -> None:
        super().__init__("Successful response carried no usable data")
        self.status = status


class HttpError(NetworkError):
    """The server answered with an unsuccessful status.

    Attributes:
        status: Classified status code.
        api_error: Domain error parsed from the body, if any.
    """

    kind = "http"

    def __init__(
        self, status: HttpStatusCode, api_error: Exception | None = None
    ) -> None:
        message = f"HTTP error {status.code}"
        if api_error is not None:
            message = f"{message}: {api_error}"
        super().__init__(message)
        self.status = status
        self.api_error = api_error

    @property
    def status_code(self) -> int:
        """Get the raw status code."""
        return self.status.code


class AuthenticatorError(NetworkError):
    """The authenticator failed to produce an authenticated request.

    Attributes:
        underlying: The error reported by the authenticator.
    """

    kind = "authenticator"

    def __init__(self, underlying: Exception) -> None:
        super().__init__(f"Authenticator error: {underlying}")
        self.underlying = underlying


class InterceptorError(NetworkError):
    """An interceptor raised while observing a request or its outcome.

    Attributes:
        underlying: The error raised by the interceptor.
    """

    kind = "interceptor"

    def __init__(self, underlying: Exception) -> None:
        super().__init__(f"Interceptor error: {underlying}")
        self.underlying = underlying


class SessionBindingError(RuntimeError):
    """A session was used before its delegate was bound, or bound twice."""


class ChallengeCancelledError(Exception):
    """An identity challenge was cancelled or left unanswered."""
