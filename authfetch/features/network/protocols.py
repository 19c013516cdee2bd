"""Protocol interfaces for network stack collaborators.

Any object implementing the matching methods can be plugged into the
NetworkStack, which allows fakes to stand in for real collaborators in tests.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, runtime_checkable

import httpx

from authfetch.features.network.cancelable import Cancelable
from authfetch.features.network.models import Result


class ChallengeDisposition(str, Enum):
    """How the transport should proceed after an identity challenge."""

    USE_CREDENTIAL = "USE_CREDENTIAL"
    PERFORM_DEFAULT_HANDLING = "PERFORM_DEFAULT_HANDLING"
    CANCEL_CHALLENGE = "CANCEL_CHALLENGE"
    REJECT_PROTECTION_SPACE = "REJECT_PROTECTION_SPACE"


@dataclass(frozen=True)
class Credential:
    """Username/password pair answering an identity challenge."""

    username: str
    password: str

    def __repr__(self) -> str:
        return f"Credential(username={self.username!r}, password='[REDACTED]')"


@dataclass(frozen=True)
class AuthenticationChallenge:
    """Identity challenge raised by the transport.

    Attributes:
        host: Host that issued the challenge.
        scheme: Authentication scheme from WWW-Authenticate (e.g. "basic").
        realm: Protection space realm, if announced.
        previous_failure_count: Number of credentials already rejected.
        proposed_credential: Credential the transport would use by default.
    """

    host: str
    scheme: str
    realm: str | None = None
    previous_failure_count: int = 0
    proposed_credential: Credential | None = None


ChallengeCompletion = Callable[[ChallengeDisposition, Credential | None], None]
SessionCompletion = Callable[
    [httpx.Response | None, bytes | None, BaseException | None], None
]
AuthenticationCompletion = Callable[[Result], Cancelable]


@runtime_checkable
class Authenticator(Protocol):
    """Detects stale credentials and performs re-authentication."""

    def authenticate(
        self,
        request: httpx.Request,
        completion: AuthenticationCompletion,
    ) -> Cancelable:
        """Authenticate a request.

        Args:
            request: The request to authenticate.
            completion: Called with ``Success(authenticated_request)`` or
                ``Failure(error)``. Returns the cancelable of the work it
                started, which this method should propagate.

        Returns:
            Cancelable for the authentication and anything it started.
        """
        ...

    def is_authentication_invalid(
        self,
        request: httpx.Request,
        body: bytes | None,
        response: httpx.Response,
        error: BaseException | None,
    ) -> bool:
        """Check whether an exchange indicates an invalid or expired credential.

        Args:
            request: The request that was sent.
            body: Response body, if any.
            response: The HTTP response.
            error: Transport error, if any.

        Returns:
            True if the request should be re-authenticated and retried.
        """
        ...


@runtime_checkable
class RequestInterceptor(Protocol):
    """Side-effect-only hook around request send and response arrival."""

    def intercept_request(self, request: httpx.Request) -> None:
        """Observe or mutate a request before it is sent."""
        ...

    def intercept_response(
        self,
        response: httpx.Response | None,
        body: bytes | None,
        error: BaseException | None,
        request: httpx.Request,
    ) -> None:
        """Observe the outcome of a request."""
        ...


@runtime_checkable
class ChallengeHandler(Protocol):
    """Answers transport-level identity challenges."""

    def handle(
        self,
        challenge: AuthenticationChallenge,
        completion: ChallengeCompletion,
    ) -> None:
        """Handle a challenge, eventually calling ``completion`` exactly once."""
        ...


@runtime_checkable
class SessionDelegate(Protocol):
    """Receiver of session-level events."""

    def handle_challenge(
        self,
        challenge: AuthenticationChallenge,
        completion: ChallengeCompletion,
    ) -> None:
        """Answer an identity challenge raised by the session."""
        ...


@runtime_checkable
class SessionTask(Protocol):
    """A single cancellable transport request."""

    def resume(self) -> None:
        """Start the request."""
        ...

    def cancel(self) -> None:
        """Cancel the request. A cancelled task never completes."""
        ...


@runtime_checkable
class Session(Protocol):
    """Transport capability issuing cancellable asynchronous requests."""

    def bind_delegate(self, delegate: SessionDelegate) -> None:
        """Register the delegate answering session events. Allowed once."""
        ...

    def data_task(
        self,
        request: httpx.Request,
        completion: SessionCompletion,
    ) -> SessionTask:
        """Create a task issuing a request.

        Args:
            request: The request to send.
            completion: Called once on a transport thread with the response,
                its body and any transport error.

        Returns:
            A suspended task; call ``resume`` to start it.
        """
        ...

    def close(self) -> None:
        """Release the transport's resources."""
        ...
