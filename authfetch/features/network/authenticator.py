"""Bearer-token authenticator with refresh on rejection."""

import threading
from collections.abc import Callable, Iterable

import httpx
import structlog

from authfetch.features.network.cancelable import Cancelable
from authfetch.features.network.constants import (
    HTTP_STATUS_FORBIDDEN,
    HTTP_STATUS_UNAUTHORIZED,
)
from authfetch.features.network.models import Failure, Success
from authfetch.features.network.protocols import AuthenticationCompletion


logger = structlog.get_logger()


class AuthenticationFailedError(Exception):
    """The token provider could not produce a token."""


class TokenAuthenticator:
    """Authenticator attaching a token obtained from a provider.

    The token is cached until a response with one of the invalid status
    codes arrives, after which the next ``authenticate`` asks the provider
    for a fresh token.
    """

    def __init__(
        self,
        token_provider: Callable[[], str],
        header: str = "Authorization",
        scheme: str | None = "Bearer",
        invalid_status_codes: Iterable[int] = (
            HTTP_STATUS_UNAUTHORIZED,
            HTTP_STATUS_FORBIDDEN,
        ),
    ) -> None:
        """Initialize the authenticator.

        Args:
            token_provider: Callable returning a fresh token. Called on first
                use and after each rejection.
            header: Header carrying the token.
            scheme: Prefix placed before the token, or None for a bare token.
            invalid_status_codes: Status codes meaning the token was rejected.
        """
        self._token_provider = token_provider
        self._header = header
        self._scheme = scheme
        self._invalid_status_codes = frozenset(invalid_status_codes)
        self._token: str | None = None
        self._lock = threading.Lock()
        self._log = logger.bind(component="network", subcomponent="authenticator")

    @property
    def has_token(self) -> bool:
        """Check if a token is cached."""
        with self._lock:
            return self._token is not None

    def authenticate(
        self,
        request: httpx.Request,
        completion: AuthenticationCompletion,
    ) -> Cancelable:
        """Attach the current token to a copy of the request.

        Args:
            request: The request to authenticate.
            completion: Receives the authenticated request or the failure.

        Returns:
            The cancelable returned by ``completion``.
        """
        try:
            token = self._current_token()
        except Exception as exc:
            self._log.warning("token_refresh_failed", error=str(exc))
            msg = f"Token refresh failed: {exc}"
            return completion(Failure(AuthenticationFailedError(msg)))

        headers = httpx.Headers(request.headers)
        headers[self._header] = f"{self._scheme} {token}" if self._scheme else token
        authenticated = httpx.Request(
            request.method,
            request.url,
            headers=headers,
            content=request.content,
            extensions=dict(request.extensions),
        )
        return completion(Success(authenticated))

    def is_authentication_invalid(
        self,
        request: httpx.Request,
        body: bytes | None,
        response: httpx.Response,
        error: BaseException | None,
    ) -> bool:
        """Check whether the response rejected the token.

        A rejected token is dropped so the next authentication refreshes it.
        """
        if response.status_code not in self._invalid_status_codes:
            return False

        with self._lock:
            self._token = None
        self._log.info("token_invalidated", status_code=response.status_code)
        return True

    def _current_token(self) -> str:
        with self._lock:
            if self._token is not None:
                return self._token

        token = self._token_provider()
        with self._lock:
            self._token = token
        self._log.info("token_refreshed")
        return token
