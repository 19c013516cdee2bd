"""Request interceptors for logging and header injection."""

from collections.abc import Mapping

import httpx
import structlog

from authfetch.features.network.redact import redact_headers, redact_url_credentials


logger = structlog.get_logger()


class LoggingInterceptor:
    """Logs every request and its outcome with credentials redacted."""

    def __init__(self, log_headers: bool = False) -> None:
        """Initialize the interceptor.

        Args:
            log_headers: Whether to include (redacted) headers in log events.
        """
        self._log_headers = log_headers
        self._log = logger.bind(component="network", subcomponent="interceptor")

    def intercept_request(self, request: httpx.Request) -> None:
        """Log an outgoing request."""
        fields: dict[str, object] = {
            "method": request.method,
            "url": redact_url_credentials(request.url),
        }
        if self._log_headers:
            fields["headers"] = redact_headers(request.headers)
        self._log.info("request_sent", **fields)

    def intercept_response(
        self,
        response: httpx.Response | None,
        body: bytes | None,
        error: BaseException | None,
        request: httpx.Request,
    ) -> None:
        """Log the outcome of a request."""
        log = self._log.bind(
            method=request.method,
            url=redact_url_credentials(request.url),
        )
        if error is not None:
            log.warning("request_failed", error=str(error))
            return
        if response is None:
            log.warning("request_without_response")
            return

        fields: dict[str, object] = {
            "status_code": response.status_code,
            "bytes": len(body or b""),
        }
        if self._log_headers:
            fields["headers"] = redact_headers(response.headers)
        log.info("response_received", **fields)


class HeaderInjectionInterceptor:
    """Sets static headers on every outgoing request."""

    def __init__(self, headers: Mapping[str, str], overwrite: bool = False) -> None:
        """Initialize the interceptor.

        Args:
            headers: Headers to inject.
            overwrite: Replace headers the request already carries.
        """
        self._headers = dict(headers)
        self._overwrite = overwrite

    def intercept_request(self, request: httpx.Request) -> None:
        """Inject the configured headers into the request."""
        for key, value in self._headers.items():
            if self._overwrite or key not in request.headers:
                request.headers[key] = value

    def intercept_response(
        self,
        response: httpx.Response | None,
        body: bytes | None,
        error: BaseException | None,
        request: httpx.Request,
    ) -> None:
        """Do nothing."""
