"""Authenticated HTTP fetch pipeline.

This module provides non-blocking resource fetching with:
- Optional authentication and a bounded re-authenticated retry
- Interceptor hooks around request send and response arrival
- Response classification into a typed result
- Composable cancellation spanning retries
- Identity challenge delegation for the default httpx transport
"""

from authfetch.features.network.authenticator import (
    AuthenticationFailedError,
    TokenAuthenticator,
)
from authfetch.features.network.cancelable import (
    Cancelable,
    CancelableBag,
    CancelableTask,
    NoCancelable,
)
from authfetch.features.network.config import NetworkConfig
from authfetch.features.network.interceptors import (
    HeaderInjectionInterceptor,
    LoggingInterceptor,
)
from authfetch.features.network.metrics import NetworkMetrics
from authfetch.features.network.models import (
    AuthenticatorError,
    BadResponseError,
    ChallengeCancelledError,
    Failure,
    HttpError,
    InterceptorError,
    NetworkError,
    NoDataError,
    Resource,
    Result,
    SessionBindingError,
    Success,
    TransportError,
)
from authfetch.features.network.protocols import (
    AuthenticationChallenge,
    Authenticator,
    ChallengeDisposition,
    ChallengeHandler,
    Credential,
    RequestInterceptor,
    Session,
    SessionDelegate,
    SessionTask,
)
from authfetch.features.network.redact import redact_headers, redact_url_credentials
from authfetch.features.network.session import HttpxSession, HttpxSessionTask
from authfetch.features.network.stack import NetworkStack
from authfetch.features.network.status import HttpStatusCode, StatusClass


__all__ = [
    # Stack
    "NetworkStack",
    # Transport
    "HttpxSession",
    "HttpxSessionTask",
    # Cancellation
    "Cancelable",
    "CancelableBag",
    "CancelableTask",
    "NoCancelable",
    # Config
    "NetworkConfig",
    # Models
    "Resource",
    "Result",
    "Success",
    "Failure",
    "NetworkError",
    "TransportError",
    "BadResponseError",
    "NoDataError",
    "HttpError",
    "InterceptorError",
    "AuthenticatorError",
    "SessionBindingError",
    "ChallengeCancelledError",
    # Status
    "HttpStatusCode",
    "StatusClass",
    # Protocols
    "Authenticator",
    "RequestInterceptor",
    "ChallengeHandler",
    "Session",
    "SessionDelegate",
    "SessionTask",
    "AuthenticationChallenge",
    "ChallengeDisposition",
    "Credential",
    # Collaborators
    "TokenAuthenticator",
    "AuthenticationFailedError",
    "LoggingInterceptor",
    "HeaderInjectionInterceptor",
    # Metrics
    "NetworkMetrics",
    # Redaction
    "redact_headers",
    "redact_url_credentials",
]
