"""Authenticated fetch pipeline."""

import threading
import uuid
import weakref
from collections.abc import Iterable
from dataclasses import dataclass, field
from types import TracebackType
from typing import Any

import httpx
import structlog

from authfetch.features.network import constants
from authfetch.features.network.authenticator import TokenAuthenticator
from authfetch.features.network.cancelable import (
    Cancelable,
    CancelableBag,
    CancelableTask,
    NoCancelable,
)
from authfetch.features.network.config import NetworkConfig
from authfetch.features.network.metrics import NetworkMetrics
from authfetch.features.network.models import (
    AuthenticatorError,
    BadResponseError,
    CompletionCallback,
    Failure,
    HttpError,
    InterceptorError,
    NetworkError,
    NoDataError,
    Resource,
    Result,
    Success,
    TransportError,
)
from authfetch.features.network.protocols import (
    AuthenticationChallenge,
    Authenticator,
    ChallengeCompletion,
    ChallengeDisposition,
    ChallengeHandler,
    RequestInterceptor,
    Session,
    SessionCompletion,
)
from authfetch.features.network.redact import redact_url_credentials
from authfetch.features.network.session import HttpxSession
from authfetch.features.network.status import HttpStatusCode, StatusClass
from authfetch.features.observability.logging import (
    bind_fetch_context,
    clear_fetch_context,
)
from authfetch.settings.app import AppSettings, get_settings


logger = structlog.get_logger()


@dataclass
class _FetchState:
    """Per-fetch state shared by the initial attempt and its retries."""

    resource: Resource[Any]
    completion: CompletionCallback
    bag: CancelableBag
    log: structlog.stdlib.BoundLogger
    reauthentications: int = 0
    _completed: bool = False
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def claim_completion(self) -> bool:
        """Claim the single completion of this fetch.

        Returns:
            True for the first caller only.
        """
        with self._lock:
            if self._completed:
                return False
            self._completed = True
            return True


class NetworkStack:
    """Orchestrates authenticated fetches over a Session.

    For each fetch the stack optionally authenticates the resource's
    request, runs interceptors, dispatches the request, classifies the
    response, and re-authenticates and retries when the authenticator
    reports a stale credential.

    Transport callbacks hold only a weak reference to the stack: once the
    stack has been released, in-flight callbacks do nothing.
    """

    def __init__(
        self,
        session: Session,
        authenticator: Authenticator | None = None,
        interceptors: Iterable[RequestInterceptor] = (),
        challenge_handler: ChallengeHandler | None = None,
        config: NetworkConfig | None = None,
    ) -> None:
        """Initialize the stack and bind it as the session's delegate.

        Args:
            session: Transport issuing requests.
            authenticator: Optional authenticator.
            interceptors: Interceptors run in order around every request.
            challenge_handler: Optional handler for identity challenges.
            config: Network configuration (defaults when omitted).

        Raises:
            SessionBindingError: If the session already has a delegate.
        """
        self._session = session
        self._authenticator = authenticator
        self._interceptors = tuple(interceptors)
        self._challenge_handler = challenge_handler
        self._config = config or NetworkConfig()
        self._metrics = NetworkMetrics.get_instance()
        self._log = logger.bind(component="network")

        session.bind_delegate(self)

    @classmethod
    def from_config(
        cls,
        config: NetworkConfig | None = None,
        authenticator: Authenticator | None = None,
        interceptors: Iterable[RequestInterceptor] = (),
        challenge_handler: ChallengeHandler | None = None,
    ) -> "NetworkStack":
        """Build a stack over a new HttpxSession.

        Args:
            config: Network configuration.
            authenticator: Optional authenticator.
            interceptors: Interceptors run in order around every request.
            challenge_handler: Optional handler for identity challenges.

        Returns:
            A stack wired as its session's delegate.
        """
        config = config or NetworkConfig()
        return cls(
            HttpxSession(config),
            authenticator=authenticator,
            interceptors=interceptors,
            challenge_handler=challenge_handler,
            config=config,
        )

    @classmethod
    def from_settings(
        cls,
        settings: AppSettings | None = None,
        interceptors: Iterable[RequestInterceptor] = (),
        challenge_handler: ChallengeHandler | None = None,
    ) -> "NetworkStack":
        """Build a stack from environment settings.

        A configured ``api_token`` is sent as a bearer token.

        Args:
            settings: Application settings (loaded from the environment
                when omitted).
            interceptors: Interceptors run in order around every request.
            challenge_handler: Optional handler for identity challenges.

        Returns:
            A stack over a new HttpxSession.
        """
        settings = settings or get_settings()
        authenticator = None
        if settings.api_token is not None:
            token = settings.api_token
            authenticator = TokenAuthenticator(lambda: token)

        return cls.from_config(
            NetworkConfig.from_settings(settings),
            authenticator=authenticator,
            interceptors=interceptors,
            challenge_handler=challenge_handler,
        )

    @property
    def session(self) -> Session:
        """Get the underlying session."""
        return self._session

    def close(self) -> None:
        """Close the underlying session."""
        self._session.close()

    def __enter__(self) -> "NetworkStack":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def fetch(
        self, resource: Resource[Any], completion: CompletionCallback
    ) -> Cancelable:
        """Fetch a resource without blocking.

        ``completion`` is called at most once, on a transport thread, with
        ``Success(body)`` or ``Failure(NetworkError)``. It is never called
        if the returned handle is cancelled before the fetch finishes.

        Args:
            resource: The resource to fetch.
            completion: Callback receiving the result.

        Returns:
            Handle cancelling the fetch, including any retries.
        """
        request = resource.request
        fetch_id = uuid.uuid4().hex
        state = _FetchState(
            resource=resource,
            completion=completion,
            bag=CancelableBag(),
            log=self._log.bind(
                fetch_id=fetch_id,
                method=request.method,
                url=redact_url_credentials(request.url),
            ),
        )
        self._metrics.record_fetch()

        # Collaborators called synchronously below log with this fetch's id
        bind_fetch_context(fetch_id)
        try:
            if self._authenticator is None:
                self._dispatch(state, request)
            else:
                self._authenticated_dispatch(state, self._authenticator)
        finally:
            clear_fetch_context()

        return state.bag

    def handle_challenge(
        self,
        challenge: AuthenticationChallenge,
        completion: ChallengeCompletion,
    ) -> None:
        """Answer an identity challenge raised by the session.

        Delegates to the challenge handler when one is configured, otherwise
        requests default handling with the session's proposed credential.
        """
        if self._challenge_handler is not None:
            self._challenge_handler.handle(challenge, completion)
            return

        completion(
            ChallengeDisposition.PERFORM_DEFAULT_HANDLING,
            challenge.proposed_credential,
        )

    def _authenticated_dispatch(
        self, state: _FetchState, authenticator: Authenticator
    ) -> Cancelable:
        stack_ref = weakref.ref(self)

        def on_authenticated(result: Result) -> Cancelable:
            stack = stack_ref()
            if stack is None:
                state.log.debug("fetch_dropped", reason="stack_released")
                return NoCancelable()

            match result:
                case Success(value=authenticated_request):
                    return stack._dispatch(state, authenticated_request)
                case Failure(error=error):
                    stack._complete(state, Failure(AuthenticatorError(error)))
            return NoCancelable()

        try:
            cancelable = authenticator.authenticate(
                state.resource.request, on_authenticated
            )
        except Exception as exc:
            state.log.warning("authenticator_raised", exc_info=True)
            self._complete(state, Failure(AuthenticatorError(exc)))
            return NoCancelable()

        state.bag.add(cancelable)
        return cancelable

    def _dispatch(self, state: _FetchState, request: httpx.Request) -> Cancelable:
        if state.bag.is_cancelled:
            state.log.debug("fetch_cancelled")
            return NoCancelable()

        try:
            for interceptor in self._interceptors:
                interceptor.intercept_request(request)
        except Exception as exc:
            state.log.warning("interceptor_raised", exc_info=True)
            self._complete(state, Failure(InterceptorError(exc)))
            return NoCancelable()

        task = self._session.data_task(
            request, self._response_handler(state, request)
        )
        cancelable = CancelableTask(task)
        state.bag.add(cancelable)
        task.resume()

        state.log.debug("fetch_dispatched", reauthentications=state.reauthentications)
        return cancelable

    def _response_handler(
        self, state: _FetchState, request: httpx.Request
    ) -> SessionCompletion:
        stack_ref = weakref.ref(self)

        def handle(
            response: httpx.Response | None,
            body: bytes | None,
            error: BaseException | None,
        ) -> None:
            stack = stack_ref()
            if stack is None:
                state.log.debug("fetch_dropped", reason="stack_released")
                return
            try:
                stack._handle_response(state, request, response, body, error)
            except NetworkError as exc:
                stack._complete(state, Failure(exc))
            except Exception:
                state.log.exception("fetch_handler_failed")
                raise

        return handle

    def _handle_response(
        self,
        state: _FetchState,
        request: httpx.Request,
        response: httpx.Response | None,
        body: bytes | None,
        error: BaseException | None,
    ) -> None:
        """Classify a transport outcome and complete or retry the fetch.

        Raises:
            InterceptorError: If an interceptor raised.
            AuthenticatorError: If the authenticator raised while judging
                the response.
        """
        try:
            for interceptor in self._interceptors:
                interceptor.intercept_response(response, body, error, request)
        except Exception as exc:
            state.log.warning("interceptor_raised", exc_info=True)
            raise InterceptorError(exc) from exc

        if error is not None:
            self._complete(state, Failure(TransportError(error)))
            return

        if not isinstance(response, httpx.Response):
            self._complete(state, Failure(BadResponseError()))
            return

        try:
            status = HttpStatusCode(response.status_code)
        except (TypeError, ValueError) as exc:
            self._complete(state, Failure(BadResponseError(str(exc))))
            return

        self._metrics.record_response(status.code, len(body or b""))

        if self._should_reauthenticate(state, request, body, response):
            return

        self._complete(state, self._classify(state.resource, status, body))

    def _should_reauthenticate(
        self,
        state: _FetchState,
        request: httpx.Request,
        body: bytes | None,
        response: httpx.Response,
    ) -> bool:
        """Start a re-authenticated retry if the credential was rejected.

        Returns:
            True if a retry was started.

        Raises:
            AuthenticatorError: If the authenticator raised.
        """
        authenticator = self._authenticator
        if authenticator is None:
            return False
        try:
            invalid = authenticator.is_authentication_invalid(
                request, body, response, None
            )
        except Exception as exc:
            state.log.warning("authenticator_raised", exc_info=True)
            raise AuthenticatorError(exc) from exc
        if not invalid:
            return False

        if state.reauthentications >= self._config.max_reauthentication_attempts:
            state.log.warning(
                "reauthentication_exhausted",
                status_code=response.status_code,
                reauthentications=state.reauthentications,
            )
            return False

        state.reauthentications += 1
        self._metrics.record_reauthentication()
        state.log.info(
            "fetch_reauthenticating",
            status_code=response.status_code,
            reauthentications=state.reauthentications,
        )
        self._authenticated_dispatch(state, authenticator)
        return True

    def _classify(
        self, resource: Resource[Any], status: HttpStatusCode, body: bytes | None
    ) -> Result:
        remote = resource.narrow_body(body)

        match status, remote:
            case HttpStatusCode(StatusClass.SUCCESS), value if value is not None:
                return Success(value)
            case (
                HttpStatusCode(StatusClass.SUCCESS, constants.HTTP_STATUS_NO_CONTENT),
                None,
            ) if resource.expects_no_content:
                return Success(None)
            case HttpStatusCode(StatusClass.SUCCESS), _:
                return Failure(NoDataError(status))
            case _, value if value is not None:
                return Failure(HttpError(status, _parse_api_error(resource, value)))
            case _:
                return Failure(HttpError(status, None))

    def _complete(self, state: _FetchState, result: Result) -> None:
        if state.bag.is_cancelled:
            state.log.debug("fetch_cancelled")
            return
        if not state.claim_completion():
            return

        match result:
            case Success():
                state.log.info("fetch_complete")
            case Failure(error=NetworkError() as error):
                self._metrics.record_failure(error.kind)
                state.log.info(
                    "fetch_failed",
                    error_kind=error.kind,
                    status_code=getattr(error, "status_code", None),
                    error=str(error),
                )

        state.completion(result)


def _parse_api_error(resource: Resource[Any], remote: Any) -> Exception | None:
    """Run the resource's error parser; an error it raises is the API error."""
    try:
        return resource.error_parser(remote)
    except Exception as exc:  # noqa: BLE001
        return exc
