"""Default transport: httpx requests executed on a worker pool."""

import re
import threading
import weakref
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from types import TracebackType

import httpx
import structlog

from authfetch.features.network.config import NetworkConfig
from authfetch.features.network.constants import (
    HTTP_STATUS_UNAUTHORIZED,
    WWW_AUTHENTICATE_HEADER,
)
from authfetch.features.network.models import (
    ChallengeCancelledError,
    SessionBindingError,
)
from authfetch.features.network.protocols import (
    AuthenticationChallenge,
    ChallengeDisposition,
    Credential,
    SessionCompletion,
    SessionDelegate,
)
from authfetch.features.network.redact import redact_url_credentials


logger = structlog.get_logger()

_REALM_PATTERN = re.compile(r'realm="([^"]*)"', re.IGNORECASE)


class HttpxSessionTask:
    """A single request issued through an HttpxSession.

    The task is suspended until ``resume`` is called. A cancelled task
    never invokes its completion.
    """

    def __init__(
        self,
        session: "HttpxSession",
        request: httpx.Request,
        completion: SessionCompletion,
    ) -> None:
        self._session = session
        self._request = request
        self._completion = completion
        self._future: Future[None] | None = None
        self._cancelled = threading.Event()
        self._lock = threading.Lock()

    @property
    def request(self) -> httpx.Request:
        """Get the request this task sends."""
        return self._request

    @property
    def is_cancelled(self) -> bool:
        """Check if the task has been cancelled."""
        return self._cancelled.is_set()

    def resume(self) -> None:
        """Submit the request to the session's worker pool."""
        with self._lock:
            if self._future is not None or self.is_cancelled:
                return
            self._future = self._session._submit(self)  # noqa: SLF001

    def cancel(self) -> None:
        """Cancel the request.

        A request already on the wire runs to completion, but its result
        is discarded.
        """
        self._cancelled.set()
        with self._lock:
            future = self._future
        if future is not None and future.cancel():
            self._session._release(self)  # noqa: SLF001

    def _run(self) -> None:
        """Execute the request on a worker thread."""
        if self.is_cancelled:
            self._session._release(self)  # noqa: SLF001
            return

        response: httpx.Response | None = None
        body: bytes | None = None
        error: BaseException | None = None
        try:
            perform = self._session._perform  # noqa: SLF001
            response = perform(self._request, self._cancelled)
            body = response.content
        except (httpx.HTTPError, httpx.InvalidURL, ChallengeCancelledError) as exc:
            error = exc
        except Exception as exc:
            logger.warning(
                "request_raised",
                component="network",
                subcomponent="session",
                url=redact_url_credentials(self._request.url),
                exc_info=True,
            )
            error = exc
        finally:
            self._session._release(self)  # noqa: SLF001

        if self.is_cancelled:
            return

        self._completion(response, body, error)


class HttpxSession:
    """Session issuing httpx requests on a thread pool.

    Completions run on the worker thread that executed the request. The
    session keeps in-flight tasks alive until they finish and then drops
    them, so weak references to a task die once it has completed.

    A delegate must be bound exactly once before requests are issued; it
    answers identity challenges (401 responses carrying WWW-Authenticate).
    """

    def __init__(
        self,
        config: NetworkConfig | None = None,
        client: httpx.Client | None = None,
        executor: Executor | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            config: Network configuration (defaults when omitted).
            client: httpx client to send requests with.
            executor: Executor running requests.
        """
        self._config = config or NetworkConfig()
        self._client = client or httpx.Client(
            timeout=self._config.timeout_seconds,
            follow_redirects=self._config.follow_redirects,
        )
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self._config.max_workers,
            thread_name_prefix="authfetch",
        )
        self._default_headers = self._config.build_headers()
        self._timeout = httpx.Timeout(self._config.timeout_seconds).as_dict()
        self._delegate: weakref.ref[SessionDelegate] | None = None
        self._tasks: set[HttpxSessionTask] = set()
        self._lock = threading.Lock()
        self._log = logger.bind(component="network", subcomponent="session")

    @property
    def in_flight(self) -> int:
        """Get the number of tasks submitted but not finished."""
        with self._lock:
            return len(self._tasks)

    def bind_delegate(self, delegate: SessionDelegate) -> None:
        """Register the delegate answering identity challenges.

        The session holds the delegate weakly.

        Args:
            delegate: Object answering session events.

        Raises:
            SessionBindingError: If a delegate was already bound.
        """
        with self._lock:
            if self._delegate is not None:
                msg = "Session delegate is already bound"
                raise SessionBindingError(msg)
            self._delegate = weakref.ref(delegate)

    def data_task(
        self,
        request: httpx.Request,
        completion: SessionCompletion,
    ) -> HttpxSessionTask:
        """Create a suspended task for a request.

        Args:
            request: The request to send.
            completion: Called on a worker thread with response, body, error.

        Returns:
            Suspended task.

        Raises:
            SessionBindingError: If no delegate has been bound.
        """
        if self._delegate is None:
            msg = "Session has no delegate; bind one before issuing requests"
            raise SessionBindingError(msg)
        return HttpxSessionTask(self, request, completion)

    def close(self) -> None:
        """Stop accepting work and release the client."""
        self._executor.shutdown(wait=True)
        self._client.close()

    def __enter__(self) -> "HttpxSession":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def _submit(self, task: HttpxSessionTask) -> Future[None]:
        with self._lock:
            self._tasks.add(task)
        future = self._executor.submit(task._run)  # noqa: SLF001
        future.add_done_callback(self._log_task_failure)
        return future

    def _log_task_failure(self, future: Future[None]) -> None:
        """Log an error escaping a task, typically raised by its completion."""
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            self._log.error("session_task_failed", error=str(exc), exc_info=exc)

    def _release(self, task: HttpxSessionTask) -> None:
        with self._lock:
            self._tasks.discard(task)

    def _perform(
        self, request: httpx.Request, cancelled: threading.Event
    ) -> httpx.Response:
        """Send a request, answering at most one identity challenge.

        Args:
            request: The request to send.
            cancelled: Set when the owning task is cancelled.

        Returns:
            The final response with its body read.

        Raises:
            httpx.HTTPError: On transport failure.
            ChallengeCancelledError: If the challenge was cancelled.
            Exception: Whatever the delegate raises while handling a challenge.
        """
        for key, value in self._default_headers.items():
            request.headers.setdefault(key, value)
        request.extensions.setdefault("timeout", self._timeout)

        response = self._client.send(request)

        if cancelled.is_set() or not self._is_challenge(response):
            return response

        challenge = self._build_challenge(request, response)
        disposition, credential = self._await_disposition(challenge)
        log = self._log.bind(
            url=redact_url_credentials(request.url),
            scheme=challenge.scheme,
            disposition=disposition.value,
        )

        if disposition is ChallengeDisposition.CANCEL_CHALLENGE:
            log.info("challenge_cancelled")
            msg = f"Authentication challenge from {challenge.host} was cancelled"
            raise ChallengeCancelledError(msg)

        if disposition is ChallengeDisposition.REJECT_PROTECTION_SPACE:
            log.info("challenge_rejected")
            return response

        if disposition is not ChallengeDisposition.USE_CREDENTIAL or credential is None:
            credential = (
                challenge.proposed_credential
                if challenge.previous_failure_count == 0
                else None
            )
        if credential is None:
            return response

        log.info("challenge_answered")
        response.close()
        return self._client.send(
            request, auth=httpx.BasicAuth(credential.username, credential.password)
        )

    def _is_challenge(self, response: httpx.Response) -> bool:
        return (
            response.status_code == HTTP_STATUS_UNAUTHORIZED
            and WWW_AUTHENTICATE_HEADER in response.headers
        )

    def _build_challenge(
        self, request: httpx.Request, response: httpx.Response
    ) -> AuthenticationChallenge:
        header = response.headers[WWW_AUTHENTICATE_HEADER]
        scheme = header.split(" ", 1)[0].strip().lower()
        realm_match = _REALM_PATTERN.search(header)

        proposed: Credential | None = None
        if request.url.username:
            proposed = Credential(request.url.username, request.url.password)

        return AuthenticationChallenge(
            host=request.url.host,
            scheme=scheme,
            realm=realm_match.group(1) if realm_match else None,
            previous_failure_count=1 if "authorization" in request.headers else 0,
            proposed_credential=proposed,
        )

    def _await_disposition(
        self, challenge: AuthenticationChallenge
    ) -> tuple[ChallengeDisposition, Credential | None]:
        """Ask the delegate about a challenge and wait for its answer.

        Falls back to default handling when the delegate is gone. An
        unanswered challenge is cancelled after the configured timeout.
        """
        delegate = self._delegate() if self._delegate is not None else None
        if delegate is None:
            return ChallengeDisposition.PERFORM_DEFAULT_HANDLING, (
                challenge.proposed_credential
            )

        answered = threading.Event()
        answer_lock = threading.Lock()
        answer: list[tuple[ChallengeDisposition, Credential | None]] = []

        def completion(
            disposition: ChallengeDisposition, credential: Credential | None
        ) -> None:
            with answer_lock:
                if answer:
                    self._log.warning("challenge_answered_twice", host=challenge.host)
                    return
                answer.append((disposition, credential))
            answered.set()

        delegate.handle_challenge(challenge, completion)

        if not answered.wait(self._config.challenge_timeout_seconds):
            self._log.warning("challenge_timeout", host=challenge.host)
            return ChallengeDisposition.CANCEL_CHALLENGE, None
        return answer[0]
