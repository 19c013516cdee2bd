"""Cancellation handles for in-flight network work."""

import threading
import weakref
from typing import Protocol, runtime_checkable


@runtime_checkable
class Cancelable(Protocol):
    """Handle for aborting in-flight work.

    ``cancel`` must be idempotent and never raise.
    """

    def cancel(self) -> None:
        """Cancel the underlying work."""
        ...


class NoCancelable:
    """Cancelable that does nothing."""

    def cancel(self) -> None:
        """Do nothing."""


class CancelableTask:
    """Cancelable wrapping a single transport task.

    Holds only a weak reference to the task: the session owns in-flight
    tasks and releases them on completion, after which ``cancel`` is a
    silent no-op.
    """

    def __init__(self, task: Cancelable) -> None:
        """Initialize the cancelable.

        Args:
            task: The in-flight transport task.
        """
        self._task = weakref.ref(task)

    def cancel(self) -> None:
        """Cancel the task if it is still alive."""
        task = self._task()
        if task is not None:
            task.cancel()


class CancelableBag:
    """Composite cancelable fanning cancellation out to its children.

    Children are cancelled in insertion order. Children may be added after
    the bag was handed out (e.g. by an authentication retry); a child added
    to an already-cancelled bag is cancelled immediately.
    """

    def __init__(self) -> None:
        """Initialize an empty bag."""
        self._cancelables: list[Cancelable] = []
        self._cancelled = False
        self._lock = threading.Lock()

    @property
    def is_cancelled(self) -> bool:
        """Check if the bag has been cancelled."""
        with self._lock:
            return self._cancelled

    def __len__(self) -> int:
        with self._lock:
            return len(self._cancelables)

    def add(self, cancelable: Cancelable) -> None:
        """Register a child cancelable.

        Args:
            cancelable: The child to register.
        """
        with self._lock:
            self._cancelables.append(cancelable)
            cancelled = self._cancelled

        if cancelled:
            cancelable.cancel()

    def cancel(self) -> None:
        """Cancel every registered child in insertion order."""
        with self._lock:
            self._cancelled = True
            children = list(self._cancelables)

        # Children are cancelled outside the lock since a child's cancel may
        # synchronously trigger work that adds to this bag.
        for child in children:
            child.cancel()
