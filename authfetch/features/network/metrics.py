"""Metrics collection for the network layer."""

import threading
from dataclasses import dataclass, field
from typing import ClassVar


@dataclass
class NetworkMetrics:
    """Metrics for fetch pipeline operations.

    Singleton class that tracks request counts per status code,
    re-authentication retries, and failures per error kind. Completions
    arrive on transport threads, so updates are serialized with a lock.
    """

    http_requests_total: dict[int, int] = field(default_factory=dict)
    http_bytes_total: int = 0
    fetch_total: int = 0
    reauthentication_total: int = 0
    failures_total: dict[str, int] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    _instance: ClassVar["NetworkMetrics | None"] = None

    @classmethod
    def get_instance(cls) -> "NetworkMetrics":
        """Get singleton metrics instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset metrics (primarily for testing)."""
        cls._instance = None

    def record_fetch(self) -> None:
        """Record a fetch call."""
        with self._lock:
            self.fetch_total += 1

    def record_response(self, status_code: int, bytes_received: int) -> None:
        """Record a completed HTTP exchange.

        Args:
            status_code: HTTP status code.
            bytes_received: Number of body bytes received.
        """
        with self._lock:
            self.http_requests_total[status_code] = (
                self.http_requests_total.get(status_code, 0) + 1
            )
            self.http_bytes_total += bytes_received

    def record_reauthentication(self) -> None:
        """Record a re-authentication retry."""
        with self._lock:
            self.reauthentication_total += 1

    def record_failure(self, kind: str) -> None:
        """Record a failed fetch.

        Args:
            kind: Error kind of the failure.
        """
        with self._lock:
            self.failures_total[kind] = self.failures_total.get(kind, 0) + 1

    def to_dict(self) -> dict[str, int | dict[str, int] | dict[int, int]]:
        """Convert metrics to dictionary.

        Returns:
            Dictionary of metric name to value.
        """
        with self._lock:
            return {
                "http_requests_total": dict(self.http_requests_total),
                "http_bytes_total": self.http_bytes_total,
                "fetch_total": self.fetch_total,
                "reauthentication_total": self.reauthentication_total,
                "failures_total": dict(self.failures_total),
            }
