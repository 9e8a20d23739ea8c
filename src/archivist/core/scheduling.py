"""Cancellable periodic job on a daemon thread.

Used by the rate limiter to reclaim idle identity windows. The job is owned by
whoever constructs it: started explicitly, stopped explicitly, and observable
through ``health()``.

┌──────────────────────────────────────────────────────────────────────────────┐
│  PeriodicJob                                                                  │
│                                                                               │
│   start()                                                                     │
│      │                                                                        │
│      ▼                                                                        │
│   ┌─────────────────────────────────────────────────────────┐                │
│   │              Daemon Thread (loop)                       │                │
│   │                                                         │                │
│   │   while not stop_event.wait(interval):                  │                │
│   │       run_once()  ──► callback()                        │                │
│   │                                                         │                │
│   └─────────────────────────────────────────────────────────┘                │
│                                                                               │
│   stop()  ──►  stop_event.set(); thread.join(timeout)                         │
└──────────────────────────────────────────────────────────────────────────────┘
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from archivist.core.logging import get_logger

logger = get_logger(__name__)


class PeriodicJob:
    """Run ``callback`` every ``interval_seconds`` until stopped.

    Example:
        >>> job = PeriodicJob(limiter.sweep, interval_seconds=3600, name="rate-limit-sweep")
        >>> job.start()
        >>> # ... later ...
        >>> job.stop()
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        interval_seconds: float,
        name: str = "archivist-periodic",
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._callback = callback
        self._interval = interval_seconds
        self.name = name
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._tick_count = 0
        self._last_tick: datetime | None = None
        self._last_error: str | None = None
        self._started = False
        self._lock = threading.Lock()

    def start(self) -> None:
        """Start the loop in a daemon thread. No-op if already running."""
        with self._lock:
            if self._started:
                logger.warning("periodic_job_already_started", job=self.name)
                return
            self._stop_event.clear()
            self._thread = threading.Thread(target=self._loop, daemon=True, name=self.name)
            self._started = True
        self._thread.start()

    def _loop(self) -> None:
        logger.info("periodic_job_started", job=self.name, interval_seconds=self._interval)
        while not self._stop_event.wait(self._interval):
            self.run_once()
        logger.info("periodic_job_stopped", job=self.name)

    def run_once(self) -> Any:
        """Invoke the callback once; failures are logged, never raised."""
        with self._lock:
            self._tick_count += 1
            self._last_tick = datetime.now(UTC)
        try:
            return self._callback()
        except Exception as e:
            self._last_error = str(e)
            logger.exception("periodic_job_tick_failed", job=self.name, error=str(e))
            return None

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the loop gracefully, waiting up to ``timeout`` for the current tick."""
        with self._lock:
            if not self._started:
                return
            self._started = False
            thread = self._thread

        self._stop_event.set()
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
            if thread.is_alive():
                logger.warning("periodic_job_did_not_stop_cleanly", job=self.name)

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    @property
    def last_tick(self) -> datetime | None:
        return self._last_tick

    def health(self) -> dict[str, Any]:
        """Return job health status."""
        return {
            "healthy": self.is_running,
            "job": self.name,
            "tick_count": self._tick_count,
            "last_tick": self._last_tick.isoformat() if self._last_tick else None,
            "last_error": self._last_error,
            "interval_seconds": self._interval,
        }


__all__ = ["PeriodicJob"]
