"""Deadlines and cancellation for calls into backing stores.

The duplicate detector and authorship store may be backed by a shared
external database. Every call the engine makes into them accepts an optional
``DeadlineContext``; implementations check it before and after touching the
store and abort with ``OperationCancelled`` (or its subclass
``TimeoutExpired``) instead of blocking indefinitely.

Manifesto:
    Operations without timeouts are a reliability anti-pattern:
    - **Resource exhaustion:** A slow store pins request threads
    - **Cascading failures:** One hung lookup stalls a submitter's connection
    - **Poor feedback:** Submitters don't learn their request was abandoned

Examples:
    Explicit deadline handed to the engine:

    >>> deadline = deadline_after(2.0, operation="validate")
    >>> engine.validate(submission, deadline=deadline)

    Caller-initiated cancellation from another thread:

    >>> deadline = deadline_after(None)
    >>> deadline.cancel()
    >>> deadline.check()
    Traceback (most recent call last):
    ...
    OperationCancelled: Operation 'operation' was cancelled

    Scoped deadline:

    >>> with deadline_context(5.0, operation="post_process") as ctx:
    ...     engine.post_process(submission, deadline=ctx)

Tags:
    timeout, deadline, cancellation, resilience, archivist

Doc-Types:
    api-reference
"""

from __future__ import annotations

import math
import threading
import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from archivist.core.errors import ArchivistError, ErrorCategory


class OperationCancelled(ArchivistError):
    """Raised when the caller cancelled an in-flight operation.

    Attributes:
        operation: Name/description of the operation
    """

    default_category = ErrorCategory.CANCELLED
    default_retryable = True

    def __init__(self, operation: str = "operation", message: str | None = None):
        self.operation = operation
        super().__init__(message or f"Operation '{operation}' was cancelled")


class TimeoutExpired(OperationCancelled):
    """Raised when an operation exceeds its deadline.

    Attributes:
        timeout: The timeout value that was exceeded
        elapsed: How long the operation ran before being interrupted
        operation: Name/description of the operation
    """

    def __init__(
        self,
        timeout: float,
        elapsed: float | None = None,
        operation: str = "operation",
    ):
        self.timeout = timeout
        self.elapsed = elapsed

        msg = f"Operation '{operation}' timed out after {timeout}s"

        if elapsed is not None:
            msg += f" (ran for {elapsed:.2f}s)"

        super().__init__(operation, msg)


@dataclass
class DeadlineContext:
    """Context for tracking deadline and cancellation state.

    Attributes:
        deadline: Absolute deadline timestamp (monotonic clock), ``inf`` if none
        timeout_seconds: Original timeout value in seconds
        operation: Name/description of the operation
        start_time: When the deadline context started
    """

    deadline: float
    timeout_seconds: float
    operation: str = "operation"
    start_time: float = field(default_factory=time.monotonic)
    _cancelled: threading.Event = field(default_factory=threading.Event, repr=False)

    def remaining(self) -> float:
        """Remaining time until deadline in seconds.

        Returns:
            Positive value if time remains, negative if expired.
        """
        return self.deadline - time.monotonic()

    @property
    def elapsed(self) -> float:
        """Elapsed time since start in seconds."""
        return time.monotonic() - self.start_time

    def is_expired(self) -> bool:
        """True if deadline has passed."""
        return time.monotonic() >= self.deadline

    def cancel(self) -> None:
        """Signal cancellation; safe to call from any thread."""
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def check(self, op_name: str | None = None) -> None:
        """Raise if the caller cancelled or the deadline expired.

        Args:
            op_name: Name of operation for error message

        Raises:
            OperationCancelled: If ``cancel()`` was called
            TimeoutExpired: If deadline has passed
        """
        if self.cancelled:
            raise OperationCancelled(op_name or self.operation)
        if self.is_expired():
            raise TimeoutExpired(
                timeout=self.timeout_seconds,
                elapsed=self.elapsed,
                operation=op_name or self.operation,
            )


def deadline_after(seconds: float | None, operation: str = "operation") -> DeadlineContext:
    """Create a deadline ``seconds`` from now; ``None`` means cancellation only.

    Raises:
        ValueError: If seconds is negative
    """
    if seconds is not None and seconds < 0:
        raise ValueError(f"Timeout must be non-negative, got {seconds}")

    now = time.monotonic()
    if seconds is None:
        return DeadlineContext(
            deadline=math.inf,
            timeout_seconds=math.inf,
            operation=operation,
            start_time=now,
        )
    return DeadlineContext(
        deadline=now + seconds,
        timeout_seconds=seconds,
        operation=operation,
        start_time=now,
    )


@contextmanager
def deadline_context(seconds: float | None, operation: str = "operation") -> Iterator[DeadlineContext]:
    """Scoped deadline; cancels the context on exit so leaked references go inert.

    Example:
        >>> with deadline_context(30.0) as ctx:
        ...     for item in items:
        ...         ctx.check()
        ...         process(item)
    """
    ctx = deadline_after(seconds, operation)
    try:
        yield ctx
    finally:
        ctx.cancel()


def check_deadline(deadline: DeadlineContext | None, op_name: str | None = None) -> None:
    """Check ``deadline`` if one was supplied. Does nothing for ``None``."""
    if deadline is not None:
        deadline.check(op_name)


__all__ = [
    "OperationCancelled",
    "TimeoutExpired",
    "DeadlineContext",
    "deadline_after",
    "deadline_context",
    "check_deadline",
]
