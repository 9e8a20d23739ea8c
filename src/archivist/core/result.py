"""
Result envelope for admission decisions.

``PolicyEngine.validate`` returns ``Ok(submission)`` when every stage admits
the submission and ``Err(violation)`` carrying the first failing stage's
error otherwise. ``post_process`` returns ``Ok(digest)`` or ``Err(failure)``.
Rejections travel as values; cancellation and storage faults still raise.

Examples:
    >>> match engine.validate(submission):
    ...     case Ok(accepted):
    ...         store(accepted)
    ...     case Err(violation):
    ...         reply_rejected(violation.reason)

    >>> Err(ValueError("rejected")).unwrap_or(None) is None
    True

Tags:
    result-pattern, error-handling, archivist

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from archivist.core.errors import ArchivistError

T = TypeVar("T")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Accepted outcome."""

    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def unwrap_err(self) -> Exception:
        raise ValueError(f"unwrap_err() on an Ok result: {self.value!r}")

    def map(self, f: Callable[[T], U]) -> Ok[U]:
        return Ok(f(self.value))

    def to_dict(self) -> dict[str, Any]:
        return {"ok": True, "value": self.value}


@dataclass(frozen=True, slots=True)
class Err(Generic[T]):
    """Rejected or failed outcome; ``unwrap`` re-raises the wrapped error."""

    error: Exception

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> T:
        raise self.error

    def unwrap_or(self, default: T) -> T:
        return default

    def unwrap_err(self) -> Exception:
        return self.error

    def map(self, f: Callable[[T], U]) -> Err[U]:
        return Err(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Serializable form; archivist errors keep their category and context."""
        if isinstance(self.error, ArchivistError):
            error = self.error.to_dict()
        else:
            error = {"error_type": type(self.error).__name__, "message": str(self.error)}
        return {"ok": False, "error": error}


Result = Ok[T] | Err[T]


__all__ = ["Ok", "Err", "Result"]
