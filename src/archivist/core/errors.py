"""
Structured error types for the archivist admission engine.

Every rejection the policy engine produces is a typed error carrying enough
metadata for the submitter to self-correct: which tag is missing, which
threshold was not met, which limit was hit and for how long. Infrastructure
failures (storage, configuration, cancellation) share the same base class but
are never confused with policy rejections.

Manifesto:
    - **Typed rejections:** One class per rejection kind, never an opaque code
    - **Actionable messages:** Every message names the tag, limit or threshold
    - **No engine retries:** Policy violations are terminal; retry belongs to
      the submitting client
    - **Stage tagging:** The engine stamps the failing pipeline stage on the
      error before surfacing it verbatim

Architecture:
    ::

        ┌──────────────────────────────────────────────────────────────────┐
        │                         ArchivistError                           │
        │        (category, retryable, retry_after, context, cause)        │
        ├──────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │  PolicyViolation (stage, reason)       StorageError  ConfigError │
        │       │                                                  │       │
        │  RateLimitExceeded      DuplicateContent       InvalidConfigError│
        │  InvalidStructure       ReferenceMissing                         │
        │  MetadataMissing        ReferenceNotFound                        │
        │                         ConflictOfInterest                       │
        │                         ReviewQualityInsufficient                │
        └──────────────────────────────────────────────────────────────────┘

Examples:
    >>> error = InvalidStructure("paper", "academic paper missing required tags: abstract")
    >>> error.category
    <ErrorCategory.VALIDATION: 'VALIDATION'>
    >>> error.retryable
    False
    >>> error.with_context(stage="structure").reason
    'structure: academic paper missing required tags: abstract'

Tags:
    error-handling, exception-hierarchy, policy, rejection, archivist

Doc-Types:
    - API Reference
    - Error Handling Guide
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """
    Standard error categories for classification and log routing.

    Policy categories (RATE_LIMIT .. INTEGRITY) describe why a submission was
    rejected. The remaining categories describe failures of the engine or its
    collaborators, which are never reported to a submitter as a rejection.
    """

    # Policy rejections
    RATE_LIMIT = "RATE_LIMIT"     # Sliding-window quota exhausted
    VALIDATION = "VALIDATION"     # Structure, required tags, thresholds
    DUPLICATE = "DUPLICATE"       # Fingerprint already archived
    INTEGRITY = "INTEGRITY"       # Review references, conflicts, quality

    # Engine / collaborator failures
    CANCELLED = "CANCELLED"       # Caller deadline or cancellation
    STORAGE = "STORAGE"           # Fingerprint / authorship backing store
    CONFIG = "CONFIG"             # Invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state


@dataclass
class ErrorContext:
    """
    Structured metadata attached to an error for logging.

    Attributes:
        stage: Pipeline stage that produced the error
        submission_id: Id of the submission under evaluation
        kind: Content kind slug of the submission
        identity: Submitting identity
        metadata: Additional key-value pairs
    """

    stage: str | None = None
    submission_id: str | None = None
    kind: str | None = None
    identity: str | None = None

    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["stage", "submission_id", "kind", "identity"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ArchivistError(Exception):
    """
    Base exception for all archivist errors.

    Subclasses set ``default_category`` and ``default_retryable`` to provide
    sensible defaults for their domain.
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL
    default_retryable: bool = False

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retryable: bool | None = None,
        retry_after: int | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retryable = retryable if retryable is not None else self.default_retryable
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ArchivistError:
        """
        Add context to this error (fluent API).

        Usage:
            raise StorageError("lookup failed").with_context(
                submission_id=submission.id,
                kind="paper",
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging/serialization."""
        result = {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "category": self.category.value,
            "retryable": self.retryable,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context_dict = self.context.to_dict()
        if context_dict:
            result["context"] = context_dict
        if self.cause is not None:
            result["cause"] = str(self.cause)
        return result

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# POLICY VIOLATIONS (never retried by the engine)
# =============================================================================


class PolicyViolation(ArchivistError):
    """
    A submission was rejected by one of the admission policies.

    The message is written for the submitter. ``stage`` is stamped by the
    engine; ``reason`` is the message prefixed with that stage, which is what
    the transport layer relays verbatim.
    """

    default_category = ErrorCategory.VALIDATION
    default_retryable = False

    @property
    def stage(self) -> str | None:
        return self.context.stage

    @property
    def reason(self) -> str:
        if self.context.stage:
            return f"{self.context.stage}: {self.message}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["reason"] = self.reason
        return result


class RateLimitExceeded(PolicyViolation):
    """Sliding-window quota exhausted for an identity (general or per kind)."""

    default_category = ErrorCategory.RATE_LIMIT

    def __init__(
        self,
        message: str,
        *,
        scope: str,
        limit: int,
        window: timedelta,
        kind: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.scope = scope
        self.limit = limit
        self.window = window
        self.kind = kind

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["scope"] = self.scope
        result["limit"] = self.limit
        result["window_seconds"] = int(self.window.total_seconds())
        if self.kind:
            result["kind"] = self.kind
        return result


class InvalidStructure(PolicyViolation):
    """Unrecognized kind, missing required tag, or a length threshold not met."""

    def __init__(
        self,
        kind: str,
        reason: str,
        *,
        tag: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(reason, **kwargs)
        self.kind = kind
        self.tag = tag

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind
        if self.tag:
            result["tag"] = self.tag
        return result


class MetadataMissing(PolicyViolation):
    """Neither a ``published_at`` tag nor a nonzero creation timestamp."""

    def __init__(self, message: str | None = None, **kwargs: Any):
        super().__init__(
            message
            or "academic content must have a timestamp: either in created_at field or published_at tag",
            **kwargs,
        )


class DuplicateContent(PolicyViolation):
    """Fingerprint of a paper or dataset is already archived."""

    default_category = ErrorCategory.DUPLICATE

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        fingerprint: str | None = None,
        original_id: str | None = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        self.kind = kind
        self.fingerprint = fingerprint
        self.original_id = original_id

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["kind"] = self.kind
        if self.original_id:
            result["original_id"] = self.original_id
        return result


class ReferenceMissing(PolicyViolation):
    """A review carries no ``e`` tag naming the content under review."""

    default_category = ErrorCategory.INTEGRITY

    def __init__(self, message: str | None = None, **kwargs: Any):
        super().__init__(
            message or "review integrity check failed: no paper reference found ('e' tag)",
            **kwargs,
        )


class ReferenceNotFound(PolicyViolation):
    """The referenced content id does not resolve in the authorship store."""

    default_category = ErrorCategory.INTEGRITY

    def __init__(self, reference_id: str, message: str | None = None, **kwargs: Any):
        self.reference_id = reference_id
        super().__init__(
            message
            or f"review integrity check failed: referenced paper {reference_id!r} not found",
            **kwargs,
        )


class ConflictRole(str, Enum):
    AUTHOR = "author"
    COAUTHOR = "coauthor"


class ConflictOfInterest(PolicyViolation):
    """Reviewer is the creator or a declared co-author of the reviewed content."""

    default_category = ErrorCategory.INTEGRITY

    def __init__(self, role: ConflictRole, message: str | None = None, **kwargs: Any):
        self.role = ConflictRole(role)
        if message is None:
            who = "authors" if self.role is ConflictRole.AUTHOR else "co-authors"
            message = (
                f"review integrity violation: {who} cannot review their own papers "
                "(conflict of interest)"
            )
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        result = super().to_dict()
        result["role"] = self.role.value
        return result


class ReviewQualityInsufficient(PolicyViolation):
    """Fewer than two structured-feedback tags on a review."""

    default_category = ErrorCategory.INTEGRITY

    def __init__(
        self,
        present: list[str] | None = None,
        *,
        required: int = 2,
        message: str | None = None,
        **kwargs: Any,
    ):
        self.present = list(present or [])
        self.required = required
        super().__init__(
            message
            or (
                f"review quality insufficient: please include at least {required} of the "
                "following: methodology-assessment, strengths, weaknesses, or recommendation tags"
            ),
            **kwargs,
        )


# =============================================================================
# INFRASTRUCTURE ERRORS
# =============================================================================


class StorageError(ArchivistError):
    """Fingerprint or authorship backing store failed."""

    default_category = ErrorCategory.STORAGE
    default_retryable = True


class ConfigError(ArchivistError):
    """
    Configuration error.

    Never retryable - configuration must be fixed.
    """

    default_category = ErrorCategory.CONFIG
    default_retryable = False


class InvalidConfigError(ConfigError):
    """Configuration value is invalid."""

    def __init__(self, key: str, value: Any, message: str | None = None):
        self.key = key
        self.value = value
        super().__init__(message or f"Invalid configuration for {key}: {value!r}")


# =============================================================================
# UTILITY FUNCTIONS
# =============================================================================


def is_retryable(error: Exception) -> bool:
    """Check if an error is retryable."""
    if isinstance(error, ArchivistError):
        return error.retryable
    return isinstance(error, (ConnectionError, OSError))


def categorize_error(error: Exception) -> ErrorCategory:
    """Get the category of an error."""
    if isinstance(error, ArchivistError):
        return error.category
    if isinstance(error, ValueError):
        return ErrorCategory.VALIDATION
    return ErrorCategory.INTERNAL


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ArchivistError",
    "PolicyViolation",
    "RateLimitExceeded",
    "InvalidStructure",
    "MetadataMissing",
    "DuplicateContent",
    "ReferenceMissing",
    "ReferenceNotFound",
    "ConflictRole",
    "ConflictOfInterest",
    "ReviewQualityInsufficient",
    "StorageError",
    "ConfigError",
    "InvalidConfigError",
    "is_retryable",
    "categorize_error",
]
