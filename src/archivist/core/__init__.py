"""Archivist Core -- platform primitives shared by the admission policies.

Architecture::

    Layer 1 -- Type System & Errors
        errors.py          Structured error hierarchy (ArchivistError, PolicyViolation)
        result.py          Result[T] envelope (Ok / Err)

    Layer 2 -- Storage
        orm/               SQLAlchemy 2.0 tables for fingerprints and authorship

    Layer 3 -- Cross-Cutting Concerns
        logging.py         Structured logging (structlog)
        settings.py        ArchivistSettings (pydantic-settings)
        timeout.py         Deadlines and caller cancellation
        scheduling.py      PeriodicJob on a daemon thread

Tags:
    archivist, foundation, platform-primitives

Doc-Types:
    package-overview, module-index
"""

from archivist.core.errors import (
    ArchivistError,
    ConfigError,
    ConflictOfInterest,
    ConflictRole,
    DuplicateContent,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    InvalidStructure,
    MetadataMissing,
    PolicyViolation,
    RateLimitExceeded,
    ReferenceMissing,
    ReferenceNotFound,
    ReviewQualityInsufficient,
    StorageError,
    categorize_error,
    is_retryable,
)
from archivist.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
)
from archivist.core.result import Err, Ok, Result
from archivist.core.scheduling import PeriodicJob
from archivist.core.settings import ArchivistSettings, KindLimitSettings, get_settings
from archivist.core.timeout import (
    DeadlineContext,
    OperationCancelled,
    TimeoutExpired,
    check_deadline,
    deadline_after,
    deadline_context,
)

__all__ = [
    # errors
    "ArchivistError",
    "ConfigError",
    "ConflictOfInterest",
    "ConflictRole",
    "DuplicateContent",
    "ErrorCategory",
    "ErrorContext",
    "InvalidConfigError",
    "InvalidStructure",
    "MetadataMissing",
    "PolicyViolation",
    "RateLimitExceeded",
    "ReferenceMissing",
    "ReferenceNotFound",
    "ReviewQualityInsufficient",
    "StorageError",
    "categorize_error",
    "is_retryable",
    # logging
    "LogContext",
    "bind_context",
    "clear_context",
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    # result
    "Err",
    "Ok",
    "Result",
    # scheduling
    "PeriodicJob",
    # settings
    "ArchivistSettings",
    "KindLimitSettings",
    "get_settings",
    # timeout
    "DeadlineContext",
    "OperationCancelled",
    "TimeoutExpired",
    "check_deadline",
    "deadline_after",
    "deadline_context",
]
