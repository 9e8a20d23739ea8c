"""
Policy engine: the admission pipeline for archive submissions.

The engine is the only component the transport layer calls. It runs the
policies in a fixed order, cheapest first, and stops at the first failure:

    ┌────────────┐   ┌───────────┐   ┌───────────┐   ┌──────────────────┐
    │ rate_limit │──►│ structure │──►│ duplicate │──►│ review_integrity │──► accepted
    └────────────┘   └───────────┘   └───────────┘   └──────────────────┘
                                      paper / data      review only

The failing stage is stamped on the ``PolicyViolation`` (``error.stage``,
``error.reason``) and the error is surfaced verbatim. After the transport has
durably stored an accepted submission it calls ``post_process`` to index
authorship and the content fingerprint; that step is best effort and never
turns a stored submission into a rejection.

Manifesto:
    - **Fail fast:** First failing stage wins, later stages never run
    - **No retries:** Rejections are terminal; backoff belongs to the client
    - **Explicit ownership:** The engine owns its collaborators and their
      background work; ``close()`` stops the rate-limit sweep

Examples:
    >>> with PolicyEngine(settings=ArchivistSettings(sweep_enabled=False)) as engine:
    ...     result = engine.validate(paper)
    ...     if result.is_ok():
    ...         store(paper)
    ...         engine.post_process(paper)
    ...     else:
    ...         reply_rejected(result.unwrap_err().reason)

Tags:
    policy-engine, admission-control, pipeline, archivist

Doc-Types:
    - API Reference
    - Architecture Guide
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from archivist.core.errors import PolicyViolation
from archivist.core.logging import LogContext, get_logger
from archivist.core.orm import archive_session_factory, create_archive_engine, init_schema
from archivist.core.result import Err, Ok, Result
from archivist.core.settings import ArchivistSettings, get_settings
from archivist.core.timeout import DeadlineContext, check_deadline
from archivist.policies.authorship import (
    AuthorshipStore,
    InMemoryAuthorshipStore,
    SqlAuthorshipStore,
)
from archivist.policies.duplicates import (
    DuplicateDetector,
    InMemoryFingerprintStore,
    SqlFingerprintStore,
)
from archivist.policies.hashing import ContentHasher
from archivist.policies.kinds import ContentKind
from archivist.policies.rate_limit import RateLimiter, build_rate_limiter
from archivist.policies.review_integrity import ReviewIntegrityValidator
from archivist.policies.structure import StructuralValidator
from archivist.policies.submission import Submission

logger = get_logger(__name__)


class Stage(str, Enum):
    RATE_LIMIT = "rate_limit"
    STRUCTURE = "structure"
    DUPLICATE = "duplicate"
    REVIEW_INTEGRITY = "review_integrity"


class PolicyEngine:
    """Runs the admission pipeline.

    Collaborators left as ``None`` default to the in-memory implementations
    configured from ``settings``.

    Args:
        rate_limiter: Sliding-window limiter (owned: closed by ``close()``)
        structure: Structural validator
        duplicates: Duplicate detector
        authorship: Authorship store used for review integrity and indexing
        settings: Configuration; ``get_settings()`` when omitted
    """

    def __init__(
        self,
        rate_limiter: RateLimiter | None = None,
        structure: StructuralValidator | None = None,
        duplicates: DuplicateDetector | None = None,
        authorship: AuthorshipStore | None = None,
        *,
        settings: ArchivistSettings | None = None,
    ):
        self.settings = settings or get_settings()
        self.rate_limiter = rate_limiter or build_rate_limiter(self.settings)
        self.structure = structure or StructuralValidator()
        self.duplicates = duplicates or DuplicateDetector(
            InMemoryFingerprintStore(),
            ContentHasher(self.settings.fingerprint_tags),
        )
        self.authorship = authorship or InMemoryAuthorshipStore()
        self.review_integrity = ReviewIntegrityValidator(self.authorship)

    # ── Admission ────────────────────────────────────────────────

    def check(self, submission: Submission, *, deadline: DeadlineContext | None = None) -> None:
        """Run the pipeline; raise the first stage's ``PolicyViolation``.

        Raises:
            PolicyViolation: Rejection, with ``stage`` set
            OperationCancelled: Caller cancelled or the deadline expired
            StorageError: A backing store failed
        """
        with LogContext(
            submission_id=submission.id,
            kind=submission.kind_label,
            identity=submission.author,
        ):
            check_deadline(deadline, "validate")
            stage = Stage.RATE_LIMIT
            try:
                self.rate_limiter.allow(submission.author, submission.kind)

                stage = Stage.STRUCTURE
                self.structure.validate(submission)

                stage = Stage.DUPLICATE
                if self.duplicates.applies_to(submission):
                    self.duplicates.check(submission, deadline=deadline)

                stage = Stage.REVIEW_INTEGRITY
                if submission.content_kind is ContentKind.REVIEW:
                    self.review_integrity.validate(submission, deadline=deadline)
            except PolicyViolation as e:
                e.with_context(
                    stage=stage.value,
                    submission_id=submission.id,
                    kind=submission.kind_label,
                    identity=submission.author,
                )
                logger.info(
                    "submission_rejected",
                    stage=stage.value,
                    reason=e.message,
                    category=e.category.value,
                )
                raise

            logger.info("submission_accepted")

    def validate(
        self, submission: Submission, *, deadline: DeadlineContext | None = None
    ) -> Result[Submission]:
        """``Ok(submission)`` when admitted, ``Err(PolicyViolation)`` when rejected.

        Cancellation and storage failures are not rejections and propagate.
        """
        try:
            self.check(submission, deadline=deadline)
        except PolicyViolation as e:
            return Err(e)
        return Ok(submission)

    # ── Indexing ─────────────────────────────────────────────────

    def post_process(
        self, submission: Submission, *, deadline: DeadlineContext | None = None
    ) -> Result[str | None]:
        """Index a stored submission. Never raises.

        Records authorship and, for papers and datasets, the content
        fingerprint. Failures are logged and returned as ``Err``; the
        submission stays stored and accepted.

        Returns:
            ``Ok(digest)`` (``Ok(None)`` for kinds without a fingerprint) or ``Err``
        """
        try:
            self.authorship.record(submission, deadline=deadline)
            digest = None
            if self.duplicates.applies_to(submission):
                digest = self.duplicates.store_hash(submission, deadline=deadline)
        except Exception as e:
            logger.error(
                "post_process_failed",
                submission_id=submission.id,
                kind=submission.kind_label,
                error_type=type(e).__name__,
                error=str(e),
            )
            return Err(e)
        return Ok(digest)

    # ── Introspection ────────────────────────────────────────────

    def policy_info(self) -> dict[str, Any]:
        """Human-readable summary of the policies in force."""
        return {
            "rate_limits": self.rate_limiter.describe(),
            "content_requirements": self.structure.requirements(),
            "duplicate_prevention": "Active for papers and research data",
            "retention_policy": "Permanent - no deletions allowed",
        }

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        self.rate_limiter.close()

    def __enter__(self) -> PolicyEngine:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


def build_engine(
    settings: ArchivistSettings | None = None, *, persistent: bool = False
) -> PolicyEngine:
    """Wire a ``PolicyEngine`` from settings.

    With ``persistent=True`` the fingerprint and authorship stores use
    ``settings.database_url`` (tables are created if absent).
    """
    settings = settings or get_settings()
    if not persistent:
        return PolicyEngine(settings=settings)

    db_engine = create_archive_engine(settings.database_url, echo=settings.database_echo)
    init_schema(db_engine)
    session_factory = archive_session_factory(db_engine)
    logger.info("persistent_stores_ready", dialect=db_engine.dialect.name)
    return PolicyEngine(
        duplicates=DuplicateDetector(
            SqlFingerprintStore(session_factory),
            ContentHasher(settings.fingerprint_tags),
        ),
        authorship=SqlAuthorshipStore(session_factory),
        settings=settings,
    )


__all__ = ["Stage", "PolicyEngine", "build_engine"]
