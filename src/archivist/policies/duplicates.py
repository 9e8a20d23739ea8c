"""
Duplicate-content detection for papers and research data.

Fingerprints are content-addressed and permanent: once a digest is stored it
maps forever to the id of the first submission that produced it. Storing a
digest that is already present is a no-op, never an error.

Manifesto:
    - **Protocol-based:** ``FingerprintStore`` defines the contract
    - **Interchangeable:** In-memory for tests, SQL for production
    - **Idempotent:** Insert-if-absent, safe to repeat after a crash
    - **Append-only:** No update, no delete

Architecture:
    ::

        FingerprintStore (Protocol)
        ├── InMemoryFingerprintStore  : single process, lock guarded dict
        └── SqlFingerprintStore       : archive_fingerprints table

        DuplicateDetector(store, hasher)
            applies_to(submission)    → paper / data only
            is_duplicate(submission)  → bool
            check(submission)         → raises DuplicateContent
            store_hash(submission)    → digest

Examples:
    >>> detector = DuplicateDetector(InMemoryFingerprintStore())
    >>> detector.store_hash(paper)
    '5f1c...'
    >>> detector.is_duplicate(same_paper_other_author)
    True

Tags:
    deduplication, fingerprint, idempotency, sqlalchemy, archivist

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from archivist.core.errors import DuplicateContent, StorageError
from archivist.core.logging import get_logger
from archivist.core.orm.session import deadline_session
from archivist.core.orm.tables import FingerprintTable
from archivist.core.timeout import DeadlineContext, check_deadline
from archivist.policies.hashing import ContentHasher
from archivist.policies.kinds import FINGERPRINTED_KINDS, ContentKind
from archivist.policies.submission import Submission

logger = get_logger(__name__)

_DUPLICATE_MESSAGES = {
    ContentKind.PAPER: (
        "duplicate paper detected: a paper with the same title, authors, and abstract "
        "already exists in the archive"
    ),
    ContentKind.DATA: "duplicate research data detected: this dataset already exists in the archive",
}


class FingerprintStore(Protocol):
    """Key-value persistence keyed by digest string."""

    def exists(self, digest: str, *, deadline: DeadlineContext | None = None) -> bool:
        """Return ``True`` if ``digest`` has been stored."""
        ...

    def add(
        self,
        digest: str,
        submission_id: str,
        *,
        kind: int | None = None,
        deadline: DeadlineContext | None = None,
    ) -> bool:
        """Insert ``digest`` if absent.

        Returns:
            ``True`` if newly stored, ``False`` if it was already present.
            An existing mapping is never overwritten.
        """
        ...

    def get(self, digest: str, *, deadline: DeadlineContext | None = None) -> str | None:
        """Id of the first submission that produced ``digest``."""
        ...


# ------------------------------------------------------------------ #
# In-Memory Store
# ------------------------------------------------------------------ #


class InMemoryFingerprintStore:
    """Fingerprint store backed by a dict. Thread-safe for single-process use."""

    def __init__(self) -> None:
        self._hashes: dict[str, str] = {}
        self._lock = threading.Lock()

    def exists(self, digest: str, *, deadline: DeadlineContext | None = None) -> bool:
        check_deadline(deadline, "fingerprint_exists")
        with self._lock:
            return digest in self._hashes

    def add(
        self,
        digest: str,
        submission_id: str,
        *,
        kind: int | None = None,
        deadline: DeadlineContext | None = None,
    ) -> bool:
        check_deadline(deadline, "fingerprint_add")
        with self._lock:
            if digest in self._hashes:
                return False
            self._hashes[digest] = submission_id
            return True

    def get(self, digest: str, *, deadline: DeadlineContext | None = None) -> str | None:
        check_deadline(deadline, "fingerprint_get")
        with self._lock:
            return self._hashes.get(digest)

    def __len__(self) -> int:
        with self._lock:
            return len(self._hashes)


# ------------------------------------------------------------------ #
# SQL Store
# ------------------------------------------------------------------ #


class SqlFingerprintStore:
    """Fingerprint store backed by the ``archive_fingerprints`` table.

    Insert-if-absent is a primary-key insert; a concurrent writer that wins
    the race surfaces as ``IntegrityError``, which means "already present".

    A deadline bounds each call through ``deadline_session``: PostgreSQL gets
    a ``statement_timeout``, SQLite is checked before and after the call.

    Args:
        session_factory: Callable returning a new ``Session`` (a ``sessionmaker``)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def exists(self, digest: str, *, deadline: DeadlineContext | None = None) -> bool:
        return self.get(digest, deadline=deadline) is not None

    def get(self, digest: str, *, deadline: DeadlineContext | None = None) -> str | None:
        check_deadline(deadline, "fingerprint_get")
        try:
            with deadline_session(self._session_factory, deadline, "fingerprint_get") as session:
                submission_id = session.scalar(
                    select(FingerprintTable.submission_id).where(
                        FingerprintTable.content_hash == digest
                    )
                )
        except SQLAlchemyError as e:
            raise StorageError("fingerprint lookup failed", cause=e) from e
        check_deadline(deadline, "fingerprint_get")
        return submission_id

    def add(
        self,
        digest: str,
        submission_id: str,
        *,
        kind: int | None = None,
        deadline: DeadlineContext | None = None,
    ) -> bool:
        check_deadline(deadline, "fingerprint_add")
        try:
            with deadline_session(self._session_factory, deadline, "fingerprint_add") as session:
                if session.get(FingerprintTable, digest) is not None:
                    return False
                session.add(
                    FingerprintTable(content_hash=digest, submission_id=submission_id, kind=kind)
                )
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    logger.debug("fingerprint_insert_race", content_hash=digest)
                    return False
        except SQLAlchemyError as e:
            raise StorageError("fingerprint insert failed", cause=e) from e
        check_deadline(deadline, "fingerprint_add")
        return True


# ------------------------------------------------------------------ #
# Detector
# ------------------------------------------------------------------ #


class DuplicateDetector:
    """Detects re-submission of already archived papers and datasets.

    Example:
        detector = DuplicateDetector(SqlFingerprintStore(session_factory))
        detector.check(submission)        # raises DuplicateContent
        detector.store_hash(submission)   # after the submission is stored
    """

    def __init__(self, store: FingerprintStore, hasher: ContentHasher | None = None):
        self.store = store
        self.hasher = hasher or ContentHasher()

    def applies_to(self, submission: Submission) -> bool:
        return submission.content_kind in FINGERPRINTED_KINDS

    def is_duplicate(
        self, submission: Submission, *, deadline: DeadlineContext | None = None
    ) -> bool:
        digest = self.hasher.hash(submission)
        return self.store.exists(digest, deadline=deadline)

    def check(self, submission: Submission, *, deadline: DeadlineContext | None = None) -> None:
        """Raise ``DuplicateContent`` if the submission's fingerprint is archived.

        Kinds other than paper and data pass unconditionally.
        """
        if not self.applies_to(submission):
            return
        digest = self.hasher.hash(submission)
        original_id = self.store.get(digest, deadline=deadline)
        if original_id is None:
            return
        kind = submission.content_kind
        raise DuplicateContent(
            _DUPLICATE_MESSAGES[kind],
            kind=kind.slug,
            fingerprint=digest,
            original_id=original_id,
        )

    def store_hash(
        self,
        submission: Submission,
        digest: str | None = None,
        *,
        deadline: DeadlineContext | None = None,
    ) -> str:
        """Record the fingerprint of an archived submission. Idempotent.

        Args:
            submission: The stored submission
            digest: Precomputed digest; computed with the hasher if omitted

        Returns:
            The stored (or already present) digest
        """
        if not digest:
            digest = self.hasher.hash(submission)
        kind = submission.content_kind
        created = self.store.add(
            digest,
            submission.id,
            kind=kind.value if kind is not None else None,
            deadline=deadline,
        )
        if created:
            logger.debug("fingerprint_stored", submission_id=submission.id, content_hash=digest)
        return digest


__all__ = [
    "FingerprintStore",
    "InMemoryFingerprintStore",
    "SqlFingerprintStore",
    "DuplicateDetector",
]
