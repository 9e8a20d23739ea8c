"""
Authorship lookup for archived content.

Resolves a content id to the stored submission and to its ordered author set:
the creator followed by every identity declared through a ``p`` or
``author-pubkey`` tag. Author lists are cached when content is recorded and
re-derived from the stored submission otherwise.

Architecture:
    ::

        AuthorshipStore (Protocol)
        ├── InMemoryAuthorshipStore  : dicts behind a lock
        └── SqlAuthorshipStore       : archive_submissions + archive_authorship

        API: get_content(id)  → Submission | None
             get_authors(id)  → [creator, co-author, ...]   (ReferenceNotFound)
             record(submission)

Tags:
    authorship, conflict-of-interest, sqlalchemy, archivist

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

from archivist.core.errors import ReferenceNotFound, StorageError
from archivist.core.logging import get_logger
from archivist.core.orm.session import deadline_session
from archivist.core.orm.tables import AuthorshipTable, SubmissionRecordTable
from archivist.core.timeout import DeadlineContext, check_deadline
from archivist.policies.submission import Submission

logger = get_logger(__name__)

COAUTHOR_TAGS = frozenset({"p", "author-pubkey"})


def derive_authors(submission: Submission) -> list[str]:
    """Creator plus declared co-authors, first-seen order, exact repeats collapsed."""
    authors = [submission.author]
    seen = {submission.author}
    for tag in submission.tags:
        if len(tag) >= 2 and tag[0] in COAUTHOR_TAGS and tag[1] not in seen:
            seen.add(tag[1])
            authors.append(tag[1])
    return authors


class AuthorshipStore(Protocol):
    """Id → submission and id → author set lookups."""

    def get_content(
        self, content_id: str, *, deadline: DeadlineContext | None = None
    ) -> Submission | None:
        ...

    def get_authors(
        self, content_id: str, *, deadline: DeadlineContext | None = None
    ) -> list[str]:
        """Raises ``ReferenceNotFound`` when ``content_id`` is unknown."""
        ...

    def record(self, submission: Submission, *, deadline: DeadlineContext | None = None) -> None:
        ...


# ------------------------------------------------------------------ #
# In-Memory Store
# ------------------------------------------------------------------ #


class InMemoryAuthorshipStore:
    """Authorship store for tests and single-process deployments."""

    def __init__(self) -> None:
        self._content: dict[str, Submission] = {}
        self._authors: dict[str, list[str]] = {}
        self._lock = threading.Lock()

    def get_content(
        self, content_id: str, *, deadline: DeadlineContext | None = None
    ) -> Submission | None:
        check_deadline(deadline, "authorship_get_content")
        with self._lock:
            return self._content.get(content_id)

    def get_authors(
        self, content_id: str, *, deadline: DeadlineContext | None = None
    ) -> list[str]:
        check_deadline(deadline, "authorship_get_authors")
        with self._lock:
            authors = self._authors.get(content_id)
            if authors is not None:
                return list(authors)
            content = self._content.get(content_id)
        if content is None:
            raise ReferenceNotFound(content_id)
        return derive_authors(content)

    def record(self, submission: Submission, *, deadline: DeadlineContext | None = None) -> None:
        check_deadline(deadline, "authorship_record")
        with self._lock:
            # First write wins; the archive never replaces recorded content
            if submission.id in self._content:
                return
            self._content[submission.id] = submission
            self._authors[submission.id] = derive_authors(submission)

    def __contains__(self, content_id: object) -> bool:
        with self._lock:
            return content_id in self._content


# ------------------------------------------------------------------ #
# SQL Store
# ------------------------------------------------------------------ #


def _row_to_submission(row: SubmissionRecordTable) -> Submission:
    return Submission.from_dict(
        {
            "id": row.id,
            "author": row.author,
            "kind": row.kind,
            "created_at": row.created_at,
            "tags": row.tags,
            "content": row.content,
        }
    )


class SqlAuthorshipStore:
    """Authorship store backed by ``archive_submissions`` and ``archive_authorship``.

    ``record`` is idempotent: an already recorded id is left untouched.

    Deadlines are applied per call through ``deadline_session``.

    Args:
        session_factory: Callable returning a new ``Session`` (a ``sessionmaker``)
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def get_content(
        self, content_id: str, *, deadline: DeadlineContext | None = None
    ) -> Submission | None:
        check_deadline(deadline, "authorship_get_content")
        try:
            with deadline_session(
                self._session_factory, deadline, "authorship_get_content"
            ) as session:
                row = session.get(SubmissionRecordTable, content_id)
                submission = _row_to_submission(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError("content lookup failed", cause=e) from e
        check_deadline(deadline, "authorship_get_content")
        return submission

    def get_authors(
        self, content_id: str, *, deadline: DeadlineContext | None = None
    ) -> list[str]:
        check_deadline(deadline, "authorship_get_authors")
        try:
            with deadline_session(
                self._session_factory, deadline, "authorship_get_authors"
            ) as session:
                authors = list(
                    session.scalars(
                        select(AuthorshipTable.identity)
                        .where(AuthorshipTable.content_id == content_id)
                        .order_by(AuthorshipTable.position)
                    )
                )
                row = None if authors else session.get(SubmissionRecordTable, content_id)
                content = _row_to_submission(row) if row is not None else None
        except SQLAlchemyError as e:
            raise StorageError("authorship lookup failed", cause=e) from e
        check_deadline(deadline, "authorship_get_authors")

        if authors:
            return authors
        if content is None:
            raise ReferenceNotFound(content_id)
        return derive_authors(content)

    def record(self, submission: Submission, *, deadline: DeadlineContext | None = None) -> None:
        check_deadline(deadline, "authorship_record")
        payload = submission.to_dict()
        try:
            with deadline_session(
                self._session_factory, deadline, "authorship_record"
            ) as session:
                if session.get(SubmissionRecordTable, submission.id) is not None:
                    return
                session.add(
                    SubmissionRecordTable(
                        id=submission.id,
                        author=submission.author,
                        kind=str(payload["kind"]),
                        created_at=submission.created_at,
                        tags=payload["tags"],
                        content=submission.content,
                    )
                )
                session.flush()
                session.add_all(
                    AuthorshipTable(content_id=submission.id, identity=identity, position=position)
                    for position, identity in enumerate(derive_authors(submission))
                )
                try:
                    session.commit()
                except IntegrityError:
                    session.rollback()
                    logger.debug("authorship_insert_race", content_id=submission.id)
                    return
        except IntegrityError:
            # Lost the race at flush time; the other writer recorded it
            logger.debug("authorship_insert_race", content_id=submission.id)
            return
        except SQLAlchemyError as e:
            raise StorageError("authorship record failed", cause=e) from e
        check_deadline(deadline, "authorship_record")


__all__ = [
    "COAUTHOR_TAGS",
    "derive_authors",
    "AuthorshipStore",
    "InMemoryAuthorshipStore",
    "SqlAuthorshipStore",
]
