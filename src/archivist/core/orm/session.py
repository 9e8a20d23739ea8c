"""Engine factory, session class and schema bootstrap for the archive stores.

* ``create_archive_engine``   -- SQLite (file or in-memory) or any SA URL
* ``ArchivistSession``        -- ``Session`` that keeps objects usable after commit
* ``archive_session_factory`` -- ``sessionmaker`` producing ``ArchivistSession``
* ``deadline_session``        -- session whose statements are bounded by a deadline
* ``init_schema``             -- create the archive tables if absent

Tags:
    archivist, orm, sqlalchemy, session, engine

Doc-Types:
    api-reference
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from archivist.core.logging import get_logger
from archivist.core.orm.base import ArchivistBase
from archivist.core.timeout import DeadlineContext, TimeoutExpired

logger = get_logger(__name__)

_MEMORY_URLS = frozenset({"sqlite://", "sqlite:///:memory:"})


def _enable_sqlite_pragmas(engine: Engine, *, wal: bool) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection: Any, _record: Any) -> None:
        cursor = dbapi_connection.cursor()
        if wal:
            cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _ensure_parent_dir(url: str) -> None:
    database = make_url(url).database
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def create_archive_engine(url: str, *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create an engine for the fingerprint and authorship stores.

    SQLite connections may be shared across threads (the rate-limit sweep and
    request threads run concurrently); an in-memory database is pinned to one
    connection so every session sees the same tables. A file database gets
    its parent directory created. Other backends get ``pool_pre_ping``.

    Args:
        url: Database URL (``sqlite:///archivist.db``, ``postgresql+psycopg://...``)
        echo: Log emitted SQL
        **kwargs: Forwarded to ``sqlalchemy.create_engine``
    """
    if not url.startswith("sqlite"):
        kwargs.setdefault("pool_pre_ping", True)
        return create_engine(url, echo=echo, **kwargs)

    memory = url in _MEMORY_URLS or "mode=memory" in url
    kwargs.setdefault("connect_args", {"check_same_thread": False})
    if memory:
        kwargs.setdefault("poolclass", StaticPool)
    else:
        _ensure_parent_dir(url)
    engine = create_engine(url, echo=echo, **kwargs)
    _enable_sqlite_pragmas(engine, wal=not memory)
    return engine


class ArchivistSession(Session):
    """Session with ``expire_on_commit=False``; rows stay readable after commit."""

    def __init__(self, bind: Engine | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("expire_on_commit", False)
        super().__init__(bind=bind, **kwargs)


def archive_session_factory(engine: Engine) -> sessionmaker[ArchivistSession]:
    return sessionmaker(bind=engine, class_=ArchivistSession, expire_on_commit=False)


def statement_timeout_ms(deadline: DeadlineContext) -> int | None:
    """Milliseconds left on ``deadline``, at least 1; ``None`` when unbounded."""
    remaining = deadline.remaining()
    if math.isinf(remaining):
        return None
    return max(1, math.ceil(remaining * 1000))


def apply_statement_timeout(session: Session, deadline: DeadlineContext) -> None:
    """Bound the rest of the current transaction by ``deadline`` (PostgreSQL only).

    SQLite has no per-statement timeout; there the stores check the deadline
    before and after each call, so a stalled SQLite call is only noticed once
    it returns.
    """
    timeout_ms = statement_timeout_ms(deadline)
    if timeout_ms is None or session.get_bind().dialect.name != "postgresql":
        return
    # SET does not take bind parameters
    session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))


@contextmanager
def deadline_session(
    session_factory: Callable[[], Session],
    deadline: DeadlineContext | None,
    operation: str,
) -> Iterator[Session]:
    """Open a session bounded by ``deadline``.

    A database error raised after the deadline passed (a cancelled
    statement) surfaces as ``TimeoutExpired``; other errors propagate.
    """
    try:
        with session_factory() as session:
            if deadline is not None:
                apply_statement_timeout(session, deadline)
            yield session
    except SQLAlchemyError as e:
        if deadline is not None and deadline.is_expired():
            raise TimeoutExpired(
                timeout=deadline.timeout_seconds,
                elapsed=deadline.elapsed,
                operation=operation,
            ) from e
        raise


def init_schema(engine: Engine) -> None:
    """Create every archive table that does not exist yet. Never drops or alters."""
    # Importing tables registers them on the metadata
    from archivist.core.orm import tables  # noqa: F401

    ArchivistBase.metadata.create_all(engine)
    logger.debug("archive_schema_ready", tables=sorted(ArchivistBase.metadata.tables))


__all__ = [
    "create_archive_engine",
    "ArchivistSession",
    "archive_session_factory",
    "statement_timeout_ms",
    "apply_statement_timeout",
    "deadline_session",
    "init_schema",
]
