"""SQLAlchemy 2.0 ORM table definitions for the persistent policy stores.

* ``archive_fingerprints`` -- content hash → first submission id (never updated)
* ``archive_submissions``  -- submissions recorded for reference resolution
* ``archive_authorship``   -- content id → ordered author identities

Every table is append-only: the stores insert rows and never update or
delete them.

Usage::

    from archivist.core.orm import create_archive_engine, init_schema

    engine = create_archive_engine("sqlite:///archivist.db")
    init_schema(engine)
"""

from __future__ import annotations

import datetime

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from archivist.core.orm.base import ArchivistBase

_NOW = text("CURRENT_TIMESTAMP")


class FingerprintTable(ArchivistBase):
    __tablename__ = "archive_fingerprints"

    content_hash: Mapped[str] = mapped_column(Text, primary_key=True)
    submission_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    kind: Mapped[int | None] = mapped_column(Integer)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )


class SubmissionRecordTable(ArchivistBase):
    __tablename__ = "archive_submissions"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    author: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    kind: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    content: Mapped[str] = mapped_column(Text, nullable=False, default="")
    recorded_at: Mapped[datetime.datetime] = mapped_column(
        DateTime, nullable=False, server_default=_NOW
    )


class AuthorshipTable(ArchivistBase):
    __tablename__ = "archive_authorship"

    content_id: Mapped[str] = mapped_column(
        Text, ForeignKey("archive_submissions.id"), primary_key=True
    )
    identity: Mapped[str] = mapped_column(Text, primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)


__all__ = ["FingerprintTable", "SubmissionRecordTable", "AuthorshipTable"]
