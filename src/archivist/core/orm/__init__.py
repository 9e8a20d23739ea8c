"""SQLAlchemy 2.0 ORM layer backing the persistent policy stores.

Modules
-------
base        ArchivistBase (declarative base)
session     Engine factory, ArchivistSession, deadline-bounded sessions, schema init
tables      FingerprintTable, SubmissionRecordTable, AuthorshipTable

Tags:
    archivist, orm, sqlalchemy, declarative

Doc-Types:
    package-overview, module-index
"""

from __future__ import annotations

from archivist.core.orm.base import ArchivistBase
from archivist.core.orm.session import (
    ArchivistSession,
    archive_session_factory,
    create_archive_engine,
    deadline_session,
    init_schema,
)
from archivist.core.orm.tables import AuthorshipTable, FingerprintTable, SubmissionRecordTable

__all__ = [
    "ArchivistBase",
    "ArchivistSession",
    "archive_session_factory",
    "create_archive_engine",
    "deadline_session",
    "init_schema",
    "AuthorshipTable",
    "FingerprintTable",
    "SubmissionRecordTable",
]
