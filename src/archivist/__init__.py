"""
Archivist - admission-control policy engine for an academic content archive.

- archivist.core: errors, result envelope, logging, settings, deadlines, ORM
- archivist.policies: rate limiting, structure, duplicates, review integrity
"""

__version__ = "0.1.0"

from archivist.core.errors import PolicyViolation
from archivist.core.settings import ArchivistSettings
from archivist.policies.engine import PolicyEngine, Stage, build_engine
from archivist.policies.kinds import ContentKind
from archivist.policies.submission import Submission

__all__ = [
    "ArchivistSettings",
    "ContentKind",
    "PolicyEngine",
    "PolicyViolation",
    "Stage",
    "Submission",
    "build_engine",
]
