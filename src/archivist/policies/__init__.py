"""Admission policies for the academic archive.

Modules
-------
kinds             ContentKind enumeration
submission        Submission model
hashing           ContentHasher (SHA-256 fingerprints)
duplicates        FingerprintStore + DuplicateDetector
authorship        AuthorshipStore + derive_authors
review_integrity  ReviewIntegrityValidator
structure         Rule table + StructuralValidator
rate_limit        SlidingWindowRateLimiter
engine            PolicyEngine (pipeline orchestration)
"""

from archivist.policies.authorship import (
    AuthorshipStore,
    InMemoryAuthorshipStore,
    SqlAuthorshipStore,
    derive_authors,
)
from archivist.policies.duplicates import (
    DuplicateDetector,
    FingerprintStore,
    InMemoryFingerprintStore,
    SqlFingerprintStore,
)
from archivist.policies.engine import PolicyEngine, Stage, build_engine
from archivist.policies.hashing import ContentHasher, compute_fingerprint
from archivist.policies.kinds import ContentKind, UnknownKind, describe_kind, is_academic_kind
from archivist.policies.rate_limit import (
    KindLimit,
    RateLimitConfig,
    RateLimiter,
    SlidingWindowRateLimiter,
)
from archivist.policies.review_integrity import ReviewIntegrityValidator
from archivist.policies.structure import DEFAULT_RULES, KindRule, StructuralValidator
from archivist.policies.submission import Submission

__all__ = [
    "AuthorshipStore",
    "InMemoryAuthorshipStore",
    "SqlAuthorshipStore",
    "derive_authors",
    "DuplicateDetector",
    "FingerprintStore",
    "InMemoryFingerprintStore",
    "SqlFingerprintStore",
    "PolicyEngine",
    "Stage",
    "build_engine",
    "ContentHasher",
    "compute_fingerprint",
    "ContentKind",
    "UnknownKind",
    "describe_kind",
    "is_academic_kind",
    "KindLimit",
    "RateLimitConfig",
    "RateLimiter",
    "SlidingWindowRateLimiter",
    "ReviewIntegrityValidator",
    "DEFAULT_RULES",
    "KindRule",
    "StructuralValidator",
    "Submission",
]
