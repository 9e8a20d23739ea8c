"""
Deterministic content fingerprints for duplicate detection.

A fingerprint identifies a submission by its semantic content, not by its id
or signature: the same paper re-submitted by another identity, with different
capitalization or stray whitespace, produces the same digest.

Manifesto:
    Fingerprints must be:
    - **Deterministic:** Same content always produces the same digest
    - **Normalized:** Case and surrounding whitespace are not content
    - **Collision-resistant:** SHA-256, hex encoded (64 chars)
    - **Pure:** No I/O, no clock, no randomness

Architecture:
    ::

        ┌─────────────────────────────────────────────────────────────┐
        │                   Fingerprint Patterns                       │
        └─────────────────────────────────────────────────────────────┘

        Paper:
        ┌────────────────────────────────────────────────────────────┐
        │ sha256( norm(title)                                        │
        │       + norm(author_1) + ... + norm(author_n)              │
        │       + norm(abstract)[:500] )                             │
        │                                                            │
        │ norm(x) = lower(strip(x)); last title/abstract tag wins    │
        └────────────────────────────────────────────────────────────┘

        Every other kind:
        ┌────────────────────────────────────────────────────────────┐
        │ sha256( content + name_1 + value_1 + ... )                 │
        │                                                            │
        │ only tags whose name is on the allow-list, original order  │
        └────────────────────────────────────────────────────────────┘

Examples:
    >>> hasher = ContentHasher()
    >>> a = hasher.hash(paper_with_title("  Sliding Windows in Practice "))
    >>> b = hasher.hash(paper_with_title("sliding windows in practice"))
    >>> a == b
    True
    >>> len(a)
    64

Tags:
    hashing, deduplication, fingerprint, archivist

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable

from archivist.core.settings import DEFAULT_FINGERPRINT_TAGS
from archivist.policies.kinds import ContentKind
from archivist.policies.submission import Submission

ABSTRACT_PREFIX_LENGTH = 500


def _normalize(value: str) -> str:
    return value.strip().lower()


class ContentHasher:
    """Computes SHA-256 content fingerprints.

    Args:
        fingerprint_tags: Tag names folded into the digest for non-paper kinds
    """

    def __init__(self, fingerprint_tags: Iterable[str] = DEFAULT_FINGERPRINT_TAGS):
        self.fingerprint_tags = frozenset(fingerprint_tags)

    def hash(self, submission: Submission) -> str:
        """Return the hex digest for ``submission``."""
        if submission.content_kind is ContentKind.PAPER:
            return self._hash_paper(submission)
        return self._hash_generic(submission)

    def _hash_paper(self, submission: Submission) -> str:
        title = ""
        abstract = ""
        authors: list[str] = []
        for tag in submission.tags:
            if len(tag) < 2:
                continue
            name, value = tag[0], tag[1]
            if name == "title":
                title = _normalize(value)
            elif name == "abstract":
                abstract = _normalize(value)
            elif name == "author":
                authors.append(_normalize(value))

        digest = hashlib.sha256()
        digest.update(title.encode())
        for author in authors:
            digest.update(author.encode())
        digest.update(abstract[:ABSTRACT_PREFIX_LENGTH].encode())
        return digest.hexdigest()

    def _hash_generic(self, submission: Submission) -> str:
        digest = hashlib.sha256()
        digest.update(submission.content.encode())
        for tag in submission.tags:
            if len(tag) >= 2 and tag[0] in self.fingerprint_tags:
                digest.update(tag[0].encode())
                digest.update(tag[1].encode())
        return digest.hexdigest()


_default_hasher = ContentHasher()


def compute_fingerprint(submission: Submission) -> str:
    """Fingerprint ``submission`` with the default tag allow-list."""
    return _default_hasher.hash(submission)


__all__ = ["ABSTRACT_PREFIX_LENGTH", "ContentHasher", "compute_fingerprint"]
