"""Reviewer conflict-of-interest and review quality checks.

Only reviews are inspected. A review must reference the content it reviews
(first ``e`` tag), that content must be resolvable, the reviewer must be
neither its creator nor a declared co-author, and the review must carry at
least two structured-feedback tags.
"""

from __future__ import annotations

from archivist.core.errors import (
    ConflictOfInterest,
    ConflictRole,
    ReferenceMissing,
    ReferenceNotFound,
    ReviewQualityInsufficient,
)
from archivist.core.timeout import DeadlineContext
from archivist.policies.authorship import AuthorshipStore, derive_authors
from archivist.policies.kinds import ContentKind
from archivist.policies.submission import Submission

STRUCTURED_FEEDBACK_TAGS = (
    "methodology-assessment",
    "strengths",
    "weaknesses",
    "recommendation",
)
MIN_STRUCTURED_FEEDBACK = 2


class ReviewIntegrityValidator:
    def __init__(self, store: AuthorshipStore):
        self.store = store

    def validate(
        self, submission: Submission, *, deadline: DeadlineContext | None = None
    ) -> None:
        """Raise the first integrity violation found; no-op for non-reviews."""
        if submission.content_kind is not ContentKind.REVIEW:
            return

        reference_id = submission.first_tag("e")
        if not reference_id:
            raise ReferenceMissing()

        reviewed = self.store.get_content(reference_id, deadline=deadline)
        if reviewed is None:
            raise ReferenceNotFound(reference_id)

        if reviewed.author == submission.author:
            raise ConflictOfInterest(ConflictRole.AUTHOR)

        try:
            authors = self.store.get_authors(reference_id, deadline=deadline)
        except ReferenceNotFound:
            authors = derive_authors(reviewed)
        if submission.author in authors:
            raise ConflictOfInterest(ConflictRole.COAUTHOR)

        present = [name for name in STRUCTURED_FEEDBACK_TAGS if submission.has_tag(name)]
        if len(present) < MIN_STRUCTURED_FEEDBACK:
            raise ReviewQualityInsufficient(present, required=MIN_STRUCTURED_FEEDBACK)


__all__ = ["STRUCTURED_FEEDBACK_TAGS", "MIN_STRUCTURED_FEEDBACK", "ReviewIntegrityValidator"]
