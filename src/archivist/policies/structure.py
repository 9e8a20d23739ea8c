"""
Structural validation of submissions against a per-kind rule table.

Each recognized kind maps to a ``KindRule``: whether the kind needs a
non-empty ``d`` tag and an ordered list of checks (required tags, minimum
trimmed lengths, allowed values). Adding a kind is a table change, not a new
function.

Validation order:
    1. kind must be recognized
    2. ``d`` tag, when the kind requires one
    3. the kind's checks in table order, first failure wins
    4. cross-kind metadata: ``published_at`` tag or nonzero ``created_at``

Examples:
    >>> validator = StructuralValidator()
    >>> validator.validate(paper_without_abstract)
    Traceback (most recent call last):
    ...
    InvalidStructure: academic paper missing required tags: abstract. ...

Tags:
    validation, rule-table, structure, archivist

Doc-Types:
    - API Reference
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

from archivist.core.errors import InvalidStructure, MetadataMissing
from archivist.policies.kinds import ContentKind
from archivist.policies.submission import Submission


class Check(Protocol):
    tag: str | None

    def failure(self, submission: Submission) -> str | None:
        """Return the rejection message, or ``None`` if the check passes."""
        ...

    def describe(self) -> str:
        ...


# =============================================================================
# CHECKS
# =============================================================================


@dataclass(frozen=True)
class RequireTag:
    """A tag named ``name`` carrying a value must be present."""

    name: str
    message: str

    @property
    def tag(self) -> str:
        return self.name

    def failure(self, submission: Submission) -> str | None:
        return None if submission.has_tag(self.name) else self.message

    def describe(self) -> str:
        return f"{self.name} tag"


@dataclass(frozen=True)
class RequireTags:
    """Every tag in ``names`` must be present; the message lists all missing ones.

    ``message`` is formatted with ``missing`` (comma separated names).
    """

    names: tuple[str, ...]
    message: str

    @property
    def tag(self) -> str:
        return ",".join(self.names)

    def missing(self, submission: Submission) -> list[str]:
        return [name for name in self.names if not submission.has_tag(name)]

    def failure(self, submission: Submission) -> str | None:
        missing = self.missing(submission)
        if not missing:
            return None
        return self.message.format(missing=", ".join(missing))

    def describe(self) -> str:
        return ", ".join(self.names) + " tags"


@dataclass(frozen=True)
class RequireAnyTag:
    """At least one of ``names`` must be present."""

    names: tuple[str, ...]
    message: str

    @property
    def tag(self) -> str:
        return self.names[0]

    def failure(self, submission: Submission) -> str | None:
        return None if any(submission.has_tag(name) for name in self.names) else self.message

    def describe(self) -> str:
        return " or ".join(self.names) + " tag"


@dataclass(frozen=True)
class MinLength:
    """Every occurrence of ``tag`` must have a trimmed value of ``minimum`` chars.

    Absent tags pass; pair with ``RequireTag`` when the tag is mandatory.
    """

    tag: str
    minimum: int
    message: str

    def failure(self, submission: Submission) -> str | None:
        for value in submission.tag_values(self.tag):
            if len(value.strip()) < self.minimum:
                return self.message
        return None

    def describe(self) -> str:
        return f"{self.tag} (min {self.minimum} chars)"


@dataclass(frozen=True)
class MinContentLength:
    minimum: int
    message: str
    tag: str | None = None

    def failure(self, submission: Submission) -> str | None:
        if len(submission.content.strip()) < self.minimum:
            return self.message
        return None

    def describe(self) -> str:
        return f"content (min {self.minimum} chars)"


@dataclass(frozen=True)
class AllowedValues:
    """Every value of ``tag`` must be one of ``values``; absent tags pass.

    ``message`` is formatted with ``value`` (the offending value).
    """

    tag: str
    values: frozenset[str]
    message: str

    def failure(self, submission: Submission) -> str | None:
        for value in submission.tag_values(self.tag):
            if value not in self.values:
                return self.message.format(value=value)
        return None

    def describe(self) -> str:
        return f"{self.tag} one of {', '.join(sorted(self.values))}"


@dataclass(frozen=True)
class KindRule:
    kind: ContentKind
    requires_d_tag: bool = False
    checks: tuple[Check, ...] = field(default_factory=tuple)


# =============================================================================
# RULE TABLE
# =============================================================================


DEFAULT_RULES: tuple[KindRule, ...] = (
    KindRule(
        ContentKind.PAPER,
        requires_d_tag=True,
        checks=(
            RequireTags(
                ("title", "subject", "abstract", "author"),
                "academic paper missing required tags: {missing}. Papers must include "
                "title, subject, abstract, and at least one author tag",
            ),
            MinLength("title", 10, "paper title too short: must be at least 10 characters"),
            MinLength(
                "abstract",
                50,
                "paper abstract too short: must be at least 50 characters to provide "
                "meaningful summary",
            ),
            MinLength("author", 3, "author name too short: must be at least 3 characters"),
        ),
    ),
    KindRule(
        ContentKind.CITATION,
        checks=(
            RequireTag(
                "e",
                "citation must reference a paper: missing 'e' tag pointing to the cited paper event",
            ),
            RequireTag(
                "context",
                "citation must provide context: missing 'context' tag explaining the citation",
            ),
            MinLength(
                "context",
                20,
                "citation context too short: must provide at least 20 characters of context",
            ),
        ),
    ),
    KindRule(
        ContentKind.REVIEW,
        checks=(
            RequireTag(
                "e", "review must reference a paper: missing 'e' tag pointing to the reviewed paper"
            ),
            MinLength(
                "content",
                100,
                "review content too short: must provide at least 100 characters of "
                "substantive review",
            ),
            RequireAnyTag(
                ("rating", "content"),
                "review must include either a rating or content review (preferably both)",
            ),
        ),
    ),
    KindRule(
        ContentKind.DATA,
        requires_d_tag=True,
        checks=(
            RequireTag(
                "data-type",
                "research data must specify type: missing 'data-type' tag "
                "(e.g., 'dataset', 'code', 'supplementary')",
            ),
            RequireTag(
                "description", "research data must have description: missing 'description' tag"
            ),
            MinLength(
                "description",
                30,
                "data description too short: must provide at least 30 characters "
                "describing the dataset",
            ),
            RequireTag(
                "e",
                "research data must reference related paper: missing 'e' tag pointing to "
                "associated paper",
            ),
        ),
    ),
    KindRule(
        ContentKind.DISCUSSION,
        checks=(
            RequireTag(
                "e",
                "academic discussion must reference a paper or parent discussion: missing 'e' tag",
            ),
            MinContentLength(
                50,
                "discussion content too short: must provide at least 50 characters for "
                "meaningful academic discourse",
            ),
        ),
    ),
    KindRule(
        ContentKind.QUESTION,
        checks=(
            RequireAnyTag(
                ("e", "a"),
                "question must reference a paper or discussion: missing 'e' or 'a' tag",
            ),
            RequireTag(
                "question-type",
                "question must specify type: missing 'question-type' tag "
                "(methodology/clarification/data/theory)",
            ),
            MinContentLength(20, "question too short: must be at least 20 characters"),
        ),
    ),
    KindRule(
        ContentKind.PAPER_UPDATE,
        requires_d_tag=True,
        checks=(
            RequireTag(
                "e", "paper update must reference original: missing 'e' tag to original paper"
            ),
            RequireTag("version", "paper update must specify version: missing 'version' tag"),
            RequireTag("changes", "paper update must describe changes: missing 'changes' tag"),
        ),
    ),
    KindRule(
        ContentKind.MENTORSHIP,
        requires_d_tag=True,
        checks=(
            AllowedValues(
                "mentor-type",
                frozenset({"offer", "request"}),
                "mentor-type must be 'offer' or 'request', got '{value}'",
            ),
            RequireTag(
                "mentor-type",
                "mentorship must specify type: missing 'mentor-type' tag (offer/request)",
            ),
            RequireTag("fields", "mentorship must specify fields: missing 'fields' tag"),
        ),
    ),
    KindRule(
        ContentKind.PROPOSAL,
        requires_d_tag=True,
        checks=(
            RequireTag(
                "funding-amount", "proposal must specify amount: missing 'funding-amount' tag"
            ),
            RequireTag("duration", "proposal must specify duration: missing 'duration' tag"),
            RequireTag("abstract", "proposal must have abstract: missing 'abstract' tag"),
            MinLength(
                "abstract", 50, "proposal abstract too short: must be at least 50 characters"
            ),
        ),
    ),
    KindRule(
        ContentKind.PROGRESS_REPORT,
        requires_d_tag=True,
        checks=(
            RequireAnyTag(
                ("e", "a"), "progress report must reference proposal: missing 'e' or 'a' tag"
            ),
            RequireTag(
                "milestone", "progress report must specify milestone: missing 'milestone' tag"
            ),
            RequireTag(
                "completion", "progress report must specify completion: missing 'completion' tag"
            ),
        ),
    ),
    KindRule(
        ContentKind.CITIZEN_PROJECT,
        requires_d_tag=True,
        checks=(
            RequireTag(
                "project-type", "citizen project must specify type: missing 'project-type' tag"
            ),
            RequireTag(
                "requirements",
                "citizen project must specify requirements: missing 'requirements' tag",
            ),
            RequireTag(
                "data-format",
                "citizen project must specify data format: missing 'data-format' tag",
            ),
        ),
    ),
    KindRule(
        ContentKind.MEDIA_SUMMARY,
        checks=(
            RequireAnyTag(("e", "a"), "media summary must reference paper: missing 'e' or 'a' tag"),
            RequireTag(
                "summary-type", "media summary must specify type: missing 'summary-type' tag"
            ),
            RequireTag("language", "media summary must specify language: missing 'language' tag"),
        ),
    ),
)


# =============================================================================
# VALIDATOR
# =============================================================================


class StructuralValidator:
    """Validates required tags, length thresholds and the ``d`` tag per kind.

    Args:
        rules: Rule table; a kind without a rule is rejected as unrecognized
    """

    def __init__(self, rules: Iterable[KindRule] = DEFAULT_RULES):
        self._rules: Mapping[ContentKind, KindRule] = {rule.kind: rule for rule in rules}

    def rule_for(self, kind: ContentKind) -> KindRule | None:
        return self._rules.get(kind)

    def validate(self, submission: Submission) -> None:
        """Raise ``InvalidStructure`` or ``MetadataMissing`` on the first failure."""
        kind = submission.content_kind
        rule = self._rules.get(kind) if kind is not None else None
        if kind is None or rule is None:
            raise InvalidStructure(
                str(submission.kind), f"invalid academic event kind: {submission.kind}"
            )

        if rule.requires_d_tag and not submission.first_tag("d"):
            raise InvalidStructure(
                kind.slug,
                f"{kind.display_name} requires a 'd' tag for addressable event identification",
                tag="d",
            )

        for check in rule.checks:
            message = check.failure(submission)
            if message is not None:
                raise InvalidStructure(kind.slug, message, tag=check.tag)

        if not submission.has_tag("published_at") and not submission.created_at:
            raise MetadataMissing()

    def requirements(self) -> dict[str, Any]:
        """Human-readable requirement summary per kind slug."""
        return {
            kind.slug: {
                "name": kind.display_name,
                "requires_d_tag": rule.requires_d_tag,
                "rules": [check.describe() for check in rule.checks],
            }
            for kind, rule in self._rules.items()
        }


__all__ = [
    "Check",
    "RequireTag",
    "RequireTags",
    "RequireAnyTag",
    "MinLength",
    "MinContentLength",
    "AllowedValues",
    "KindRule",
    "DEFAULT_RULES",
    "StructuralValidator",
]
