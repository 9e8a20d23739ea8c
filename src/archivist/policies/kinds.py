"""Content kinds accepted by the archive.

One numbering scheme is canonical: regular (immutable) kinds live in the
8429-8434 range, addressable kinds in 31428-31439. Addressable kinds are
identified by (kind, creator identity, ``d`` tag value) and must carry a
non-empty ``d`` tag, except media summaries which are accepted without one.

    ┌──────────────────┬────────┬─────────────┬─────────┐
    │ Kind             │ Number │ Class       │ d tag   │
    ├──────────────────┼────────┼─────────────┼─────────┤
    │ citation         │  8429  │ regular     │         │
    │ review           │  8430  │ regular     │         │
    │ discussion       │  8432  │ regular     │         │
    │ question         │  8434  │ regular     │         │
    │ paper            │ 31428  │ addressable │ yes     │
    │ data             │ 31431  │ addressable │ yes     │
    │ paper-update     │ 31433  │ addressable │ yes     │
    │ mentorship       │ 31435  │ addressable │ yes     │
    │ proposal         │ 31436  │ addressable │ yes     │
    │ progress-report  │ 31437  │ addressable │ yes     │
    │ citizen-project  │ 31438  │ addressable │ yes     │
    │ media-summary    │ 31439  │ addressable │         │
    └──────────────────┴────────┴─────────────┴─────────┘
"""

from __future__ import annotations

from enum import IntEnum

ADDRESSABLE_RANGE = range(30000, 40000)


class UnknownKind(ValueError):
    """Raised when a value does not name a recognized content kind."""


class ContentKind(IntEnum):
    CITATION = 8429
    REVIEW = 8430
    DISCUSSION = 8432
    QUESTION = 8434

    PAPER = 31428
    DATA = 31431
    PAPER_UPDATE = 31433
    MENTORSHIP = 31435
    PROPOSAL = 31436
    PROGRESS_REPORT = 31437
    CITIZEN_PROJECT = 31438
    MEDIA_SUMMARY = 31439

    @property
    def slug(self) -> str:
        """Lower-case, hyphenated name used in config and messages."""
        return self.name.lower().replace("_", "-")

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def is_addressable(self) -> bool:
        return is_addressable_number(self.value)

    @classmethod
    def parse(cls, value: int | str | ContentKind) -> ContentKind:
        """Resolve a number, numeric string, slug or member name.

        Raises:
            UnknownKind: If ``value`` names no recognized kind
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, bool):
            raise UnknownKind(f"invalid academic event kind: {value!r}")
        if isinstance(value, int):
            try:
                return cls(value)
            except ValueError:
                raise UnknownKind(f"invalid academic event kind: {value}") from None
        if isinstance(value, str):
            text = value.strip()
            if text.isascii() and text.isdigit():
                return cls.parse(int(text))
            member = text.upper().replace("-", "_")
            if member in cls.__members__:
                return cls[member]
        raise UnknownKind(f"invalid academic event kind: {value!r}")


_DISPLAY_NAMES = {
    ContentKind.CITATION: "Citation",
    ContentKind.REVIEW: "Peer Review",
    ContentKind.DISCUSSION: "Discussion",
    ContentKind.QUESTION: "Question",
    ContentKind.PAPER: "Academic Paper",
    ContentKind.DATA: "Research Data",
    ContentKind.PAPER_UPDATE: "Paper Update",
    ContentKind.MENTORSHIP: "Mentorship",
    ContentKind.PROPOSAL: "Funding Proposal",
    ContentKind.PROGRESS_REPORT: "Progress Report",
    ContentKind.CITIZEN_PROJECT: "Citizen Science Project",
    ContentKind.MEDIA_SUMMARY: "Media Summary",
}

_PLURAL_LABELS = {
    ContentKind.PAPER: "academic papers",
    ContentKind.CITATION: "citations",
    ContentKind.REVIEW: "peer reviews",
    ContentKind.DATA: "research data",
    ContentKind.DISCUSSION: "discussions",
}

# Kinds the duplicate detector fingerprints
FINGERPRINTED_KINDS = frozenset({ContentKind.PAPER, ContentKind.DATA})


def is_academic_kind(value: object) -> bool:
    try:
        ContentKind.parse(value)  # type: ignore[arg-type]
    except UnknownKind:
        return False
    return True


def is_addressable_number(number: int) -> bool:
    return number in ADDRESSABLE_RANGE


def describe_kind(kind: ContentKind | None) -> str:
    """Plural label for rate-limit messages ("academic papers", "events", ...)."""
    return _PLURAL_LABELS.get(kind, "events") if kind is not None else "events"


__all__ = [
    "ContentKind",
    "UnknownKind",
    "FINGERPRINTED_KINDS",
    "is_academic_kind",
    "is_addressable_number",
    "describe_kind",
]
