"""Submission: the immutable input to every admission policy.

A submission arrives already authenticated and signature-verified. Tags are
ordered records whose first element is the tag name; a tag "counts" for the
policies only when it also carries a value.

Examples:
    >>> paper = Submission(
    ...     id="p1",
    ...     author="npub-alice",
    ...     kind=ContentKind.PAPER,
    ...     created_at=1700000000,
    ...     tags=[["d", "p1"], ["title", "Sliding Windows in Practice"]],
    ... )
    >>> paper.first_tag("title")
    'Sliding Windows in Practice'
    >>> paper.content_kind.slug
    'paper'
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from archivist.policies.kinds import ContentKind, UnknownKind

Tag = tuple[str, ...]


def _normalize_tags(tags: Iterable[Sequence[Any]] | None) -> tuple[Tag, ...]:
    normalized: list[Tag] = []
    for tag in tags or ():
        record = tuple(str(part) for part in tag)
        if record:
            normalized.append(record)
    return tuple(normalized)


@dataclass(frozen=True)
class Submission:
    """A content item presented for admission.

    Attributes:
        id: Globally unique submission id
        author: Submitting identity
        kind: Content kind (number, slug or ``ContentKind``)
        created_at: Unix seconds; 0 when absent
        tags: Ordered tag records, first element is the tag name
        content: Free text body
    """

    id: str
    author: str
    kind: int | str
    created_at: int = 0
    tags: tuple[Tag, ...] = field(default_factory=tuple)
    content: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _normalize_tags(self.tags))
        object.__setattr__(self, "created_at", int(self.created_at or 0))
        object.__setattr__(self, "content", self.content or "")

    # ── Kind ─────────────────────────────────────────────────────

    @property
    def content_kind(self) -> ContentKind | None:
        """The parsed kind, or ``None`` when the kind is not recognized."""
        try:
            return ContentKind.parse(self.kind)
        except UnknownKind:
            return None

    @property
    def kind_label(self) -> str:
        kind = self.content_kind
        return kind.slug if kind is not None else str(self.kind)

    @property
    def address(self) -> tuple[int, str, str] | None:
        """``(kind, author, d)`` for addressable kinds with a ``d`` tag."""
        kind = self.content_kind
        if kind is None or not kind.is_addressable:
            return None
        d_tag = self.first_tag("d")
        if not d_tag:
            return None
        return (kind.value, self.author, d_tag)

    # ── Tags ─────────────────────────────────────────────────────

    def tag_values(self, name: str) -> list[str]:
        """Values of every tag named ``name`` that carries a value."""
        return [tag[1] for tag in self.tags if len(tag) >= 2 and tag[0] == name]

    def first_tag(self, name: str) -> str | None:
        for tag in self.tags:
            if len(tag) >= 2 and tag[0] == name:
                return tag[1]
        return None

    def has_tag(self, name: str) -> bool:
        return self.first_tag(name) is not None

    # ── Serialization ────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "pubkey": self.author,
            "kind": self.kind.value if isinstance(self.kind, ContentKind) else self.kind,
            "created_at": self.created_at,
            "tags": [list(tag) for tag in self.tags],
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Submission:
        author = data.get("author", data.get("pubkey"))
        if author is None:
            raise ValueError("submission is missing an author identity ('pubkey' or 'author')")
        kind = data["kind"]
        if isinstance(kind, str) and kind.strip().isascii() and kind.strip().isdigit():
            kind = int(kind)
        return cls(
            id=str(data["id"]),
            author=str(author),
            kind=kind,
            created_at=data.get("created_at") or 0,
            tags=data.get("tags") or (),
            content=data.get("content") or "",
        )


__all__ = ["Submission", "Tag"]
