"""
Shared pytest fixtures for archivist tests.

This module provides:
- Submission factories for papers, datasets and reviews
- A controllable clock for the sliding-window limiter
- In-memory SQLite engine + session factory for the SQL stores
- A fully wired PolicyEngine with the background sweep disabled

Usage:
    def test_something(make_paper, engine):
        assert engine.validate(make_paper()).is_ok()
"""

from __future__ import annotations

from collections.abc import Callable, Generator, Iterable, Sequence
from pathlib import Path

import pytest

from archivist.core.logging import clear_context
from archivist.core.orm import archive_session_factory, create_archive_engine, init_schema
from archivist.core.settings import ArchivistSettings
from archivist.policies.engine import PolicyEngine
from archivist.policies.kinds import ContentKind
from archivist.policies.rate_limit import RateLimitConfig, SlidingWindowRateLimiter
from archivist.policies.submission import Submission

DEFAULT_TITLE = "Sliding Windows in Practice"
DEFAULT_ABSTRACT = (
    "We measure how sliding-window rate limiting behaves under bursty academic "
    "submission traffic and compare it with fixed buckets."
)
DEFAULT_REVIEW_BODY = (
    "The methodology is sound and the evaluation covers realistic traffic. The related "
    "work section should discuss token buckets in more depth."
)
CREATED_AT = 1_700_000_000


# =============================================================================
# Test Markers Configuration
# =============================================================================


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Mark every test without an explicit marker as a unit test."""
    for item in items:
        markers = {mark.name for mark in item.iter_markers()}
        if not markers.intersection({"unit", "integration", "slow"}):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def _clean_log_context() -> Generator[None, None, None]:
    clear_context()
    yield
    clear_context()


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Monotonic clock the test advances by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# =============================================================================
# Submission Factories
# =============================================================================


def _tags(pairs: Iterable[tuple[str, str] | Sequence[str]]) -> list[list[str]]:
    return [list(pair) for pair in pairs]


@pytest.fixture
def make_paper() -> Callable[..., Submission]:
    """Factory for a valid paper; override any field by keyword."""

    def _make(
        id: str = "paper-1",
        author: str = "npub-alice",
        *,
        title: str | None = DEFAULT_TITLE,
        abstract: str | None = DEFAULT_ABSTRACT,
        authors: Sequence[str] = ("Alice Example",),
        subject: str | None = "computer-science",
        d: str | None = "sliding-windows",
        coauthors: Sequence[str] = (),
        created_at: int = CREATED_AT,
        extra_tags: Sequence[Sequence[str]] = (),
        content: str = "",
    ) -> Submission:
        tags: list[tuple[str, str]] = []
        if d is not None:
            tags.append(("d", d))
        if title is not None:
            tags.append(("title", title))
        if subject is not None:
            tags.append(("subject", subject))
        if abstract is not None:
            tags.append(("abstract", abstract))
        tags.extend(("author", name) for name in authors)
        tags.extend(("p", identity) for identity in coauthors)
        return Submission(
            id=id,
            author=author,
            kind=ContentKind.PAPER,
            created_at=created_at,
            tags=_tags(tags) + _tags(extra_tags),
            content=content,
        )

    return _make


@pytest.fixture
def make_review() -> Callable[..., Submission]:
    """Factory for a structurally valid review of ``paper-1``."""

    def _make(
        id: str = "review-1",
        author: str = "npub-carol",
        *,
        reference: str | None = "paper-1",
        feedback: Sequence[str] = ("strengths", "weaknesses"),
        content: str = DEFAULT_REVIEW_BODY,
        content_tag: str | None = DEFAULT_REVIEW_BODY,
        created_at: int = CREATED_AT,
        extra_tags: Sequence[Sequence[str]] = (),
    ) -> Submission:
        tags: list[tuple[str, str]] = []
        if reference is not None:
            tags.append(("e", reference))
        tags.extend((name, f"{name} noted") for name in feedback)
        if content_tag is not None:
            tags.append(("content", content_tag))
        return Submission(
            id=id,
            author=author,
            kind=ContentKind.REVIEW,
            created_at=created_at,
            tags=_tags(tags) + _tags(extra_tags),
            content=content,
        )

    return _make


@pytest.fixture
def make_dataset() -> Callable[..., Submission]:
    def _make(
        id: str = "data-1",
        author: str = "npub-alice",
        *,
        description: str = "Per-identity submission timestamps from a month of traffic",
        data_type: str = "dataset",
        created_at: int = CREATED_AT,
        content: str = "",
    ) -> Submission:
        return Submission(
            id=id,
            author=author,
            kind=ContentKind.DATA,
            created_at=created_at,
            tags=[
                ["d", f"{id}-d"],
                ["data-type", data_type],
                ["description", description],
                ["e", "paper-1"],
            ],
            content=content,
        )

    return _make


# =============================================================================
# Settings / Database / Engine
# =============================================================================


@pytest.fixture
def settings(tmp_path: Path) -> ArchivistSettings:
    return ArchivistSettings(
        _env_file=None,
        sweep_enabled=False,
        database_url=f"sqlite:///{tmp_path / 'archivist.db'}",
    )


@pytest.fixture
def db_engine():
    engine = create_archive_engine("sqlite://")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return archive_session_factory(db_engine)


@pytest.fixture
def rate_limiter(clock: FakeClock) -> Generator[SlidingWindowRateLimiter, None, None]:
    limiter = SlidingWindowRateLimiter(RateLimitConfig(), clock=clock, start_sweeper=False)
    yield limiter
    limiter.close()


@pytest.fixture
def engine(
    rate_limiter: SlidingWindowRateLimiter, settings: ArchivistSettings
) -> Generator[PolicyEngine, None, None]:
    with PolicyEngine(rate_limiter=rate_limiter, settings=settings) as policy_engine:
        yield policy_engine
