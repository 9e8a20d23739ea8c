"""Rate limiting: per-identity sliding windows with per-kind sub-limits.

Manifesto:
A burst of papers from one identity is a moderation problem, not a storage
problem.  The limiter counts each identity's admitted submissions in a
rolling window, general first (cheap, coarse), then against the kind's own
window when one is configured.  Rejected submissions never consume quota.

ARCHITECTURE
────────────
::

    RateLimiter (ABC)
      └── SlidingWindowRateLimiter
            _windows: identity → _IdentityWindow    (map lock: insert / evict)
            _IdentityWindow
              general: deque[timestamp]             (own lock)
              kinds:   ContentKind → deque[timestamp]
            _sweeper: PeriodicJob(sweep, every sweep_interval)

    allow(identity, kind):
        prune general to (now - W, now]  ── count >= N ? RateLimitExceeded
        prune kind    to (now - Wk, now] ── count >= Nk ? RateLimitExceeded
        record now in both

Window state is process-local and advisory: it is never persisted and is lost
on restart.

Example::

    with SlidingWindowRateLimiter(RateLimitConfig()) as limiter:
        limiter.allow("npub-alice", ContentKind.PAPER)

Tags:
    archivist, rate-limit, sliding-window, throttle

Doc-Types:
    api-reference
"""

from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from archivist.core.errors import InvalidConfigError, RateLimitExceeded
from archivist.core.logging import get_logger
from archivist.core.scheduling import PeriodicJob
from archivist.policies.kinds import ContentKind, UnknownKind, describe_kind

if TYPE_CHECKING:
    from archivist.core.settings import ArchivistSettings

logger = get_logger(__name__)


def format_window(window: timedelta) -> str:
    """Compact duration for messages: ``1h``, ``24h``, ``1h30m``, ``45s``."""
    seconds = int(window.total_seconds())
    hours, rest = divmod(seconds, 3600)
    minutes, seconds = divmod(rest, 60)
    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if seconds or not parts:
        parts.append(f"{seconds}s")
    return "".join(parts)


@dataclass(frozen=True)
class KindLimit:
    """Maximum ``count`` submissions of one kind per ``window``."""

    count: int
    window: timedelta

    def describe(self) -> str:
        return f"{self.count} per {format_window(self.window)}"


def _default_kind_limits() -> dict[ContentKind, KindLimit]:
    return {
        ContentKind.PAPER: KindLimit(5, timedelta(hours=24)),
        ContentKind.REVIEW: KindLimit(10, timedelta(hours=24)),
        ContentKind.DATA: KindLimit(10, timedelta(hours=24)),
        ContentKind.DISCUSSION: KindLimit(50, timedelta(hours=1)),
    }


@dataclass
class RateLimitConfig:
    """Limiter policy.

    Attributes:
        count: General limit per identity
        window: General sliding window
        kind_limits: Per-kind overrides, keyed by kind (slugs and numbers accepted)
        retention: Idle identities older than this are swept
        sweep_interval: How often the sweep runs
    """

    count: int = 100
    window: timedelta = timedelta(hours=1)
    kind_limits: dict[ContentKind, KindLimit] = field(default_factory=_default_kind_limits)
    retention: timedelta = timedelta(hours=24)
    sweep_interval: timedelta = timedelta(hours=1)

    def __post_init__(self) -> None:
        if self.count <= 0:
            raise InvalidConfigError("rate_limit_count", self.count)
        for key in ("window", "retention", "sweep_interval"):
            if getattr(self, key) <= timedelta(0):
                raise InvalidConfigError(key, getattr(self, key))

        normalized: dict[ContentKind, KindLimit] = {}
        for kind, limit in self.kind_limits.items():
            try:
                parsed = ContentKind.parse(kind)
            except UnknownKind as e:
                raise InvalidConfigError("kind_limits", kind, str(e)) from e
            if limit.count <= 0 or limit.window <= timedelta(0):
                raise InvalidConfigError(f"kind_limits.{parsed.slug}", limit)
            normalized[parsed] = limit
        self.kind_limits = normalized

    @property
    def effective_retention(self) -> timedelta:
        """Retention never shorter than the longest window, so sweeps don't reset quota."""
        windows = [self.window, *(limit.window for limit in self.kind_limits.values())]
        return max(self.retention, *windows)

    @classmethod
    def from_settings(cls, settings: ArchivistSettings) -> RateLimitConfig:
        return cls(
            count=settings.rate_limit_count,
            window=settings.rate_limit_window,
            kind_limits={
                ContentKind.parse(slug): KindLimit(limit.count, limit.window)
                for slug, limit in settings.kind_limits.items()
            },
            retention=settings.retention_horizon,
            sweep_interval=settings.sweep_interval,
        )


class RateLimiter(ABC):
    """Abstract base for admission rate limiters."""

    @abstractmethod
    def allow(self, identity: str, kind: int | str | ContentKind | None = None) -> None:
        """Admit one submission or raise ``RateLimitExceeded``."""
        ...

    @abstractmethod
    def reset(self, identity: str) -> None:
        """Forget every counter for ``identity``."""
        ...

    def sweep(self, now: float | None = None) -> int:
        """Reclaim idle state; returns the number of identities evicted."""
        return 0

    def describe(self) -> dict[str, str]:
        """Human-readable limits keyed by scope."""
        return {}

    def close(self) -> None:
        """Release background resources."""

    def __enter__(self) -> RateLimiter:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()


class _IdentityWindow:
    __slots__ = ("lock", "general", "kinds", "evicted")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.general: deque[float] = deque()
        self.kinds: dict[ContentKind, deque[float]] = {}
        self.evicted = False

    def latest(self) -> float | None:
        candidates = [self.general[-1]] if self.general else []
        candidates.extend(ts[-1] for ts in self.kinds.values() if ts)
        return max(candidates) if candidates else None


def _prune(timestamps: deque[float], cutoff: float) -> None:
    # Only timestamps strictly newer than the cutoff count
    while timestamps and timestamps[0] <= cutoff:
        timestamps.popleft()


def _retry_after(timestamps: deque[float], limit: int, window: float, now: float) -> int:
    oldest_counted = timestamps[len(timestamps) - limit]
    return max(1, math.ceil(oldest_counted + window - now))


class SlidingWindowRateLimiter(RateLimiter):
    """Sliding-window limiter keyed by submitting identity.

    Thread-safe: each identity's window has its own lock; the identity map
    lock is held only to insert or evict an identity.

    Args:
        config: Limit policy
        clock: Monotonic seconds source (injectable for tests)
        start_sweeper: Start the periodic idle-identity sweep
    """

    def __init__(
        self,
        config: RateLimitConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        start_sweeper: bool = True,
    ):
        self.config = config or RateLimitConfig()
        self._clock = clock
        self._windows: dict[str, _IdentityWindow] = {}
        self._lock = threading.Lock()
        self._sweeper = PeriodicJob(
            self.sweep,
            interval_seconds=self.config.sweep_interval.total_seconds(),
            name="rate-limit-sweep",
        )
        if start_sweeper:
            self._sweeper.start()

    def _window_for(self, identity: str) -> _IdentityWindow:
        window = self._windows.get(identity)
        if window is not None:
            return window
        with self._lock:
            return self._windows.setdefault(identity, _IdentityWindow())

    def allow(self, identity: str, kind: int | str | ContentKind | None = None) -> None:
        try:
            content_kind = ContentKind.parse(kind) if kind is not None else None
        except UnknownKind:
            content_kind = None
        kind_limit = self.config.kind_limits.get(content_kind) if content_kind is not None else None
        general_window = self.config.window.total_seconds()

        while True:
            window = self._window_for(identity)
            with window.lock:
                if window.evicted:
                    # Swept or reset between lookup and lock; take the fresh entry
                    continue

                now = self._clock()
                _prune(window.general, now - general_window)
                if len(window.general) >= self.config.count:
                    raise RateLimitExceeded(
                        f"rate limit exceeded: maximum {self.config.count} events per "
                        f"{format_window(self.config.window)}. Please wait before submitting "
                        "more content",
                        scope="general",
                        limit=self.config.count,
                        window=self.config.window,
                        retry_after=_retry_after(
                            window.general, self.config.count, general_window, now
                        ),
                    ).with_context(identity=identity)

                if kind_limit is not None:
                    kind_window = kind_limit.window.total_seconds()
                    timestamps = window.kinds.setdefault(content_kind, deque())
                    _prune(timestamps, now - kind_window)
                    if len(timestamps) >= kind_limit.count:
                        raise RateLimitExceeded(
                            f"rate limit exceeded for {describe_kind(content_kind)}: maximum "
                            f"{kind_limit.count} per {format_window(kind_limit.window)}. "
                            "Academic content requires careful review - please pace your "
                            "submissions",
                            scope="kind",
                            limit=kind_limit.count,
                            window=kind_limit.window,
                            kind=content_kind.slug,
                            retry_after=_retry_after(timestamps, kind_limit.count, kind_window, now),
                        ).with_context(identity=identity, kind=content_kind.slug)
                    timestamps.append(now)

                window.general.append(now)
                return

    def reset(self, identity: str) -> None:
        with self._lock:
            window = self._windows.pop(identity, None)
        if window is not None:
            with window.lock:
                window.evicted = True

    def sweep(self, now: float | None = None) -> int:
        """Evict identities with no timestamp inside the retention horizon."""
        if now is None:
            now = self._clock()
        horizon = now - self.config.effective_retention.total_seconds()
        with self._lock:
            snapshot = list(self._windows.items())

        evicted = 0
        for identity, window in snapshot:
            with window.lock:
                latest = window.latest()
                if latest is not None and latest > horizon:
                    continue
                window.evicted = True
            with self._lock:
                if self._windows.get(identity) is window:
                    del self._windows[identity]
            evicted += 1

        if evicted:
            logger.info("rate_limit_sweep", evicted=evicted, tracked=len(self._windows))
        return evicted

    def stats(self, identity: str) -> dict[str, Any] | None:
        """Snapshot of ``identity``'s usage, or ``None`` if it is not tracked."""
        window = self._windows.get(identity)
        if window is None:
            return None
        now = self._clock()
        with window.lock:
            _prune(window.general, now - self.config.window.total_seconds())
            kinds: dict[str, Any] = {}
            for kind, timestamps in window.kinds.items():
                limit = self.config.kind_limits[kind]
                _prune(timestamps, now - limit.window.total_seconds())
                kinds[kind.slug] = {"count": len(timestamps), "limit": limit.count}
            return {
                "identity": identity,
                "count": len(window.general),
                "limit": self.config.count,
                "kinds": kinds,
            }

    def describe(self) -> dict[str, str]:
        """Human-readable limits, e.g. ``{"general": "100 events per 1h", ...}``."""
        summary = {"general": f"{self.config.count} events per {format_window(self.config.window)}"}
        for kind, limit in self.config.kind_limits.items():
            summary[kind.slug] = limit.describe()
        return summary

    @property
    def tracked_identities(self) -> int:
        return len(self._windows)

    @property
    def sweeper(self) -> PeriodicJob:
        return self._sweeper

    def close(self) -> None:
        self._sweeper.stop()


def build_rate_limiter(
    settings: ArchivistSettings, *, clock: Callable[[], float] = time.monotonic
) -> SlidingWindowRateLimiter:
    """In-memory limiter configured from settings."""
    return SlidingWindowRateLimiter(
        RateLimitConfig.from_settings(settings),
        clock=clock,
        start_sweeper=settings.sweep_enabled,
    )


__all__ = [
    "format_window",
    "KindLimit",
    "RateLimitConfig",
    "RateLimiter",
    "SlidingWindowRateLimiter",
    "build_rate_limiter",
]
