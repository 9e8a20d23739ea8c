"""
Centralized settings for the archivist admission engine.

One validated settings object holds every recognized configuration option:
the general rate limit, per-kind overrides, the rate-limiter retention horizon
and sweep interval, the fingerprint tag allow-list, and the database used by
the persistent stores. Values resolve from ``ARCHIVIST_*`` environment
variables and ``.env`` files.

Manifesto:
    Limits are policy, not code. The default policy (100 events/hour, 5
    papers/day, 10 reviews/day, 10 datasets/day, 50 discussions/hour) is just
    the default value of these fields.

Examples:
    >>> settings = ArchivistSettings(rate_limit_count=20)
    >>> settings.rate_limit_window
    datetime.timedelta(seconds=3600)

    From the environment::

        ARCHIVIST_RATE_LIMIT_COUNT=200
        ARCHIVIST_KIND_LIMITS='{"paper": {"count": 3, "window": 86400}}'
        ARCHIVIST_DATABASE_URL=postgresql+psycopg://archivist@db/archivist

Tags:
    archivist, configuration, settings, pydantic, validation

Doc-Types:
    api-reference
"""

from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_FINGERPRINT_TAGS: tuple[str, ...] = (
    "title",
    "abstract",
    "author",
    "data-type",
    "description",
)


class KindLimitSettings(BaseModel):
    """Sliding-window limit for one content kind."""

    count: int = Field(gt=0)
    window: timedelta = Field(default=timedelta(days=1))

    @field_validator("window")
    @classmethod
    def _positive_window(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("window must be positive")
        return value


def _default_kind_limits() -> dict[str, KindLimitSettings]:
    return {
        "paper": KindLimitSettings(count=5, window=timedelta(days=1)),
        "review": KindLimitSettings(count=10, window=timedelta(days=1)),
        "data": KindLimitSettings(count=10, window=timedelta(days=1)),
        "discussion": KindLimitSettings(count=50, window=timedelta(hours=1)),
    }


class ArchivistSettings(BaseSettings):
    """Archivist configuration.

    All fields can be set via ``ARCHIVIST_*`` environment variables (e.g.
    ``ARCHIVIST_RATE_LIMIT_COUNT=200``) or through a ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="ARCHIVIST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_nested_delimiter="__",
    )

    # ── Rate limiting ────────────────────────────────────────────
    rate_limit_count: int = Field(default=100, gt=0)
    rate_limit_window: timedelta = Field(default=timedelta(hours=1))
    kind_limits: dict[str, KindLimitSettings] = Field(default_factory=_default_kind_limits)
    retention_horizon: timedelta = Field(default=timedelta(hours=24))
    sweep_interval: timedelta = Field(default=timedelta(hours=1))
    sweep_enabled: bool = Field(default=True)

    # ── Duplicate detection ──────────────────────────────────────
    fingerprint_tags: list[str] = Field(default_factory=lambda: list(DEFAULT_FINGERPRINT_TAGS))

    # ── Database ─────────────────────────────────────────────────
    database_url: str = Field(default="sqlite:///data/archivist.db")
    database_echo: bool = Field(default=False)

    # ── Logging ──────────────────────────────────────────────────
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("rate_limit_window", "retention_horizon", "sweep_interval")
    @classmethod
    def _positive_duration(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("duration must be positive")
        return value

    @field_validator("kind_limits")
    @classmethod
    def _known_kinds(cls, value: dict[str, KindLimitSettings]) -> dict[str, KindLimitSettings]:
        from archivist.policies.kinds import ContentKind, UnknownKind

        normalized: dict[str, KindLimitSettings] = {}
        for key, limit in value.items():
            try:
                kind = ContentKind.parse(key)
            except UnknownKind as exc:
                raise ValueError(f"unknown content kind in kind_limits: {key!r}") from exc
            normalized[kind.slug] = limit
        return normalized

    @field_validator("log_format")
    @classmethod
    def _log_format(cls, value: str) -> str:
        if value not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return value


_settings_cache: ArchivistSettings | None = None


def get_settings(*, _force_reload: bool = False) -> ArchivistSettings:
    """Load, validate, and cache an :class:`ArchivistSettings` instance."""
    global _settings_cache
    if _settings_cache is None or _force_reload:
        _settings_cache = ArchivistSettings()
    return _settings_cache


__all__ = [
    "DEFAULT_FINGERPRINT_TAGS",
    "KindLimitSettings",
    "ArchivistSettings",
    "get_settings",
]
