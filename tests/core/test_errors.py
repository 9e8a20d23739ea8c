"""Tests for archivist.core.errors module."""

from datetime import timedelta

import pytest

from archivist.core.errors import (
    ArchivistError,
    ConfigError,
    ConflictOfInterest,
    ConflictRole,
    DuplicateContent,
    ErrorCategory,
    ErrorContext,
    InvalidConfigError,
    InvalidStructure,
    MetadataMissing,
    PolicyViolation,
    RateLimitExceeded,
    ReferenceMissing,
    ReferenceNotFound,
    ReviewQualityInsufficient,
    StorageError,
    categorize_error,
    is_retryable,
)


class TestErrorContext:
    """Tests for ErrorContext."""

    def test_to_dict_skips_none(self):
        ctx = ErrorContext(stage="structure", kind="paper")
        assert ctx.to_dict() == {"stage": "structure", "kind": "paper"}

    def test_metadata_merged(self):
        ctx = ErrorContext(submission_id="s1", metadata={"attempt": 2})
        assert ctx.to_dict() == {"submission_id": "s1", "attempt": 2}


class TestArchivistError:
    """Tests for the base error."""

    def test_defaults(self):
        error = ArchivistError("boom")
        assert error.message == "boom"
        assert error.category == ErrorCategory.INTERNAL
        assert error.retryable is False
        assert str(error) == "boom"

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ArchivistError("boom").with_context(stage="duplicate", table="fingerprints")
        assert error.context.stage == "duplicate"
        assert error.context.metadata == {"table": "fingerprints"}

    def test_cause_is_chained(self):
        cause = RuntimeError("disk full")
        error = StorageError("insert failed", cause=cause)
        assert error.__cause__ is cause
        assert error.to_dict()["cause"] == "disk full"

    def test_to_dict(self):
        error = ArchivistError("boom", retry_after=30).with_context(identity="npub-a")
        data = error.to_dict()
        assert data["error_type"] == "ArchivistError"
        assert data["retry_after"] == 30
        assert data["context"] == {"identity": "npub-a"}


class TestPolicyViolations:
    """Tests for the rejection taxonomy."""

    def test_all_rejections_are_policy_violations(self):
        errors = [
            RateLimitExceeded("x", scope="general", limit=1, window=timedelta(hours=1)),
            InvalidStructure("paper", "x"),
            MetadataMissing(),
            DuplicateContent("x", kind="paper"),
            ReferenceMissing(),
            ReferenceNotFound("p1"),
            ConflictOfInterest(ConflictRole.AUTHOR),
            ReviewQualityInsufficient(),
        ]
        for error in errors:
            assert isinstance(error, PolicyViolation)
            assert error.retryable is False

    def test_reason_includes_stage(self):
        error = InvalidStructure("paper", "paper title too short")
        assert error.reason == "paper title too short"
        error.with_context(stage="structure")
        assert error.stage == "structure"
        assert error.reason == "structure: paper title too short"

    def test_rate_limit_fields(self):
        error = RateLimitExceeded(
            "slow down",
            scope="kind",
            limit=5,
            window=timedelta(days=1),
            kind="paper",
            retry_after=60,
        )
        assert error.category == ErrorCategory.RATE_LIMIT
        data = error.to_dict()
        assert data["scope"] == "kind"
        assert data["limit"] == 5
        assert data["window_seconds"] == 86400
        assert data["kind"] == "paper"
        assert data["retry_after"] == 60

    def test_metadata_missing_default_message(self):
        assert "published_at" in MetadataMissing().message

    def test_duplicate_carries_original(self):
        error = DuplicateContent("dup", kind="data", fingerprint="abc", original_id="d0")
        assert error.category == ErrorCategory.DUPLICATE
        assert error.to_dict()["original_id"] == "d0"

    def test_reference_not_found_names_reference(self):
        error = ReferenceNotFound("paper-9")
        assert error.reference_id == "paper-9"
        assert "paper-9" in error.message

    @pytest.mark.parametrize(
        "role, word",
        [(ConflictRole.AUTHOR, "authors"), (ConflictRole.COAUTHOR, "co-authors")],
    )
    def test_conflict_message_names_role(self, role, word):
        error = ConflictOfInterest(role)
        assert error.role is role
        assert f"{word} cannot review" in error.message
        assert error.to_dict()["role"] == role.value

    def test_conflict_accepts_role_string(self):
        assert ConflictOfInterest("coauthor").role is ConflictRole.COAUTHOR

    def test_review_quality_lists_present(self):
        error = ReviewQualityInsufficient(["strengths"])
        assert error.present == ["strengths"]
        assert error.required == 2
        assert "at least 2" in error.message


class TestInfrastructureErrors:
    """Tests for storage/config errors and helpers."""

    def test_storage_is_retryable(self):
        assert StorageError("x").retryable is True
        assert is_retryable(StorageError("x"))

    def test_config_not_retryable(self):
        error = InvalidConfigError("rate_limit_count", 0)
        assert isinstance(error, ConfigError)
        assert error.key == "rate_limit_count"
        assert not is_retryable(error)

    def test_is_retryable_builtin(self):
        assert is_retryable(ConnectionError())
        assert not is_retryable(ValueError())

    def test_categorize_error(self):
        assert categorize_error(MetadataMissing()) == ErrorCategory.VALIDATION
        assert categorize_error(ValueError()) == ErrorCategory.VALIDATION
        assert categorize_error(KeyError()) == ErrorCategory.INTERNAL
