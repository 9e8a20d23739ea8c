"""Tests for fingerprint stores and the duplicate detector."""

import time

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.exc import OperationalError

from archivist.core.errors import DuplicateContent, StorageError
from archivist.core.orm import FingerprintTable
from archivist.core.timeout import OperationCancelled, TimeoutExpired, deadline_after
from archivist.policies.duplicates import (
    DuplicateDetector,
    InMemoryFingerprintStore,
    SqlFingerprintStore,
)
from archivist.policies.hashing import compute_fingerprint


@pytest.fixture(params=["memory", "sql"])
def store(request, session_factory):
    if request.param == "memory":
        return InMemoryFingerprintStore()
    return SqlFingerprintStore(session_factory)


class TestFingerprintStore:
    """Contract tests run against both backends."""

    def test_add_if_absent(self, store):
        assert store.add("h1", "first") is True
        assert store.add("h1", "second") is False
        assert store.get("h1") == "first"

    def test_exists(self, store):
        assert store.exists("h1") is False
        store.add("h1", "first", kind=31428)
        assert store.exists("h1") is True

    def test_get_missing(self, store):
        assert store.get("nope") is None

    def test_cancelled_deadline_aborts(self, store):
        deadline = deadline_after(None)
        deadline.cancel()
        with pytest.raises(OperationCancelled):
            store.exists("h1", deadline=deadline)
        with pytest.raises(OperationCancelled):
            store.add("h1", "first", deadline=deadline)
        assert store.get("h1") is None


@pytest.mark.integration
class TestSqlFingerprintStore:
    def test_one_row_per_digest(self, session_factory):
        store = SqlFingerprintStore(session_factory)
        store.add("h1", "first", kind=31428)
        store.add("h1", "first", kind=31428)
        with session_factory() as session:
            assert session.scalar(select(func.count()).select_from(FingerprintTable)) == 1

    def test_storage_failure_wrapped(self):
        def broken_factory():
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        store = SqlFingerprintStore(broken_factory)
        with pytest.raises(StorageError, match="fingerprint lookup failed"):
            store.get("h1")

    def test_stalled_query_past_deadline_times_out(self, db_engine, session_factory):
        def stall(*args):
            time.sleep(0.3)
            raise OperationalError("SELECT", {}, Exception("statement timeout"))

        event.listen(db_engine, "before_cursor_execute", stall)
        store = SqlFingerprintStore(session_factory)
        try:
            with pytest.raises(TimeoutExpired):
                store.get("h1", deadline=deadline_after(0.1))
        finally:
            event.remove(db_engine, "before_cursor_execute", stall)


class TestDuplicateDetector:
    """Tests for DuplicateDetector."""

    def test_applies_only_to_papers_and_data(self, make_paper, make_dataset, make_review):
        detector = DuplicateDetector(InMemoryFingerprintStore())
        assert detector.applies_to(make_paper())
        assert detector.applies_to(make_dataset())
        assert not detector.applies_to(make_review())

    def test_store_then_detect(self, store, make_paper):
        detector = DuplicateDetector(store)
        original = make_paper()
        assert detector.is_duplicate(original) is False
        digest = detector.store_hash(original)
        assert digest == compute_fingerprint(original)

        copy = make_paper(id="paper-2", author="npub-bob", title=" SLIDING windows in practice ")
        assert detector.is_duplicate(copy) is True
        with pytest.raises(DuplicateContent) as exc_info:
            detector.check(copy)
        error = exc_info.value
        assert error.kind == "paper"
        assert error.original_id == "paper-1"
        assert error.fingerprint == digest
        assert "same title, authors, and abstract" in error.message

    def test_dataset_message(self, make_dataset):
        detector = DuplicateDetector(InMemoryFingerprintStore())
        detector.store_hash(make_dataset())
        with pytest.raises(DuplicateContent, match="dataset already exists"):
            detector.check(make_dataset(id="data-2"))

    def test_store_hash_idempotent(self, make_paper):
        store = InMemoryFingerprintStore()
        detector = DuplicateDetector(store)
        first = detector.store_hash(make_paper())
        second = detector.store_hash(make_paper(), first)
        assert first == second
        assert len(store) == 1
        assert store.get(first) == "paper-1"

    def test_store_hash_never_overwrites(self, make_paper):
        store = InMemoryFingerprintStore()
        detector = DuplicateDetector(store)
        digest = detector.store_hash(make_paper())
        detector.store_hash(make_paper(id="paper-2"))
        assert store.get(digest) == "paper-1"

    def test_supplied_digest_used(self, make_paper):
        store = InMemoryFingerprintStore()
        DuplicateDetector(store).store_hash(make_paper(), "precomputed")
        assert store.exists("precomputed")

    def test_check_bypasses_other_kinds(self, make_review):
        store = InMemoryFingerprintStore()
        detector = DuplicateDetector(store)
        detector.store_hash(make_review())
        detector.check(make_review(id="review-2"))
