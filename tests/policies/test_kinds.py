"""Tests for content kind enumeration."""

import pytest

from archivist.policies.kinds import (
    FINGERPRINTED_KINDS,
    ContentKind,
    UnknownKind,
    describe_kind,
    is_academic_kind,
    is_addressable_number,
)


class TestContentKind:
    """Tests for ContentKind parsing and metadata."""

    @pytest.mark.parametrize(
        "value",
        [31428, "31428", "paper", "PAPER", " Paper ", ContentKind.PAPER],
    )
    def test_parse_paper(self, value):
        assert ContentKind.parse(value) is ContentKind.PAPER

    def test_parse_hyphenated_slug(self):
        assert ContentKind.parse("paper-update") is ContentKind.PAPER_UPDATE
        assert ContentKind.parse("citizen_project") is ContentKind.CITIZEN_PROJECT

    @pytest.mark.parametrize("value", [1, "poetry", "", True, 31429, None, 3.5, "²", "３１４２８"])
    def test_parse_rejects_unknown(self, value):
        with pytest.raises(UnknownKind):
            ContentKind.parse(value)

    def test_unknown_kind_is_value_error(self):
        assert issubclass(UnknownKind, ValueError)

    def test_slug_and_display_name(self):
        assert ContentKind.PROGRESS_REPORT.slug == "progress-report"
        assert ContentKind.REVIEW.display_name == "Peer Review"
        assert all(kind.display_name for kind in ContentKind)

    def test_twelve_kinds(self):
        assert len(ContentKind) == 12

    def test_addressable(self):
        assert ContentKind.PAPER.is_addressable
        assert ContentKind.MEDIA_SUMMARY.is_addressable
        assert not ContentKind.REVIEW.is_addressable
        assert is_addressable_number(30000)
        assert not is_addressable_number(40000)


class TestHelpers:
    def test_is_academic_kind(self):
        assert is_academic_kind(8430)
        assert is_academic_kind("discussion")
        assert not is_academic_kind(1)
        assert not is_academic_kind("²")

    def test_describe_kind(self):
        assert describe_kind(ContentKind.PAPER) == "academic papers"
        assert describe_kind(ContentKind.REVIEW) == "peer reviews"
        assert describe_kind(ContentKind.MENTORSHIP) == "events"
        assert describe_kind(None) == "events"

    def test_fingerprinted_kinds(self):
        assert FINGERPRINTED_KINDS == {ContentKind.PAPER, ContentKind.DATA}
