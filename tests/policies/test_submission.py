"""Tests for the Submission model."""

import dataclasses

import pytest

from archivist.policies.kinds import ContentKind
from archivist.policies.submission import Submission


class TestSubmission:
    """Tests for construction and tag helpers."""

    def test_tags_normalized(self):
        submission = Submission(id="s", author="a", kind=8430, tags=[["e", "p1"], [], ("x",)])
        assert submission.tags == (("e", "p1"), ("x",))

    def test_frozen(self):
        submission = Submission(id="s", author="a", kind=8430)
        with pytest.raises(dataclasses.FrozenInstanceError):
            submission.id = "t"

    def test_created_at_none_is_zero(self):
        assert Submission(id="s", author="a", kind=8430, created_at=None).created_at == 0

    def test_tag_without_value_does_not_count(self):
        submission = Submission(id="s", author="a", kind=8430, tags=[["rating"], ["e", "p1"]])
        assert not submission.has_tag("rating")
        assert submission.has_tag("e")

    def test_tag_values_in_order(self):
        submission = Submission(
            id="s", author="a", kind=31428, tags=[["author", "A"], ["title", "T"], ["author", "B"]]
        )
        assert submission.tag_values("author") == ["A", "B"]
        assert submission.first_tag("author") == "A"
        assert submission.first_tag("missing") is None

    def test_content_kind(self):
        assert Submission(id="s", author="a", kind="review").content_kind is ContentKind.REVIEW
        assert Submission(id="s", author="a", kind=1).content_kind is None
        assert Submission(id="s", author="a", kind=1).kind_label == "1"

    def test_address(self):
        paper = Submission(id="s", author="npub-a", kind=31428, tags=[["d", "slug"]])
        assert paper.address == (31428, "npub-a", "slug")
        review = Submission(id="r", author="npub-a", kind=8430, tags=[["d", "slug"]])
        assert review.address is None
        assert Submission(id="s", author="npub-a", kind=31428).address is None


class TestSerialization:
    def test_from_dict_pubkey(self):
        submission = Submission.from_dict(
            {
                "id": "abc",
                "pubkey": "npub-a",
                "kind": 31428,
                "created_at": 12,
                "tags": [["d", "x"]],
                "content": "body",
            }
        )
        assert submission.author == "npub-a"
        assert submission.tags == (("d", "x"),)

    def test_from_dict_numeric_string_kind(self):
        submission = Submission.from_dict({"id": "abc", "author": "a", "kind": "8430"})
        assert submission.kind == 8430
        assert submission.content == ""

    def test_from_dict_non_ascii_digit_kind(self):
        submission = Submission.from_dict({"id": "abc", "author": "a", "kind": "²"})
        assert submission.kind == "²"
        assert submission.content_kind is None

    def test_from_dict_requires_author(self):
        with pytest.raises(ValueError, match="author"):
            Submission.from_dict({"id": "abc", "kind": 8430})

    def test_to_dict(self):
        submission = Submission(
            id="abc", author="a", kind=ContentKind.PAPER, created_at=1, tags=[["d", "x"]]
        )
        assert submission.to_dict() == {
            "id": "abc",
            "pubkey": "a",
            "kind": 31428,
            "created_at": 1,
            "tags": [["d", "x"]],
            "content": "",
        }
