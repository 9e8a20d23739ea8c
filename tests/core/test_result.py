"""Tests for archivist.core.result module."""

import pytest

from archivist.core.errors import InvalidStructure
from archivist.core.result import Err, Ok


class TestOk:
    """Test Ok class."""

    def test_create_ok(self):
        result = Ok(42)
        assert result.value == 42
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_unwrap(self):
        assert Ok("hello").unwrap() == "hello"
        assert Ok(10).unwrap_or(99) == 10

    def test_unwrap_err_raises(self):
        with pytest.raises(ValueError, match="unwrap_err"):
            Ok(1).unwrap_err()

    def test_map_chaining(self):
        result = Ok(3).map(lambda x: x * 2).map(lambda x: x + 1)
        assert result.unwrap() == 7

    def test_to_dict(self):
        assert Ok(5).to_dict() == {"ok": True, "value": 5}

    def test_pattern_match(self):
        match Ok("accepted"):
            case Ok(value):
                assert value == "accepted"
            case _:
                pytest.fail("expected Ok")


class TestErr:
    """Test Err class."""

    def test_unwrap_raises_original(self):
        error = ValueError("bad")
        with pytest.raises(ValueError, match="bad"):
            Err(error).unwrap()

    def test_unwrap_or(self):
        assert Err(ValueError()).unwrap_or(7) == 7

    def test_map_short_circuits(self):
        called = []
        result = Err(ValueError("x")).map(lambda v: called.append(v))
        assert result.is_err()
        assert called == []

    def test_to_dict_uses_archivist_error(self):
        data = Err(InvalidStructure("paper", "missing title")).to_dict()
        assert data["ok"] is False
        assert data["error"]["error_type"] == "InvalidStructure"
        assert data["error"]["kind"] == "paper"
        assert data["error"]["reason"] == "missing title"

    def test_to_dict_plain_exception(self):
        data = Err(KeyError("k")).to_dict()
        assert data["error"]["error_type"] == "KeyError"
