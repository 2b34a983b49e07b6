"""Tests for the Ok/Err result envelope."""

import pytest

from fallible.core.errors import TransientError
from fallible.core.result import Err, Ok, try_result


class TestOk:
    """Tests for successful results."""

    def test_predicates(self):
        assert Ok(1).is_ok() is True
        assert Ok(1).is_err() is False

    def test_unwrap(self):
        """unwrap and unwrap_or return the value."""
        assert Ok(5).unwrap() == 5
        assert Ok(5).unwrap_or(0) == 5
        assert Ok(5).unwrap_or_else(lambda e: 0) == 5

    def test_unwrap_err_raises(self):
        with pytest.raises(ValueError):
            Ok(5).unwrap_err()

    def test_map_and_chain(self):
        """map transforms, flat_map chains, map_err is a no-op."""
        assert Ok(2).map(lambda x: x * 10) == Ok(20)
        assert Ok(2).flat_map(lambda x: Ok(x + 1)) == Ok(3)
        assert Ok(2).and_then(lambda x: Err("nope")) == Err("nope")
        assert Ok(2).map_err(lambda e: "changed") == Ok(2)
        assert Ok(2).or_else(lambda e: Ok(0)) == Ok(2)

    def test_inspect(self):
        """inspect sees the value; inspect_err is skipped."""
        seen = []
        Ok(3).inspect(seen.append).inspect_err(seen.append)
        assert seen == [3]

    def test_to_dict(self):
        assert Ok({"a": 1}).to_dict() == {"ok": True, "value": {"a": 1}}


class TestErr:
    """Tests for failed results."""

    def test_predicates(self):
        assert Err("x").is_err() is True
        assert Err("x").is_ok() is False

    def test_unwrap_raises_exception(self):
        """unwrap re-raises the stored exception."""
        error = KeyError("missing")
        with pytest.raises(KeyError) as exc_info:
            Err(error).unwrap()
        assert exc_info.value is error

    def test_unwrap_non_exception(self):
        """unwrap on a non-exception error raises ValueError."""
        with pytest.raises(ValueError):
            Err("plain").unwrap()

    def test_defaults(self):
        assert Err("x").unwrap_or(7) == 7
        assert Err("x").unwrap_or_else(len) == 1
        assert Err("x").unwrap_err() == "x"

    def test_short_circuits(self):
        """map / flat_map leave an Err untouched."""
        err = Err("boom")
        assert err.map(lambda x: x + 1) is err
        assert err.flat_map(lambda x: Ok(x)) is err

    def test_map_err_and_recover(self):
        assert Err("boom").map_err(str.upper) == Err("BOOM")
        assert Err("boom").or_else(lambda e: Ok(len(e))) == Ok(4)

    def test_inspect_err(self):
        seen = []
        Err("e").inspect(seen.append).inspect_err(seen.append)
        assert seen == ["e"]

    def test_to_dict_fallible_error(self):
        """FallibleErrors serialize with their structured fields."""
        data = Err(TransientError("flaky")).to_dict()
        assert data["ok"] is False
        assert data["error"]["error_type"] == "TransientError"
        assert data["error"]["retryable"] is True

    def test_to_dict_plain_error(self):
        data = Err(ValueError("bad")).to_dict()
        assert data == {"ok": False, "error": {"error_type": "ValueError", "message": "bad"}}

    def test_pattern_matching(self):
        """Results work with structural pattern matching."""
        match Err(ValueError("x")):
            case Ok(value):
                pytest.fail(f"unexpected value {value}")
            case Err(error):
                assert isinstance(error, ValueError)


class TestTryResult:
    """Tests for the exception bridge."""

    def test_success(self):
        assert try_result(lambda: int("42")) == Ok(42)

    def test_failure(self):
        result = try_result(lambda: int("x"))
        assert result.is_err()
        assert isinstance(result.unwrap_err(), ValueError)
