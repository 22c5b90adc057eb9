"""Tests for rbcli.core.result module."""

import pytest

from rbcli.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    def test_unwrap(self) -> None:
        assert Ok(42).unwrap() == 42

    def test_unwrap_or_ignores_default(self) -> None:
        assert Ok(42).unwrap_or(0) == 42

    def test_unwrap_err_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap_err on Ok"):
            Ok(42).unwrap_err()

    def test_map(self) -> None:
        assert Ok(21).map(lambda x: x * 2) == Ok(42)

    def test_flat_map_to_err(self) -> None:
        result: Result[int, str] = Ok(0)
        flat = result.flat_map(lambda x: Err("zero") if x == 0 else Ok(100 // x))
        assert flat == Err("zero")

    def test_repr(self) -> None:
        assert repr(Ok("v1")) == "Ok('v1')"


class TestErr:
    def test_unwrap_raises(self) -> None:
        with pytest.raises(ValueError):
            Err("boom").unwrap()

    def test_unwrap_or_returns_default(self) -> None:
        result: Result[int, str] = Err("boom")
        assert result.unwrap_or(7) == 7

    def test_map_is_noop(self) -> None:
        result: Result[int, str] = Err("boom")
        assert result.map(lambda x: x + 1) == Err("boom")

    def test_map_err(self) -> None:
        assert Err("boom").map_err(str.upper) == Err("BOOM")


def test_type_guards() -> None:
    assert is_ok(Ok(1))
    assert not is_ok(Err(1))
    assert is_err(Err(1))


def test_pattern_matching() -> None:
    result: Result[int, str] = Err("missing")
    match result:
        case Ok(value):
            outcome = f"ok {value}"
        case Err(error):
            outcome = f"err {error}"
    assert outcome == "err missing"
