"""Tests for the result module."""

from __future__ import annotations

import pytest

from market_monitor.result import Fallback, Live, Unavailable, UnwrapError


class TestLive:
    """Tests for the Live type."""

    def test_source(self) -> None:
        assert Live(42).source == "live"

    def test_is_live(self) -> None:
        """Live.is_live() returns True."""
        assert Live(42).is_live() is True

    def test_unwrap(self) -> None:
        """Live.unwrap() returns the contained value."""
        assert Live(42).unwrap() == 42

    def test_unwrap_or(self) -> None:
        assert Live(42).unwrap_or(0) == 42

    def test_map(self) -> None:
        """Live.map() applies function to contained value."""
        assert Live(21).map(lambda x: x * 2) == Live(42)


class TestFallback:
    """Tests for the Fallback type."""

    def test_source(self) -> None:
        assert Fallback(1, "no key").source == "fallback"

    def test_is_not_live_but_has_value(self) -> None:
        result = Fallback(1, "no key")
        assert result.is_live() is False
        assert result.has_value() is True

    def test_unwrap_returns_placeholder(self) -> None:
        assert Fallback("demo", "no key").unwrap() == "demo"

    def test_map_keeps_reason(self) -> None:
        assert Fallback(2, "timeout").map(str) == Fallback("2", "timeout")


class TestUnavailable:
    """Tests for the Unavailable type."""

    def test_source(self) -> None:
        assert Unavailable("down").source == "unavailable"

    def test_has_no_value(self) -> None:
        result = Unavailable("down")
        assert result.is_live() is False
        assert result.has_value() is False

    def test_unwrap_raises(self) -> None:
        """Unavailable.unwrap() raises UnwrapError with the reason."""
        with pytest.raises(UnwrapError, match="Called unwrap on Unavailable: down"):
            Unavailable("down").unwrap()

    def test_unwrap_or(self) -> None:
        """Unavailable.unwrap_or() returns the default."""
        assert Unavailable("down").unwrap_or([]) == []

    def test_map_is_noop(self) -> None:
        result = Unavailable("down")
        assert result.map(lambda x: x) is result


class TestPatternMatching:
    @pytest.mark.parametrize(
        ("result", "expected"),
        [(Live(1), "live 1"), (Fallback(2, "r"), "demo 2 (r)"), (Unavailable("gone"), "none: gone")],
    )
    def test_match(self, result: Live[int] | Fallback[int] | Unavailable, expected: str) -> None:
        match result:
            case Live(value):
                text = f"live {value}"
            case Fallback(value, reason):
                text = f"demo {value} ({reason})"
            case Unavailable(reason):
                text = f"none: {reason}"
        assert text == expected
