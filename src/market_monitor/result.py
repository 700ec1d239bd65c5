"""Tagged result type for data providers.

Every provider returns one of three variants so callers can tell live data
from placeholder data:

    Live(value)              fetched from the upstream API (or its cache)
    Fallback(value, reason)  upstream failed, a static demo value stands in
    Unavailable(reason)      upstream failed and there is nothing to show

Usage:
    result = await treasury.yield_curve()
    if result.is_live():
        curve = result.unwrap()
    elif result.has_value():
        curve = result.unwrap()  # demo data, render with a badge
    else:
        print(result.reason)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, Literal, TypeVar, final

if TYPE_CHECKING:
    from collections.abc import Callable

T = TypeVar("T")
U = TypeVar("U")
_T = TypeVar("_T")

Source = Literal["live", "fallback", "unavailable"]


class UnwrapError(Exception):
    """Raised when unwrap() is called on an Unavailable result."""


@final
@dataclass(frozen=True, slots=True)
class Live(Generic[T]):
    """A value fetched from the upstream source."""

    _value: T

    @property
    def source(self) -> Source:
        return "live"

    def is_live(self) -> bool:
        """Returns True since the value came from upstream."""
        return True

    def has_value(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Returns the contained value."""
        return self._value

    def unwrap_or(self, default: T) -> T:
        """Returns the contained value, ignoring the default."""
        return self._value

    def map(self, fn: Callable[[T], U]) -> Live[U]:
        """Applies fn to the contained value, returning Live(fn(value))."""
        return Live(fn(self._value))


@final
@dataclass(frozen=True, slots=True)
class Fallback(Generic[T]):
    """A static placeholder value used because the upstream call failed."""

    _value: T
    reason: str = ""

    @property
    def source(self) -> Source:
        return "fallback"

    def is_live(self) -> bool:
        """Returns False since the value is placeholder data."""
        return False

    def has_value(self) -> bool:
        return True

    def unwrap(self) -> T:
        """Returns the placeholder value."""
        return self._value

    def unwrap_or(self, default: T) -> T:
        """Returns the placeholder value, ignoring the default."""
        return self._value

    def map(self, fn: Callable[[T], U]) -> Fallback[U]:
        """Applies fn to the placeholder value, keeping the reason."""
        return Fallback(fn(self._value), self.reason)


@final
@dataclass(frozen=True, slots=True)
class Unavailable:
    """No value could be produced."""

    reason: str = ""

    @property
    def source(self) -> Source:
        return "unavailable"

    def is_live(self) -> bool:
        return False

    def has_value(self) -> bool:
        return False

    def unwrap(self) -> _T:  # noqa: UP049 # pyright: ignore[reportInvalidTypeVarUse]
        """Raises UnwrapError with the reason."""
        raise UnwrapError(f"Called unwrap on Unavailable: {self.reason}")

    def unwrap_or(self, default: _T) -> _T:  # noqa: UP049
        """Returns the default value."""
        return default

    def map(self, fn: Callable[[object], object]) -> Unavailable:
        """Returns self unchanged since there is no value."""
        return self


ProviderResult = Live[T] | Fallback[T] | Unavailable
