"""
Ok/Err result type for "not ready yet" outcomes.

Warm-up is an expected state of a streaming series, not an exceptional
one, so indicator evaluation can return it as a value. Callers that
prefer exceptions call ``unwrap()``: an Err whose error knows how to
become an exception (``to_exception()``) raises exactly that.

Usage:
    result = gateway.try_evaluate("sma", series, {"timeperiod": 20})
    match result:
        case Ok(value):
            ...
        case Err(not_ready):
            print(f"Need {not_ready.required_bars} bars")

    sma = result.unwrap_or(None)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, TypeVar, Union

T = TypeVar("T")
E = TypeVar("E")
U = TypeVar("U")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Evaluation produced a value."""

    value: T

    error = None

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value

    def unwrap_or(self, default: T) -> T:
        return self.value

    def map(self, f: Callable[[T], U]) -> "Ok[U]":
        return Ok(f(self.value))


@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Evaluation could not produce a value yet."""

    error: E

    value = None

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self):
        """Raise ``error.to_exception()`` when available, else ValueError."""
        to_exception = getattr(self.error, "to_exception", None)
        if callable(to_exception):
            raise to_exception()
        raise ValueError(f"Called unwrap() on Err: {self.error}")

    def unwrap_or(self, default: T) -> T:
        return default

    def map(self, f: Callable[[T], U]) -> "Err[E]":
        return self


Result = Union[Ok[T], Err[E]]
