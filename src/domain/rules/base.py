"""
Rule objects for the incremental engine style.

A rule answers ``is_satisfied(index)`` for an absolute bar index of the
series it was bound to, and composes with ``&``, ``|`` and ``~``:

    entry = crossed_up & ~overbought
"""

from __future__ import annotations

from abc import ABC, abstractmethod


class Rule(ABC):
    """Predicate over absolute bar indices of one series."""

    __slots__ = ()

    @abstractmethod
    def is_satisfied(self, index: int) -> bool:
        ...

    def __and__(self, other: "Rule") -> "Rule":
        return AndRule(self, other)

    def __or__(self, other: "Rule") -> "Rule":
        return OrRule(self, other)

    def __invert__(self) -> "Rule":
        return NotRule(self)


class BooleanRule(Rule):
    """Constant rule."""

    __slots__ = ("_value",)

    def __init__(self, value: bool) -> None:
        self._value = value

    def is_satisfied(self, index: int) -> bool:
        return self._value

    def __repr__(self) -> str:
        return f"BooleanRule({self._value})"


class AndRule(Rule):
    __slots__ = ("_left", "_right")

    def __init__(self, left: Rule, right: Rule) -> None:
        self._left = left
        self._right = right

    def is_satisfied(self, index: int) -> bool:
        return self._left.is_satisfied(index) and self._right.is_satisfied(index)


class OrRule(Rule):
    __slots__ = ("_left", "_right")

    def __init__(self, left: Rule, right: Rule) -> None:
        self._left = left
        self._right = right

    def is_satisfied(self, index: int) -> bool:
        return self._left.is_satisfied(index) or self._right.is_satisfied(index)


class NotRule(Rule):
    __slots__ = ("_rule",)

    def __init__(self, rule: Rule) -> None:
        self._rule = rule

    def is_satisfied(self, index: int) -> bool:
        return not self._rule.is_satisfied(index)


FALSE_RULE = BooleanRule(False)
TRUE_RULE = BooleanRule(True)
