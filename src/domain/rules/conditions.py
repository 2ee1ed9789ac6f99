"""
Indicator comparison rules.

Each rule compares two series indicators (plain numbers act as constant
thresholds) and is unsatisfied whenever either side has no value at the
evaluated index, so rules stay silent through warm-up.

Cross semantics:
- Crossed up: prev_a <= prev_b and curr_a > curr_b
- Crossed down: prev_a >= prev_b and curr_a < curr_b
"""

from __future__ import annotations

from typing import Optional, Tuple

from .base import Rule
from .indicators import IndicatorLike, SeriesIndicator, as_indicator


class _ComparisonRule(Rule):
    __slots__ = ("_first", "_second")

    def __init__(self, first: IndicatorLike, second: IndicatorLike) -> None:
        self._first: SeriesIndicator = as_indicator(first)
        self._second: SeriesIndicator = as_indicator(second)

    def _values(self, index: int) -> Optional[Tuple[float, float]]:
        a = self._first.value(index)
        b = self._second.value(index)
        if a is None or b is None:
            return None
        return a, b


class OverIndicatorRule(_ComparisonRule):
    """First indicator above the second."""

    __slots__ = ()

    def is_satisfied(self, index: int) -> bool:
        values = self._values(index)
        return values is not None and values[0] > values[1]


class UnderIndicatorRule(_ComparisonRule):
    """First indicator below the second."""

    __slots__ = ()

    def is_satisfied(self, index: int) -> bool:
        values = self._values(index)
        return values is not None and values[0] < values[1]


class CrossedUpIndicatorRule(_ComparisonRule):
    """First indicator crosses above the second at ``index``."""

    __slots__ = ()

    def is_satisfied(self, index: int) -> bool:
        curr = self._values(index)
        prev = self._values(index - 1)
        if curr is None or prev is None:
            return False
        return prev[0] <= prev[1] and curr[0] > curr[1]


class CrossedDownIndicatorRule(_ComparisonRule):
    """First indicator crosses below the second at ``index``."""

    __slots__ = ()

    def is_satisfied(self, index: int) -> bool:
        curr = self._values(index)
        prev = self._values(index - 1)
        if curr is None or prev is None:
            return False
        return prev[0] >= prev[1] and curr[0] < curr[1]
