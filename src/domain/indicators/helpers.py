"""
Composite indicator helpers used by strategy predicates.

All helpers address history with the same ``offset`` convention as the
gateway (0 = latest bar) and report warm-up with InsufficientData.
"""

from __future__ import annotations

from typing import Any, Union

import numpy as np

from ..bars.bar_buffer import BarBuffer
from ..exceptions import ComputationError, InsufficientData
from .gateway import IndicatorGateway

Values = Union[BarBuffer, np.ndarray, Any]


def _column(data: Values, name: str) -> np.ndarray:
    if isinstance(data, BarBuffer):
        return data.column(name)
    return np.asarray(data, dtype=np.float64)


def record_high(ta: IndicatorGateway, data: Values, period: int, offset: int = 0) -> bool:
    """
    True if the value at ``offset`` is the highest of the trailing ``period`` values.

    Ties with an earlier value within the window count as a record.
    A BarBuffer is read through its ``high`` column.
    """
    values = _column(data, "high")
    highest = ta.evaluate("max", values, {"timeperiod": period}, offset)
    return bool(values[len(values) - 1 - offset] >= highest)


def record_low(ta: IndicatorGateway, data: Values, period: int, offset: int = 0) -> bool:
    """
    True if the value at ``offset`` is the lowest of the trailing ``period`` values.

    A BarBuffer is read through its ``low`` column.
    """
    values = _column(data, "low")
    lowest = ta.evaluate("min", values, {"timeperiod": period}, offset)
    return bool(values[len(values) - 1 - offset] <= lowest)


def vwap(series: BarBuffer, period: int, offset: int = 0) -> float:
    """
    Volume-weighted average of the typical price over ``period`` bars.

    Returns NaN when the window traded no volume.

    Raises:
        InsufficientData: Fewer than ``period + offset`` bars available.
    """
    if period < 1:
        raise ComputationError(f"vwap period must be >= 1, got {period}")
    if offset < 0:
        raise ComputationError(f"Offset must be >= 0, got {offset}")

    end = len(series) - 1 - offset
    start = end - period + 1
    if start < 0:
        raise InsufficientData("vwap", period - 1 + offset, offset)

    typical = series.typical[start:end + 1]
    volume = series.volume[start:end + 1]
    total_volume = volume.sum()
    if total_volume == 0:
        return float("nan")
    return float((typical * volume).sum() / total_volume)
