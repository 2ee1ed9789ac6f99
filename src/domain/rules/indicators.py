"""
Series-bound numeric indicators for rule objects.

Each indicator returns ``value(index)`` for an absolute bar index of its
series, or None when no value exists there (warm-up, or the bar has been
evicted from a bounded series). Rules treat None as "not satisfied", which
is how the incremental style absorbs warm-up without raising.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Mapping, Optional, Union

from ..bars.bar_buffer import BarBuffer
from ..indicators.catalog import OutputKind
from ..indicators.gateway import IndicatorGateway, Outputs


class SeriesIndicator(ABC):
    """Numeric value per absolute bar index."""

    @abstractmethod
    def value(self, index: int) -> Optional[float]:
        ...


class ConstantIndicator(SeriesIndicator):
    def __init__(self, constant: float) -> None:
        self.constant = float(constant)

    def value(self, index: int) -> Optional[float]:
        return self.constant


class PriceIndicator(SeriesIndicator):
    """One bar column (close by default)."""

    def __init__(self, series: BarBuffer, column: str = "close") -> None:
        self._series = series
        self._column = column

    def value(self, index: int) -> Optional[float]:
        if not self._series.contains_index(index):
            return None
        bar = self._series.bar_at(index)
        return bar.typical if self._column == "typical" else float(getattr(bar, self._column))


class GatewayIndicator(SeriesIndicator):
    """
    Catalog indicator evaluated through an IndicatorGateway.

    Only the ``lookback + 1`` bars ending at the requested index are handed
    to the gateway. Values are cached per index; a value (or its absence) at
    a given index never changes once computed, since later bars only append
    after it and eviction only removes bars before it.

    Example:
        fast = GatewayIndicator(series, ta, "ema", {"timeperiod": 12})
        upper = GatewayIndicator(series, ta, "bbands", {"timeperiod": 20}, output="upperband")
    """

    def __init__(
        self,
        series: BarBuffer,
        gateway: IndicatorGateway,
        indicator_id: str,
        params: Optional[Mapping[str, Any]] = None,
        output: Union[int, str] = 0,
        cache_size: int = 256,
    ) -> None:
        self._series = series
        self._gateway = gateway
        self._indicator_id = indicator_id
        self._params = dict(params or {})
        self._spec = gateway.catalog.get(indicator_id)
        self._output = self._spec.outputs.index(output) if isinstance(output, str) else output
        self._lookback = gateway.lookback(indicator_id, self._params)
        self._cache: "OrderedDict[int, Optional[float]]" = OrderedDict()
        self._cache_size = cache_size

    @property
    def lookback(self) -> int:
        return self._lookback

    def value(self, index: int) -> Optional[float]:
        if index in self._cache:
            return self._cache[index]

        start = index - self._lookback
        if not (self._series.contains_index(index) and self._series.contains_index(start)):
            # Before warm-up or partly evicted; only cache the permanent case
            if index <= self._series.end_index:
                self._remember(index, None)
            return None

        columns = self._series.window_columns(start, index, self._spec.inputs)
        result = self._gateway.try_evaluate(self._indicator_id, columns, self._params)
        value = result.map(self._select).unwrap_or(None)
        self._remember(index, value)
        return value

    def _select(self, outputs: Outputs) -> float:
        if self._spec.kind is OutputKind.MULTI:
            return float(outputs[self._output])  # type: ignore[index]
        return float(outputs)  # type: ignore[arg-type]

    def _remember(self, index: int, value: Optional[float]) -> None:
        self._cache[index] = value
        if len(self._cache) > self._cache_size:
            self._cache.popitem(last=False)


IndicatorLike = Union[SeriesIndicator, float, int]


def as_indicator(value: IndicatorLike) -> SeriesIndicator:
    """Wrap plain numbers as constants."""
    if isinstance(value, SeriesIndicator):
        return value
    return ConstantIndicator(value)
