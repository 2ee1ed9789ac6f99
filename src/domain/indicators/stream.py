"""
IndicatorStream - Self-sizing indicator feed for a single asset.

Starts with a small buffer and grows it whenever the indicator block
reports InsufficientData, until the block can be evaluated. Useful for
charting or monitoring indicator values without working out the exact
lookback up front.
"""

from __future__ import annotations

from typing import Callable, Dict, Optional

from ...utils.logging_setup import get_logger
from ..bars.bar_buffer import BarBuffer
from ..bars.models import Bar
from ..exceptions import ConfigurationError, InsufficientData
from .gateway import IndicatorGateway

logger = get_logger(__name__)

IndicatorBlock = Callable[[IndicatorGateway, BarBuffer], Dict[str, float]]


class IndicatorStream:
    """
    Feeds bars to an indicator block, growing the window on demand.

    Example:
        stream = IndicatorStream.bbands(20)
        for bar in bars:
            values = stream.update(bar)  # {} while warming up
    """

    def __init__(
        self,
        block: IndicatorBlock,
        gateway: Optional[IndicatorGateway] = None,
        initial_capacity: int = 1,
        max_capacity: Optional[int] = None,
    ) -> None:
        """
        Args:
            block: Returns named indicator values for the current window.
            gateway: Gateway handed to ``block`` (a new one if omitted).
            initial_capacity: Starting window size.
            max_capacity: Upper bound for growth (None = no bound).
        """
        if max_capacity is not None and max_capacity < initial_capacity:
            raise ConfigurationError(
                f"max_capacity {max_capacity} smaller than initial_capacity {initial_capacity}"
            )
        self._block = block
        self._gateway = gateway if gateway is not None else IndicatorGateway()
        self._series = BarBuffer(capacity=initial_capacity)
        self._max_capacity = max_capacity

    @property
    def capacity(self) -> Optional[int]:
        return self._series.capacity

    def update(self, bar: Bar) -> Dict[str, float]:
        """
        Add a bar and return the indicator values, or {} while warming up.

        Raises:
            ConfigurationError: If the block needs more than ``max_capacity`` bars.
        """
        if not self._series.add(bar):
            return {}
        try:
            return self._block(self._gateway, self._series)
        except InsufficientData as e:
            current = self._series.capacity or 0
            new_capacity = max(e.required_bars, current + 1)
            if self._max_capacity is not None and new_capacity > self._max_capacity:
                raise ConfigurationError(
                    f"{e.indicator} needs {new_capacity} bars, above max_capacity {self._max_capacity}"
                ) from e
            logger.debug(f"Growing indicator window {current} -> {new_capacity} for {e.indicator}")
            self._series.increase_capacity(new_capacity)
            return {}

    def clear(self) -> None:
        self._series.clear()

    # -------------------------------------------------------------------------
    # Common streams
    # -------------------------------------------------------------------------

    @classmethod
    def rsi(cls, period: int = 10) -> "IndicatorStream":
        return cls(lambda ta, s: {f"rsi{period}": ta.evaluate("rsi", s, {"timeperiod": period})})

    @classmethod
    def sma(cls, period: int = 10) -> "IndicatorStream":
        return cls(lambda ta, s: {f"sma{period}": ta.evaluate("sma", s, {"timeperiod": period})})

    @classmethod
    def ema(cls, period: int = 10) -> "IndicatorStream":
        return cls(lambda ta, s: {f"ema{period}": ta.evaluate("ema", s, {"timeperiod": period})})

    @classmethod
    def mfi(cls, period: int = 10) -> "IndicatorStream":
        return cls(lambda ta, s: {f"mfi{period}": ta.evaluate("mfi", s, {"timeperiod": period})})

    @classmethod
    def bbands(cls, period: int = 10) -> "IndicatorStream":
        def block(ta: IndicatorGateway, series: BarBuffer) -> Dict[str, float]:
            upper, middle, lower = ta.evaluate("bbands", series, {"timeperiod": period})
            prefix = f"bb{period}"
            return {f"{prefix}.high": upper, f"{prefix}.mid": middle, f"{prefix}.low": lower}

        return cls(block)

    @classmethod
    def stochastic(
        cls, fastk_period: int = 5, slowk_period: int = 3, slowd_period: Optional[int] = None
    ) -> "IndicatorStream":
        params = {
            "fastk_period": fastk_period,
            "slowk_period": slowk_period,
            "slowd_period": slowd_period if slowd_period is not None else slowk_period,
        }

        def block(ta: IndicatorGateway, series: BarBuffer) -> Dict[str, float]:
            slowk, slowd = ta.evaluate("stoch", series, params)
            return {"stochastic.k": slowk, "stochastic.d": slowd}

        return cls(block)
