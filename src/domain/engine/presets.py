"""
Strategy presets.

Ready-made engine configurations for common technical strategies. Each
recompute preset sizes its history to exactly what its indicators need.

| Preset                     | Style       | BUY                         | SELL                        |
|----------------------------|-------------|-----------------------------|-----------------------------|
| record_high_low            | recompute   | record high, any period     | record low, any period      |
| breakout                   | recompute   | record high over high_period| record low over low_period  |
| sma_crossover              | recompute   | fast SMA > slow SMA         | fast SMA < slow SMA         |
| ema_crossover              | recompute   | fast EMA > slow EMA         | fast EMA < slow EMA         |
| vwap                       | recompute   | vwap above close + margin   | vwap below close - margin   |
| rsi                        | recompute   | RSI < low                   | RSI > high                  |
| breakout_signals           | block       | entry/exit qualified        | entry/exit qualified        |
| incremental_sma_crossover  | incremental | fast crosses above slow     | fast crosses below slow     |
| incremental_rsi            | incremental | RSI under low               | RSI over high               |
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Mapping, Optional, Sequence

from ..bars.bar_buffer import BarBuffer
from ..exceptions import ConfigurationError
from ..indicators.gateway import IndicatorGateway
from ..indicators.helpers import record_high, record_low, vwap as vwap_value
from ..rules.base import Rule
from ..rules.conditions import (
    CrossedDownIndicatorRule,
    CrossedUpIndicatorRule,
    OverIndicatorRule,
    UnderIndicatorRule,
)
from ..rules.indicators import GatewayIndicator
from ..signals.models import Rating, Signal, SignalQualifier
from .config import EngineConfig, Incremental, Recompute


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ConfigurationError(message)


def record_high_low(periods: Sequence[int] = (100,)) -> Recompute:
    """BUY on a record high, SELL on a record low, over any of ``periods``."""
    periods = tuple(periods)
    _require(len(periods) > 0, "At least one period needs to be provided")
    _require(all(p > 1 for p in periods), "Any provided period needs to be at least of size 2")

    def buy(ta: IndicatorGateway, series: BarBuffer) -> bool:
        high = series.high
        return any(record_high(ta, high, period) for period in periods)

    def sell(ta: IndicatorGateway, series: BarBuffer) -> bool:
        low = series.low
        return any(record_low(ta, low, period) for period in periods)

    return Recompute(buy=buy, sell=sell, history=max(periods))


def breakout(high_period: int = 100, low_period: int = 50) -> Recompute:
    """BUY on a record high over ``high_period``, SELL on a record low over ``low_period``."""
    _require(high_period > 0 and low_period > 0, "Periods have to be larger than 0")
    return Recompute(
        buy=lambda ta, series: record_high(ta, series, high_period),
        sell=lambda ta, series: record_low(ta, series, low_period),
        history=max(high_period, low_period),
    )


def _crossover(indicator: str, slow: int, fast: int) -> Recompute:
    _require(slow > 0 and fast > 0, "Periods have to be larger than 0")
    _require(slow > fast, "Slow period has to be larger than fast period")

    def spread(ta: IndicatorGateway, series: BarBuffer) -> float:
        fast_value = ta.evaluate(indicator, series, {"timeperiod": fast})
        slow_value = ta.evaluate(indicator, series, {"timeperiod": slow})
        return fast_value - slow_value

    return Recompute(
        buy=lambda ta, series: spread(ta, series) > 0,
        sell=lambda ta, series: spread(ta, series) < 0,
        history=slow,
    )


def sma_crossover(slow: int, fast: int) -> Recompute:
    return _crossover("sma", slow, fast)


def ema_crossover(slow: int, fast: int) -> Recompute:
    return _crossover("ema", slow, fast)


def vwap(period: int, bips: int = 100) -> Recompute:
    """
    BUY when the VWAP exceeds the close by more than ``bips`` basis points,
    SELL when it is lower by more than that margin.
    """
    _require(period > 0, "Period has to be larger than 0")
    margin = bips / 10_000.0

    def buy(ta: IndicatorGateway, series: BarBuffer) -> bool:
        return vwap_value(series, period) > series.last.close * (1.0 + margin)

    def sell(ta: IndicatorGateway, series: BarBuffer) -> bool:
        return vwap_value(series, period) < series.last.close * (1.0 - margin)

    return Recompute(buy=buy, sell=sell, history=period)


def rsi(period: int, low: float = 30.0, high: float = 70.0) -> Recompute:
    """BUY when RSI drops below ``low``, SELL when it rises above ``high``."""
    _require(0.0 <= low <= 100.0 and 0.0 <= high <= 100.0, "Thresholds have to be in the range 0..100")
    _require(high > low, "High threshold has to be larger than low threshold")
    params = {"timeperiod": period}
    return Recompute(
        buy=lambda ta, series: ta.evaluate("rsi", series, params) < low,
        sell=lambda ta, series: ta.evaluate("rsi", series, params) > high,
        history=period + 1,
    )


def breakout_signals(entry_period: int = 100, exit_period: int = 50) -> Recompute:
    """
    Single-block breakout emitting qualified signals.

    Record high/low over ``entry_period`` → BUY/SELL (BOTH).
    Otherwise record low/high over ``exit_period`` → SELL/BUY (EXIT).
    """
    _require(entry_period > 0 and exit_period > 0, "Periods have to be larger than 0")

    def block(ta: IndicatorGateway, series: BarBuffer) -> Optional[Signal]:
        asset = series.asset
        if record_high(ta, series, entry_period):
            return Signal(asset, Rating.BUY, SignalQualifier.BOTH, source="breakout_signals")
        if record_low(ta, series, entry_period):
            return Signal(asset, Rating.SELL, SignalQualifier.BOTH, source="breakout_signals")
        if record_low(ta, series, exit_period):
            return Signal(asset, Rating.SELL, SignalQualifier.EXIT, source="breakout_signals")
        if record_high(ta, series, exit_period):
            return Signal(asset, Rating.BUY, SignalQualifier.EXIT, source="breakout_signals")
        return None

    return Recompute(block=block, history=max(entry_period, exit_period))


def incremental_sma_crossover(slow: int, fast: int, max_bar_count: Optional[int] = None) -> Incremental:
    """Rule-object crossover: BUY when fast SMA crosses above slow, SELL on the reverse."""
    _require(slow > 0 and fast > 0, "Periods have to be larger than 0")
    _require(slow > fast, "Slow period has to be larger than fast period")

    def lines(series: BarBuffer, ta: IndicatorGateway):
        return (
            GatewayIndicator(series, ta, "sma", {"timeperiod": fast}),
            GatewayIndicator(series, ta, "sma", {"timeperiod": slow}),
        )

    def buy_factory(series: BarBuffer, ta: IndicatorGateway) -> Rule:
        return CrossedUpIndicatorRule(*lines(series, ta))

    def sell_factory(series: BarBuffer, ta: IndicatorGateway) -> Rule:
        return CrossedDownIndicatorRule(*lines(series, ta))

    return Incremental(buy_factory=buy_factory, sell_factory=sell_factory, max_bar_count=max_bar_count)


def incremental_rsi(
    period: int, low: float = 30.0, high: float = 70.0, max_bar_count: Optional[int] = None
) -> Incremental:
    """Rule-object RSI: BUY while RSI is under ``low``, SELL while over ``high``."""
    _require(high > low, "High threshold has to be larger than low threshold")
    params = {"timeperiod": period}
    return Incremental(
        buy_factory=lambda series, ta: UnderIndicatorRule(GatewayIndicator(series, ta, "rsi", params), low),
        sell_factory=lambda series, ta: OverIndicatorRule(GatewayIndicator(series, ta, "rsi", params), high),
        max_bar_count=max_bar_count,
    )


PRESETS: Dict[str, Callable[..., EngineConfig]] = {
    "record_high_low": record_high_low,
    "breakout": breakout,
    "sma_crossover": sma_crossover,
    "ema_crossover": ema_crossover,
    "vwap": vwap,
    "rsi": rsi,
    "breakout_signals": breakout_signals,
    "incremental_sma_crossover": incremental_sma_crossover,
    "incremental_rsi": incremental_rsi,
}


def build_preset(name: str, params: Optional[Mapping[str, Any]] = None) -> EngineConfig:
    """
    Build a preset configuration by name.

    Raises:
        ConfigurationError: Unknown preset or parameters it does not accept.
    """
    factory = PRESETS.get(name)
    if factory is None:
        raise ConfigurationError(f"Unknown preset: {name}. Available: {sorted(PRESETS)}")
    try:
        return factory(**dict(params or {}))
    except TypeError as e:
        raise ConfigurationError(f"Invalid parameters for preset {name}: {e}") from e
