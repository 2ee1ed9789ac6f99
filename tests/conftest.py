"""Pytest configuration and fixtures."""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Sequence, Tuple

import numpy as np
import pytest

from src.domain.bars.models import Bar, MarketEvent
from src.domain.exceptions import ComputationError
from src.domain.indicators.backend import RangeOutput
from src.domain.indicators.gateway import IndicatorGateway
from src.utils.logging_setup import (
    CATEGORIES,
    LOGGER_PREFIX,
    reset_session_run_number,
    set_log_level_override,
    set_log_timezone,
    set_verbose_mode,
    shutdown_logging,
)

START = datetime(2024, 1, 2, 9, 30)


def make_bar(
    close: float,
    i: int = 0,
    high: float = None,
    low: float = None,
    open: float = None,
    volume: float = 1000.0,
) -> Bar:
    """Bar at START + i minutes; high/low/open default to close."""
    return Bar(
        timestamp=START + timedelta(minutes=i),
        open=close if open is None else open,
        high=close if high is None else high,
        low=close if low is None else low,
        close=close,
        volume=volume,
    )


def make_bars(closes: Sequence[float], start: int = 0) -> List[Bar]:
    return [make_bar(close, start + i) for i, close in enumerate(closes)]


def make_events(series: Mapping[str, Sequence[float]]) -> List[MarketEvent]:
    """One event per index; assets shorter than the longest simply skip."""
    length = max(len(closes) for closes in series.values())
    events = []
    for i in range(length):
        bars = {asset: make_bar(closes[i], i) for asset, closes in series.items() if i < len(closes)}
        events.append(MarketEvent(timestamp=START + timedelta(minutes=i), bars=bars))
    return events


# =============================================================================
# Numpy test-double backend
# =============================================================================

def _period(params: Mapping[str, Any]) -> int:
    return int(params.get("timeperiod", 30))


def _rsi(window: np.ndarray) -> float:
    diffs = np.diff(window)
    gain = diffs[diffs > 0].sum()
    loss = -diffs[diffs < 0].sum()
    if loss == 0:
        return 100.0 if gain > 0 else 50.0
    return 100.0 - 100.0 / (1.0 + gain / loss)


def _bbands(window: np.ndarray, params: Mapping[str, Any]) -> Tuple[float, float, float]:
    mean = window.mean()
    std = window.std()
    return (
        mean + float(params.get("nbdevup", 2.0)) * std,
        mean,
        mean - float(params.get("nbdevdn", 2.0)) * std,
    )


def _doji(open_: np.ndarray, high: np.ndarray, low: np.ndarray, close: np.ndarray) -> float:
    body = abs(close[-1] - open_[-1])
    return 100.0 if body <= 0.1 * (high[-1] - low[-1]) else 0.0


# function -> (lookback(params), value(windows, params) -> tuple of outputs)
_FUNCTIONS: Dict[str, Tuple[Callable[[Mapping[str, Any]], int], Callable[..., Tuple[float, ...]]]] = {
    "SMA": (lambda p: _period(p) - 1, lambda w, p: (float(w[0].mean()),)),
    "MAX": (lambda p: _period(p) - 1, lambda w, p: (float(w[0].max()),)),
    "MIN": (lambda p: _period(p) - 1, lambda w, p: (float(w[0].min()),)),
    "RSI": (lambda p: _period(p), lambda w, p: (_rsi(w[0]),)),
    "BBANDS": (lambda p: _period(p) - 1, lambda w, p: _bbands(w[0], p)),
    "CDLDOJI": (lambda p: 0, lambda w, p: (_doji(*w),)),
}


class NumpyBackend:
    """
    NumericBackend double with TA-Lib range semantics.

    The value at index i is computed from inputs[i - lookback: i + 1] only.
    Every compute call is recorded in ``calls``.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[str, int, int]] = []

    def lookback(self, function: str, params: Mapping[str, Any]) -> int:
        if function not in _FUNCTIONS:
            raise ComputationError(f"Unsupported function {function}")
        if "timeperiod" in params and _period(params) < 1:
            return -1
        return _FUNCTIONS[function][0](params)

    def compute(
        self,
        function: str,
        inputs: Sequence[np.ndarray],
        params: Mapping[str, Any],
        start: int,
        end: int,
    ) -> RangeOutput:
        self.calls.append((function, start, end))
        lookback = self.lookback(function, params)
        value_fn = _FUNCTIONS[function][1]
        first = max(start, lookback)
        if end < first:
            n_outputs = 3 if function == "BBANDS" else 1
            return RangeOutput.empty(n_outputs)

        rows = [
            value_fn([values[i - lookback:i + 1] for values in inputs], params)
            for i in range(first, end + 1)
        ]
        outputs = tuple(np.array(column, dtype=np.float64) for column in zip(*rows))
        return RangeOutput(outputs=outputs, begin=first, count=end - first + 1)


@pytest.fixture
def bar_factory() -> Callable[..., Bar]:
    return make_bar


@pytest.fixture
def bars_factory() -> Callable[..., List[Bar]]:
    return make_bars


@pytest.fixture
def events_factory() -> Callable[..., List[MarketEvent]]:
    return make_events


@pytest.fixture
def backend() -> NumpyBackend:
    return NumpyBackend()


@pytest.fixture
def gateway(backend: NumpyBackend) -> IndicatorGateway:
    """Gateway over the numpy double (no TA-Lib needed)."""
    return IndicatorGateway(backend=backend)


@pytest.fixture
def talib_gateway() -> IndicatorGateway:
    """Gateway over the real TA-Lib backend."""
    pytest.importorskip("talib")
    return IndicatorGateway()


@pytest.fixture(autouse=True)
def isolate_logging():
    """Undo setup_category_logging so category loggers propagate to caplog again."""
    yield
    shutdown_logging()
    reset_session_run_number()
    set_verbose_mode(False)
    set_log_level_override(None)
    set_log_timezone(None)
    for category in CATEGORIES:
        logger = logging.getLogger(f"{LOGGER_PREFIX}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
        logger.propagate = True
