"""
Stateless recompute evaluator.

Per asset: NOT_READY → READY once the window holds ``history`` bars.
While NOT_READY bars are recorded but nothing is evaluated. Once READY,
every bar triggers a full evaluation of the buy and sell predicates (and
the optional signal block) against the current window.

InsufficientData raised by a predicate means the configured history is
too short for the indicators in use. It is logged at CRITICAL and
re-raised, aborting the tick; it is never swallowed here.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict

from ...utils.logging_setup import get_logger
from ..bars.bar_buffer import BarBuffer
from ..bars.models import Asset, Bar
from ..bars.series_registry import SeriesRegistry
from ..exceptions import InsufficientData
from ..indicators.gateway import IndicatorGateway
from ..signals.models import NO_OUTCOME, RuleOutcome
from .config import Recompute

logger = get_logger(__name__)


class AssetState(Enum):
    NOT_READY = "not_ready"
    READY = "ready"


class RecomputeEvaluator:
    """Evaluates Recompute configurations, one window per asset."""

    def __init__(self, config: Recompute, gateway: IndicatorGateway) -> None:
        self._config = config
        self._gateway = gateway
        self._registry = SeriesRegistry(capacity=config.capacity)
        self._states: Dict[Asset, AssetState] = {}

    @property
    def registry(self) -> SeriesRegistry:
        return self._registry

    def state(self, asset: Asset) -> AssetState:
        return self._states.get(asset, AssetState.NOT_READY)

    def evaluate(self, asset: Asset, bar: Bar) -> RuleOutcome:
        series = self._registry.get_or_create(asset)
        if not series.add(bar, self._config.history):
            self._states[asset] = AssetState.NOT_READY
            return NO_OUTCOME

        if self._states.get(asset) is not AssetState.READY:
            self._states[asset] = AssetState.READY
            logger.debug(f"{asset} ready after {len(series)} bars")

        config = self._config
        try:
            buy = bool(config.buy(self._gateway, series))
            sell = bool(config.sell(self._gateway, series))
            signal = config.block(self._gateway, series) if config.block is not None else None
        except InsufficientData as e:
            logger.critical(
                "Not enough data available to calculate the indicators, increase history",
                extra={"data": {
                    "asset": str(asset),
                    "indicator": e.indicator,
                    "lookback": e.lookback,
                    "required_bars": e.required_bars,
                    "history": config.history,
                }},
            )
            raise

        return RuleOutcome(buy=buy, sell=sell, signal=signal)

    def warmup_status(self, asset: Asset) -> Dict[str, Any]:
        series = self._registry.get(asset)
        if series is None:
            series = BarBuffer(self._registry.capacity, asset=asset)  # Not registered
        status = series.warmup_status(self._config.history)
        status["state"] = self.state(asset).value
        return status

    def reset(self) -> None:
        self._registry.clear()
        self._states.clear()
