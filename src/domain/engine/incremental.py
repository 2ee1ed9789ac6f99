"""
Stateful incremental evaluator.

Per asset: UNINITIALIZED → BOUND. On an asset's first bar a fresh empty
series is created and the buy/sell rules are built once against it. Every
bar after that is appended to the same series and the same rule objects
are evaluated at the new last index.

No insufficient-data condition surfaces here: rule objects stay
unsatisfied until their indicators have enough bars.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict

from ...utils.logging_setup import get_logger
from ..bars.bar_buffer import BarBuffer
from ..bars.models import Asset, Bar
from ..indicators.gateway import IndicatorGateway
from ..rules.base import Rule
from ..signals.models import RuleOutcome
from .config import Incremental

logger = get_logger(__name__)


class BindingState(Enum):
    UNINITIALIZED = "uninitialized"
    BOUND = "bound"


@dataclass
class RuleBinding:
    """Rules bound to one asset's live series."""

    series: BarBuffer
    buy_rule: Rule
    sell_rule: Rule


class IncrementalEvaluator:
    """Evaluates Incremental configurations, one binding per asset."""

    def __init__(self, config: Incremental, gateway: IndicatorGateway) -> None:
        self._config = config
        self._gateway = gateway
        self._bindings: Dict[Asset, RuleBinding] = {}

    def state(self, asset: Asset) -> BindingState:
        return BindingState.BOUND if asset in self._bindings else BindingState.UNINITIALIZED

    def binding(self, asset: Asset) -> RuleBinding:
        """Existing binding for ``asset``; KeyError if not bound yet."""
        return self._bindings[asset]

    def evaluate(self, asset: Asset, bar: Bar) -> RuleOutcome:
        binding = self._bindings.get(asset)
        if binding is None:
            binding = self._bind(asset)

        binding.series.add(bar)
        index = binding.series.end_index
        return RuleOutcome(
            buy=binding.buy_rule.is_satisfied(index),
            sell=binding.sell_rule.is_satisfied(index),
        )

    def _bind(self, asset: Asset) -> RuleBinding:
        series = BarBuffer(capacity=self._config.max_bar_count, asset=asset)
        binding = RuleBinding(
            series=series,
            buy_rule=self._config.buy_factory(series, self._gateway),
            sell_rule=self._config.sell_factory(series, self._gateway),
        )
        self._bindings[asset] = binding
        logger.debug(f"Bound rules for {asset} (max_bar_count={self._config.max_bar_count})")
        return binding

    def warmup_status(self, asset: Asset) -> Dict[str, Any]:
        binding = self._bindings.get(asset)
        loaded = len(binding.series) if binding is not None else 0
        return {
            "asset": asset,
            "bars_loaded": loaded,
            "state": self.state(asset).value,
        }

    def reset(self) -> None:
        self._bindings.clear()
