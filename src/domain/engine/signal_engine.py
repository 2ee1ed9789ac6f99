"""
SignalEngine - Applies market events to a configured rule style.

One event is applied completely (every bar buffered, every applicable
rule evaluated) before ``generate`` returns. Signals come out in the
event's asset order. The engine exclusively owns its evaluator state and
its gateway's backend handle; run one engine per thread.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from ...utils.logging_setup import get_logger
from ..bars.models import Asset, MarketEvent
from ..exceptions import ConfigurationError
from ..indicators.gateway import IndicatorGateway
from ..signals.emitter import SignalEmitter
from ..signals.models import Signal
from .config import EngineConfig, Incremental, Recompute
from .incremental import IncrementalEvaluator
from .recompute import RecomputeEvaluator

logger = get_logger(__name__)

Evaluator = Union[RecomputeEvaluator, IncrementalEvaluator]


def build_evaluator(config: EngineConfig, gateway: IndicatorGateway) -> Evaluator:
    """Pick the evaluation routine for a configuration variant."""
    if isinstance(config, Recompute):
        return RecomputeEvaluator(config, gateway)
    if isinstance(config, Incremental):
        return IncrementalEvaluator(config, gateway)
    raise ConfigurationError(f"Unsupported engine configuration: {type(config).__name__}")


class SignalEngine:
    """
    Streaming signal generator.

    Example:
        engine = SignalEngine(sma_crossover(slow=20, fast=5), name="sma_crossover")
        for event in events:
            for signal in engine.generate(event):
                ...
        engine.reset()  # back to a freshly constructed state
    """

    def __init__(
        self,
        config: EngineConfig,
        gateway: Optional[IndicatorGateway] = None,
        name: Optional[str] = None,
    ) -> None:
        """
        Args:
            config: Recompute or Incremental configuration.
            gateway: Indicator gateway (a new TA-Lib backed one if omitted).
            name: Strategy name, recorded as the signal source.
        """
        self._config = config
        self._gateway = gateway if gateway is not None else IndicatorGateway()
        self._evaluator = build_evaluator(config, self._gateway)
        self._emitter = SignalEmitter(source=name)
        self._name = name
        self._events_processed = 0

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def gateway(self) -> IndicatorGateway:
        return self._gateway

    @property
    def evaluator(self) -> Evaluator:
        return self._evaluator

    @property
    def events_processed(self) -> int:
        return self._events_processed

    def generate(self, event: MarketEvent) -> List[Signal]:
        """
        Apply one event and return its signals.

        Raises:
            InsufficientData: Recompute style only, when history is too short
                for the predicates' indicators.
        """
        signals = self._emitter.emit_all(
            (asset, self._evaluator.evaluate(asset, bar)) for asset, bar in event
        )
        self._events_processed += 1
        return signals

    def get_warmup_status(self, asset: Asset) -> Dict[str, Any]:
        return self._evaluator.warmup_status(asset)

    def reset(self) -> None:
        """Discard all per-asset state."""
        self._evaluator.reset()
        logger.info(
            f"Engine {self._name or type(self._config).__name__} reset "
            f"after {self._events_processed} events"
        )
        self._events_processed = 0

    def __repr__(self) -> str:
        return f"SignalEngine(name={self._name!r}, config={type(self._config).__name__})"
