"""
SignalEmitter - Turns per-asset rule outcomes into signals.

Shared tail of both rule-composition styles. Per asset: BUY first, then
SELL, or the block-produced signal (Recompute never sets both). Both
ratings may be emitted for the same asset on the same tick; reconciling
them is the caller's job (see ``Signal.conflicts``).
"""

from __future__ import annotations

from typing import Iterable, List, Optional, Tuple

from ...utils.logging_setup import get_logger
from ..bars.models import Asset
from .models import Rating, RuleOutcome, Signal, SignalQualifier

logger = get_logger(__name__)


class SignalEmitter:
    """
    Maps (asset, outcome) pairs to Signal objects.

    Example:
        emitter = SignalEmitter(source="sma_crossover")
        emitter.emit("AAPL", RuleOutcome(buy=True))
        # [Signal(asset="AAPL", rating=Rating.BUY, ...)]
    """

    def __init__(self, source: Optional[str] = None) -> None:
        self._source = source
        self._emitted = 0

    @property
    def emitted_count(self) -> int:
        return self._emitted

    def emit(self, asset: Asset, outcome: RuleOutcome) -> List[Signal]:
        signals: List[Signal] = []
        if outcome.buy:
            signals.append(Signal(asset, Rating.BUY, SignalQualifier.BOTH, source=self._source))
        if outcome.sell:
            signals.append(Signal(asset, Rating.SELL, SignalQualifier.BOTH, source=self._source))
        if outcome.signal is not None:
            signals.append(outcome.signal)

        for signal in signals:
            logger.info(
                f"Signal {signal.rating.value.upper()} {asset} ({signal.qualifier.value})",
                extra={"data": signal.to_dict()},
            )
        self._emitted += len(signals)
        return signals

    def emit_all(self, outcomes: Iterable[Tuple[Asset, RuleOutcome]]) -> List[Signal]:
        """Emit in the iteration order of ``outcomes``."""
        signals: List[Signal] = []
        for asset, outcome in outcomes:
            signals.extend(self.emit(asset, outcome))
        return signals
