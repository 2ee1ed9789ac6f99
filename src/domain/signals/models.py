"""
Trading Signal Domain Models.

Defines:
- Rating: Directional intent (BUY/SELL)
- SignalQualifier: Whether a signal may open, close, or do both
- Signal: Emitted signal for one asset
- RuleOutcome: Per-asset result of one tick's rule evaluation
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from ..bars.models import Asset


class Rating(Enum):
    """Direction of the trading signal."""

    BUY = "buy"
    SELL = "sell"

    @property
    def is_positive(self) -> bool:
        return self is Rating.BUY


class SignalQualifier(Enum):
    """Sub-classification of a signal."""

    ENTRY = "entry"  # Only for opening or increasing a position
    EXIT = "exit"  # Only for closing or reducing a position
    BOTH = "both"


@dataclass(frozen=True)
class Signal:
    """
    Directional trading signal for one asset.

    Optional price levels and probability let downstream order logic size
    and bracket orders; the engine itself only fills asset, rating and
    qualifier.
    """

    asset: Asset
    rating: Rating
    qualifier: SignalQualifier = SignalQualifier.BOTH
    take_profit: Optional[float] = None
    stop_loss: Optional[float] = None
    probability: Optional[float] = None
    source: Optional[str] = None

    def __post_init__(self) -> None:
        if self.probability is not None and not 0.0 <= self.probability <= 1.0:
            raise ValueError(f"probability must be within [0, 1], got {self.probability}")

    @property
    def entry(self) -> bool:
        """Can be used to open or increase a position."""
        return self.qualifier in (SignalQualifier.ENTRY, SignalQualifier.BOTH)

    @property
    def exit(self) -> bool:
        """Can be used to close or reduce a position."""
        return self.qualifier in (SignalQualifier.EXIT, SignalQualifier.BOTH)

    def conflicts(self, other: "Signal") -> bool:
        """Same asset, opposite rating."""
        return self.asset == other.asset and self.rating is not other.rating

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to dictionary for logging/output."""
        result: Dict[str, Any] = {
            "asset": str(self.asset),
            "rating": self.rating.value,
            "qualifier": self.qualifier.value,
        }
        for key in ("take_profit", "stop_loss", "probability", "source"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True)
class RuleOutcome:
    """What one asset's rules produced on one tick."""

    buy: bool = False
    sell: bool = False
    signal: Optional[Signal] = None  # From single-block strategies

    @property
    def is_empty(self) -> bool:
        return not (self.buy or self.sell or self.signal is not None)


NO_OUTCOME = RuleOutcome()
