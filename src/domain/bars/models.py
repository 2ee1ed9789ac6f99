"""
Bar domain models.

Defines:
- Asset: Hashable identity key partitioning all per-asset state
- Bar: Immutable OHLCV sample
- MarketEvent: One engine-visible event carrying bars for a subset of assets
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Hashable, Iterator, Tuple

# Any hashable value works; the CLI uses the ticker symbol string.
Asset = Hashable

OHLCV_FIELDS: Tuple[str, ...] = ("open", "high", "low", "close", "volume")


@dataclass(frozen=True, slots=True)
class Bar:
    """One OHLCV sample for one asset at one timestamp."""

    timestamp: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0

    @property
    def ohlcv(self) -> Tuple[float, float, float, float, float]:
        return (self.open, self.high, self.low, self.close, self.volume)

    @property
    def typical(self) -> float:
        """Typical price (high + low + close) / 3."""
        return (self.high + self.low + self.close) / 3.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "open": self.open,
            "high": self.high,
            "low": self.low,
            "close": self.close,
            "volume": self.volume,
        }


@dataclass
class MarketEvent:
    """
    Bars that arrived together at one point in time.

    Assets absent from ``bars`` simply did not trade. Dict insertion
    order is the order signals are emitted in.
    """

    timestamp: datetime
    bars: Dict[Asset, Bar] = field(default_factory=dict)

    def __iter__(self) -> Iterator[Tuple[Asset, Bar]]:
        return iter(self.bars.items())

    def __len__(self) -> int:
        return len(self.bars)
