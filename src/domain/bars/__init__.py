"""Per-asset bar storage: Bar, BarBuffer and SeriesRegistry."""

from .bar_buffer import BarBuffer
from .models import OHLCV_FIELDS, Asset, Bar, MarketEvent
from .series_registry import SeriesRegistry

__all__ = [
    "Asset",
    "Bar",
    "BarBuffer",
    "MarketEvent",
    "OHLCV_FIELDS",
    "SeriesRegistry",
]
