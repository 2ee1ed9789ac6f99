"""
SeriesRegistry - Owned asset → BarBuffer map.

Single point of truth for per-asset buffer lifecycle: entries are created
lazily on first access with the configured capacity, and dropped in bulk
by ``clear()``. Not synchronized; one engine instance owns one registry.
"""

from __future__ import annotations

from typing import Dict, Optional

from ...utils.logging_setup import get_logger
from ..exceptions import ConfigurationError
from .bar_buffer import BarBuffer
from .models import Asset

logger = get_logger(__name__)


class SeriesRegistry:
    """
    Lazy-creating registry of per-asset bar buffers.

    Example:
        registry = SeriesRegistry(capacity=20)
        ready = registry.get_or_create("AAPL").add(bar)
    """

    def __init__(self, capacity: Optional[int] = None) -> None:
        """
        Args:
            capacity: Capacity for every created buffer (None = unbounded).
        """
        if capacity is not None and capacity < 1:
            raise ConfigurationError(f"Series capacity must be >= 1 or None, got {capacity}")
        self._capacity = capacity
        self._series: Dict[Asset, BarBuffer] = {}

    @property
    def capacity(self) -> Optional[int]:
        return self._capacity

    def get(self, asset: Asset) -> Optional[BarBuffer]:
        """Return the asset's buffer, or None if it has never received a bar."""
        return self._series.get(asset)

    def __contains__(self, asset: object) -> bool:
        return asset in self._series

    def get_or_create(self, asset: Asset) -> BarBuffer:
        """Return the asset's buffer, creating an empty one on first use."""
        series = self._series.get(asset)
        if series is None:
            series = BarBuffer(self._capacity, asset=asset)
            self._series[asset] = series
            logger.debug(f"Created series for {asset} (capacity={self._capacity})")
        return series

    def clear(self) -> None:
        """Drop every buffer."""
        if self._series:
            logger.debug(f"Clearing {len(self._series)} series")
        self._series.clear()

    def __len__(self) -> int:
        return len(self._series)
