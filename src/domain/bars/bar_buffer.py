"""
BarBuffer - Append-only per-asset OHLCV window.

A buffer is either bounded (sliding window of the most recent N bars,
oldest evicted first) or unbounded (retains full history at the cost of
unbounded memory growth). The caller picks one explicitly at construction.

Two index spaces are exposed:
- Relative: ``get(i)`` and the column arrays, 0 = oldest retained bar.
- Absolute: ``bar_at(i)``, ``begin_index``, ``end_index``. A bar keeps its
  absolute index for as long as it is retained, so objects holding absolute
  indices stay valid while older bars are evicted.
"""

from __future__ import annotations

from collections import deque
from itertools import islice
from typing import Any, Deque, Dict, Hashable, Iterable, Iterator, List, Optional

import numpy as np
import pandas as pd

from ..exceptions import ConfigurationError
from .models import Bar, OHLCV_FIELDS


class BarBuffer:
    """
    Ordered store of bars for exactly one asset.

    Example:
        buffer = BarBuffer(capacity=3)
        for bar in bars:
            ready = buffer.add(bar)
        buffer.close  # np.ndarray, oldest first
    """

    def __init__(self, capacity: Optional[int] = None, asset: Optional[Hashable] = None) -> None:
        """
        Args:
            capacity: Maximum bars retained; None keeps everything.
            asset: Owning asset (informational).
        """
        if capacity is not None and capacity < 1:
            raise ConfigurationError(f"BarBuffer capacity must be >= 1 or None, got {capacity}")
        self.asset = asset
        self._capacity = capacity
        self._bars: Deque[Bar] = deque(maxlen=capacity)
        self._added = 0

    @property
    def capacity(self) -> Optional[int]:
        return self._capacity

    @property
    def is_bounded(self) -> bool:
        return self._capacity is not None

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add(self, bar: Bar, threshold: Optional[int] = None) -> bool:
        """
        Append a bar, evicting the oldest one if the buffer is bounded and full.

        Args:
            bar: Bar to append. Must not be older than the latest stored bar.
            threshold: Readiness threshold. Defaults to the capacity, or 1 for
                unbounded buffers.

        Returns:
            True if the buffer now holds at least ``threshold`` bars.

        Raises:
            ValueError: If the bar's timestamp precedes the latest stored bar.
        """
        if self._bars and bar.timestamp < self._bars[-1].timestamp:
            raise ValueError(
                f"Out-of-order bar for {self.asset}: {bar.timestamp} < {self._bars[-1].timestamp}"
            )
        self._bars.append(bar)
        self._added += 1
        return self.is_ready(threshold)

    def clear(self) -> None:
        """Drop all bars and restart absolute indexing at 0."""
        self._bars.clear()
        self._added = 0

    def increase_capacity(self, new_capacity: Optional[int]) -> None:
        """
        Grow the window, keeping stored bars. None switches to unbounded.

        Raises:
            ConfigurationError: If the new capacity is smaller than the current one.
        """
        if new_capacity is not None:
            if self._capacity is None or new_capacity < self._capacity:
                raise ConfigurationError(
                    f"Cannot shrink BarBuffer capacity from {self._capacity} to {new_capacity}"
                )
        self._capacity = new_capacity
        self._bars = deque(self._bars, maxlen=new_capacity)

    # -------------------------------------------------------------------------
    # Readiness
    # -------------------------------------------------------------------------

    def is_ready(self, threshold: Optional[int] = None) -> bool:
        if threshold is None:
            threshold = self._capacity or 1
        return len(self._bars) >= threshold

    def is_full(self) -> bool:
        return self._capacity is not None and len(self._bars) == self._capacity

    def warmup_status(self, threshold: Optional[int] = None) -> Dict[str, Any]:
        """Warm-up progress towards ``threshold`` (defaults as in ``add``)."""
        required = threshold if threshold is not None else (self._capacity or 1)
        loaded = len(self._bars)
        return {
            "asset": self.asset,
            "bars_loaded": loaded,
            "bars_required": required,
            "progress_pct": min(1.0, loaded / required) if required > 0 else 1.0,
            "status": "ready" if loaded >= required else "warming_up",
        }

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._bars)

    def __iter__(self) -> Iterator[Bar]:
        return iter(self._bars)

    def __repr__(self) -> str:
        return f"BarBuffer(asset={self.asset!r}, size={len(self._bars)}, capacity={self._capacity})"

    @property
    def bars(self) -> List[Bar]:
        return list(self._bars)

    @property
    def last(self) -> Optional[Bar]:
        return self._bars[-1] if self._bars else None

    def get(self, index: int) -> Bar:
        """Bar at relative ``index`` (0 = oldest, -1 = latest)."""
        return self._bars[index]

    @property
    def begin_index(self) -> int:
        """Absolute index of the oldest retained bar."""
        return self._added - len(self._bars)

    @property
    def end_index(self) -> int:
        """Absolute index of the latest bar (-1 when empty)."""
        return self._added - 1

    def contains_index(self, index: int) -> bool:
        return self.begin_index <= index <= self.end_index

    def bar_at(self, index: int) -> Bar:
        """
        Bar at absolute ``index``.

        Raises:
            IndexError: If the bar was evicted or not added yet.
        """
        if not self.contains_index(index):
            raise IndexError(
                f"Index {index} outside retained range [{self.begin_index}, {self.end_index}]"
            )
        return self._bars[index - self.begin_index]

    # -------------------------------------------------------------------------
    # Column views (recomputed from current contents, oldest first)
    # -------------------------------------------------------------------------

    def column(self, name: str) -> np.ndarray:
        if name == "typical":
            return self.typical
        if name not in OHLCV_FIELDS:
            raise KeyError(f"Unknown bar column: {name}")
        return np.fromiter(
            (getattr(bar, name) for bar in self._bars), dtype=np.float64, count=len(self._bars)
        )

    @property
    def open(self) -> np.ndarray:
        return self.column("open")

    @property
    def high(self) -> np.ndarray:
        return self.column("high")

    @property
    def low(self) -> np.ndarray:
        return self.column("low")

    @property
    def close(self) -> np.ndarray:
        return self.column("close")

    @property
    def volume(self) -> np.ndarray:
        return self.column("volume")

    @property
    def typical(self) -> np.ndarray:
        return (self.high + self.low + self.close) / 3.0

    def window_columns(self, start: int, end: int, names: Iterable[str]) -> Dict[str, np.ndarray]:
        """
        Columns for the bars with absolute indices in [start, end].

        Raises:
            IndexError: If any index in the range is not retained.
        """
        if not (self.contains_index(start) and self.contains_index(end)) or start > end:
            raise IndexError(
                f"Range [{start}, {end}] outside retained range [{self.begin_index}, {self.end_index}]"
            )
        offset = self.begin_index
        bars = list(islice(self._bars, start - offset, end - offset + 1))
        columns: Dict[str, np.ndarray] = {}
        for name in names:
            if name == "typical":
                columns[name] = np.fromiter((bar.typical for bar in bars), dtype=np.float64, count=len(bars))
            elif name in OHLCV_FIELDS:
                columns[name] = np.fromiter(
                    (getattr(bar, name) for bar in bars), dtype=np.float64, count=len(bars)
                )
            else:
                raise KeyError(f"Unknown bar column: {name}")
        return columns

    def to_frame(self) -> pd.DataFrame:
        """OHLCV DataFrame indexed by timestamp."""
        return pd.DataFrame(
            {name: self.column(name) for name in OHLCV_FIELDS},
            index=pd.Index([bar.timestamp for bar in self._bars], name="timestamp"),
        )

    # -------------------------------------------------------------------------
    # Derived series
    # -------------------------------------------------------------------------

    def aggregate(self, n: int) -> "BarBuffer":
        """
        Combine every ``n`` consecutive bars into one, oldest first.

        Trailing bars that do not fill a complete group are dropped. Gaps
        in the timeline are not detected.

        Example:
            five_minute = one_minute.aggregate(5)
        """
        if n < 1:
            raise ConfigurationError(f"Aggregation size must be >= 1, got {n}")
        bars = self.bars
        result = BarBuffer(capacity=max(len(bars) // n, 1), asset=self.asset)
        for start in range(0, len(bars) - n + 1, n):
            group = bars[start:start + n]
            result.add(
                Bar(
                    timestamp=group[-1].timestamp,
                    open=group[0].open,
                    high=max(bar.high for bar in group),
                    low=min(bar.low for bar in group),
                    close=group[-1].close,
                    volume=sum(bar.volume for bar in group),
                )
            )
        return result
