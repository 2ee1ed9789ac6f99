"""
Unit tests for BarBuffer.

Tests:
- Bounded eviction and readiness thresholds
- Absolute vs relative indexing under eviction
- Ordering checks
- Column views, window columns, frame export
- Capacity growth and aggregation
"""

import numpy as np
import pandas as pd
import pytest

from src.domain.bars import Bar, BarBuffer
from src.domain.exceptions import ConfigurationError


class TestBarBufferEviction:
    """Sliding-window behaviour."""

    def test_capacity_three_keeps_latest_closes(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=3)
        for bar in bars_factory([10, 11, 12, 13, 14]):
            buffer.add(bar)

        assert len(buffer) == 3
        np.testing.assert_array_equal(buffer.close, [12.0, 13.0, 14.0])

    def test_add_reports_full_at_capacity(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=3)
        results = [buffer.add(bar) for bar in bars_factory([1, 2, 3, 4])]
        assert results == [False, False, True, True]

    def test_add_with_explicit_threshold(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=10)
        results = [buffer.add(bar, threshold=2) for bar in bars_factory([1, 2, 3])]
        assert results == [False, True, True]

    def test_unbounded_keeps_everything(self, bars_factory) -> None:
        buffer = BarBuffer()
        for bar in bars_factory(range(500)):
            assert buffer.add(bar)

        assert len(buffer) == 500
        assert not buffer.is_bounded
        assert not buffer.is_full()

    def test_invalid_capacity(self) -> None:
        with pytest.raises(ConfigurationError):
            BarBuffer(capacity=0)

    def test_empty_buffer_has_empty_columns(self) -> None:
        buffer = BarBuffer(capacity=5)
        assert len(buffer.close) == 0
        assert buffer.close.dtype == np.float64
        assert buffer.last is None
        assert buffer.end_index == -1


class TestBarBufferOrdering:
    """Timestamp order checks."""

    def test_out_of_order_bar_rejected(self, bar_factory) -> None:
        buffer = BarBuffer(capacity=5, asset="AAPL")
        buffer.add(bar_factory(10.0, i=5))

        with pytest.raises(ValueError, match="Out-of-order"):
            buffer.add(bar_factory(11.0, i=4))
        assert len(buffer) == 1

    def test_equal_timestamp_appended(self, bar_factory) -> None:
        buffer = BarBuffer(capacity=5)
        buffer.add(bar_factory(10.0, i=1))
        buffer.add(bar_factory(10.5, i=1))

        assert len(buffer) == 2
        assert buffer.last.close == 10.5


class TestBarBufferIndexing:
    """Relative and absolute index spaces."""

    def test_absolute_indices_survive_eviction(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=3)
        for bar in bars_factory([10, 11, 12, 13, 14]):
            buffer.add(bar)

        assert buffer.begin_index == 2
        assert buffer.end_index == 4
        assert buffer.bar_at(2).close == 12.0
        assert buffer.bar_at(4).close == 14.0
        assert buffer.get(0).close == 12.0
        assert buffer.get(-1).close == 14.0

    def test_bar_at_evicted_index_raises(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=2)
        for bar in bars_factory([1, 2, 3]):
            buffer.add(bar)

        assert not buffer.contains_index(0)
        with pytest.raises(IndexError):
            buffer.bar_at(0)
        with pytest.raises(IndexError):
            buffer.bar_at(3)

    def test_clear_restarts_indexing(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=3)
        for bar in bars_factory([1, 2, 3, 4]):
            buffer.add(bar)
        buffer.clear()

        assert len(buffer) == 0
        buffer.add(bars_factory([9])[0])
        assert buffer.begin_index == 0
        assert buffer.end_index == 0

    def test_window_columns(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=4)
        for bar in bars_factory([1, 2, 3, 4, 5, 6]):
            buffer.add(bar)

        columns = buffer.window_columns(3, 5, ["close", "volume"])
        np.testing.assert_array_equal(columns["close"], [4.0, 5.0, 6.0])
        assert len(columns["volume"]) == 3

        with pytest.raises(IndexError):
            buffer.window_columns(1, 5, ["close"])


class TestBarBufferViews:
    """Column projections and exports."""

    def test_typical_price(self, bar_factory) -> None:
        buffer = BarBuffer(capacity=2)
        buffer.add(bar_factory(10.0, high=13.0, low=7.0))

        np.testing.assert_allclose(buffer.typical, [10.0])
        np.testing.assert_allclose(buffer.column("typical"), [10.0])

    def test_unknown_column(self) -> None:
        with pytest.raises(KeyError):
            BarBuffer().column("vwap")

    def test_to_frame(self, bars_factory) -> None:
        buffer = BarBuffer()
        for bar in bars_factory([1, 2, 3]):
            buffer.add(bar)

        frame = buffer.to_frame()
        assert isinstance(frame, pd.DataFrame)
        assert list(frame.columns) == ["open", "high", "low", "close", "volume"]
        assert frame.index.name == "timestamp"
        assert frame["close"].tolist() == [1.0, 2.0, 3.0]

    def test_warmup_status(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=4, asset="MSFT")
        for bar in bars_factory([1, 2]):
            buffer.add(bar)

        status = buffer.warmup_status()
        assert status["bars_loaded"] == 2
        assert status["bars_required"] == 4
        assert status["progress_pct"] == 0.5
        assert status["status"] == "warming_up"


class TestBarBufferCapacity:
    """Capacity changes and aggregation."""

    def test_increase_capacity_keeps_contents(self, bars_factory) -> None:
        buffer = BarBuffer(capacity=2)
        for bar in bars_factory([1, 2]):
            buffer.add(bar)

        buffer.increase_capacity(4)
        for bar in bars_factory([3, 4], start=2):
            buffer.add(bar)

        assert buffer.capacity == 4
        np.testing.assert_array_equal(buffer.close, [1.0, 2.0, 3.0, 4.0])

    def test_increase_capacity_to_unbounded(self) -> None:
        buffer = BarBuffer(capacity=2)
        buffer.increase_capacity(None)
        assert buffer.capacity is None

    def test_shrinking_capacity_rejected(self) -> None:
        buffer = BarBuffer(capacity=5)
        with pytest.raises(ConfigurationError):
            buffer.increase_capacity(3)

    def test_aggregate_groups_and_drops_leftovers(self, bar_factory) -> None:
        buffer = BarBuffer()
        for i in range(7):
            buffer.add(bar_factory(float(i), i=i, high=i + 0.5, low=i - 0.5, open=i - 0.1, volume=10.0))

        five = buffer.aggregate(3)

        assert len(five) == 2
        first, second = five.bars
        assert isinstance(first, Bar)
        assert first.open == pytest.approx(-0.1)
        assert first.high == 2.5
        assert first.low == -0.5
        assert first.close == 2.0
        assert first.volume == 30.0
        assert first.timestamp == buffer.get(2).timestamp
        assert second.close == 5.0

    def test_aggregate_invalid_size(self) -> None:
        with pytest.raises(ConfigurationError):
            BarBuffer().aggregate(0)
