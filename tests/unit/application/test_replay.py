"""
Unit tests for CSV replay.

Tests:
- CSV normalization (column mapping, defaults, stable ordering)
- Event grouping by timestamp
- ReplayRunner output and stats
"""

from datetime import datetime
from pathlib import Path

import pytest

from src.application import ReplayRunner, ReplayStats, iter_events, load_bars_csv
from src.domain.engine import Recompute, SignalEngine, presets
from src.domain.exceptions import ConfigurationError, FatalError, InvalidMarketData
from src.domain.indicators import IndicatorGateway
from src.domain.signals import Rating

MULTI_ASSET_CSV = """timestamp,asset,open,high,low,close,volume
2024-01-02 09:32,MSFT,3,3,3,3,100
2024-01-02 09:30,MSFT,1,1,1,1,100
2024-01-02 09:30,AAPL,10,10,10,10,200
2024-01-02 09:31,MSFT,2,2,2,2,100
2024-01-02 09:31,AAPL,11,11,11,11,200
"""


@pytest.fixture
def multi_asset_csv(tmp_path: Path) -> Path:
    path = tmp_path / "bars.csv"
    path.write_text(MULTI_ASSET_CSV)
    return path


class TestLoadBarsCsv:
    """CSV → normalized frame."""

    def test_sorted_stably_by_timestamp(self, multi_asset_csv: Path) -> None:
        frame = load_bars_csv(multi_asset_csv)

        assert list(frame.columns) == ["timestamp", "asset", "open", "high", "low", "close", "volume"]
        assert list(frame["asset"]) == ["MSFT", "AAPL", "MSFT", "AAPL", "MSFT"]
        assert list(frame["close"]) == [1.0, 10.0, 2.0, 11.0, 3.0]

    def test_single_asset_defaults(self, tmp_path: Path) -> None:
        path = tmp_path / "spy.csv"
        path.write_text("timestamp,open,high,low,close\n2024-01-02,1,2,0.5,1.5\n")

        frame = load_bars_csv(path, default_asset="SPY")

        assert frame.loc[0, "asset"] == "SPY"
        assert frame.loc[0, "volume"] == 0.0
        assert frame.loc[0, "high"] == 2.0

    def test_custom_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.csv"
        path.write_text("Date,Symbol,O,H,L,C,V\n2024-01-02,QQQ,1,2,0.5,1.5,42\n")

        frame = load_bars_csv(
            path,
            timestamp_column="Date",
            asset_column="Symbol",
            columns={"open": "O", "high": "H", "low": "L", "close": "C", "volume": "V"},
        )

        assert frame.loc[0, "asset"] == "QQQ"
        assert frame.loc[0, "close"] == 1.5
        assert frame.loc[0, "volume"] == 42.0

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_bars_csv(tmp_path / "missing.csv")

    def test_missing_columns(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("timestamp,open,close\n2024-01-02,1,1\n")
        with pytest.raises(ConfigurationError, match="missing columns"):
            load_bars_csv(path)

    def test_non_numeric_price(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("timestamp,open,high,low,close\n2024-01-02,1,1,1,n/a?\n")
        with pytest.raises(InvalidMarketData, match="non-numeric value in column 'close'"):
            load_bars_csv(path)

    def test_non_numeric_volume(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("timestamp,open,high,low,close,volume\n2024-01-02,1,1,1,1,lots\n")
        with pytest.raises(InvalidMarketData, match="'volume'"):
            load_bars_csv(path)

    def test_invalid_timestamp(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.csv"
        path.write_text("timestamp,open,high,low,close\nnot a date,1,1,1,1\n")
        with pytest.raises(InvalidMarketData, match="invalid timestamp"):
            load_bars_csv(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("")
        with pytest.raises(InvalidMarketData, match="Cannot parse"):
            load_bars_csv(path)


class TestIterEvents:
    """Frame → MarketEvents."""

    def test_groups_by_timestamp(self, multi_asset_csv: Path) -> None:
        events = list(iter_events(load_bars_csv(multi_asset_csv)))

        assert [len(e) for e in events] == [2, 2, 1]
        assert events[0].timestamp == datetime(2024, 1, 2, 9, 30)
        assert list(events[0].bars) == ["MSFT", "AAPL"]
        assert events[0].bars["AAPL"].close == 10.0
        assert isinstance(events[0].bars["AAPL"].timestamp, datetime)

    def test_duplicate_asset_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "dup.csv"
        path.write_text(
            "timestamp,asset,open,high,low,close\n"
            "2024-01-02,AAPL,1,1,1,1\n"
            "2024-01-02,AAPL,2,2,2,2\n"
        )
        with pytest.raises(InvalidMarketData, match="Duplicate bar for AAPL") as exc_info:
            list(iter_events(load_bars_csv(path)))
        assert isinstance(exc_info.value, FatalError)


class TestReplayRunner:
    """Events through an engine."""

    def test_yields_timestamped_signals(self, gateway: IndicatorGateway, multi_asset_csv: Path) -> None:
        engine = SignalEngine(Recompute(buy=lambda ta, s: True, history=2), gateway=gateway)
        runner = ReplayRunner(engine)

        output = list(runner.run(iter_events(load_bars_csv(multi_asset_csv))))

        assert [(ts.minute, s.asset) for ts, s in output] == [(31, "MSFT"), (31, "AAPL"), (32, "MSFT")]
        assert all(s.rating is Rating.BUY for _, s in output)
        assert runner.stats.to_dict() == {
            "events": 3,
            "bars": 5,
            "signals": 3,
            "elapsed_sec": round(runner.stats.elapsed_sec, 6),
        }

    def test_stats_reset_per_run(self, gateway: IndicatorGateway, events_factory) -> None:
        engine = SignalEngine(presets.sma_crossover(slow=3, fast=2), gateway=gateway)
        runner = ReplayRunner(engine)
        events = events_factory({"AAPL": [10, 11, 12, 9]})

        list(runner.run(events))
        assert runner.stats.signals == 2
        engine.reset()
        list(runner.run(events))

        assert runner.stats.events == 4
        assert runner.stats.signals == 2

    def test_error_propagates_with_stats(self, gateway: IndicatorGateway, events_factory) -> None:
        def explode(ta, series):
            raise RuntimeError("boom")

        runner = ReplayRunner(SignalEngine(Recompute(buy=explode, history=1), gateway=gateway))

        with pytest.raises(RuntimeError, match="boom"):
            list(runner.run(events_factory({"AAPL": [1, 2]})))
        assert runner.stats.events == 0
        assert runner.stats.elapsed_sec >= 0.0

    def test_default_stats(self) -> None:
        assert ReplayStats().to_dict() == {"events": 0, "bars": 0, "signals": 0, "elapsed_sec": 0.0}
