"""
Unit tests for the stateful incremental style.

Tests:
- Rules bound once per asset on the first bar
- Crossing rules silent during warm-up (no InsufficientData)
- max_bar_count bounding
- Reset
"""

import pytest

from src.domain.engine import BindingState, Incremental, SignalEngine, presets
from src.domain.exceptions import ConfigurationError
from src.domain.indicators import IndicatorGateway
from src.domain.rules import TRUE_RULE, GatewayIndicator, OverIndicatorRule, PriceIndicator
from src.domain.signals import Rating

CROSS_CLOSES = [10, 10, 10, 10, 13, 14, 10, 8]


class TestIncrementalConfig:
    """Configuration validation."""

    def test_invalid_max_bar_count(self) -> None:
        with pytest.raises(ConfigurationError):
            Incremental(max_bar_count=0)

    def test_default_factories_never_signal(self, gateway: IndicatorGateway, events_factory) -> None:
        engine = SignalEngine(Incremental(), gateway=gateway)
        results = [engine.generate(event) for event in events_factory({"AAPL": range(20)})]
        assert all(result == [] for result in results)


class TestIncrementalBinding:
    """UNINITIALIZED → BOUND."""

    def test_factories_called_once_per_asset(self, gateway: IndicatorGateway, events_factory) -> None:
        built = []

        def buy_factory(series, ta):
            built.append(series.asset)
            return TRUE_RULE

        engine = SignalEngine(Incremental(buy_factory=buy_factory), gateway=gateway)
        for event in events_factory({"AAPL": [1, 2, 3], "MSFT": [1, 2]}):
            engine.generate(event)

        assert built == ["AAPL", "MSFT"]
        assert engine.evaluator.state("AAPL") is BindingState.BOUND
        assert engine.evaluator.state("GOOG") is BindingState.UNINITIALIZED

    def test_rules_see_growing_series(self, gateway: IndicatorGateway, events_factory) -> None:
        def buy_factory(series, ta):
            return OverIndicatorRule(PriceIndicator(series), 2.5)

        engine = SignalEngine(Incremental(buy_factory=buy_factory), gateway=gateway)
        results = [engine.generate(event) for event in events_factory({"AAPL": [1, 2, 3, 4]})]

        assert [len(r) for r in results] == [0, 0, 1, 1]
        assert len(engine.evaluator.binding("AAPL").series) == 4

    def test_warmup_status(self, gateway: IndicatorGateway, events_factory) -> None:
        engine = SignalEngine(Incremental(), gateway=gateway)
        engine.generate(events_factory({"AAPL": [1]})[0])

        status = engine.get_warmup_status("AAPL")
        assert status["bars_loaded"] == 1
        assert status["state"] == "bound"


class TestIncrementalCrossover:
    """SMA crossover built from rule objects."""

    def test_cross_up_then_down(self, gateway: IndicatorGateway, events_factory) -> None:
        engine = SignalEngine(presets.incremental_sma_crossover(slow=3, fast=2), gateway=gateway)
        results = [engine.generate(event) for event in events_factory({"AAPL": CROSS_CLOSES})]

        fired = {i: [s.rating for s in r] for i, r in enumerate(results) if r}
        assert fired == {4: [Rating.BUY], 6: [Rating.SELL]}

    def test_no_insufficient_data_during_warmup(self, gateway: IndicatorGateway, events_factory) -> None:
        def buy_factory(series, ta):
            return OverIndicatorRule(GatewayIndicator(series, ta, "sma", {"timeperiod": 50}), 0)

        engine = SignalEngine(Incremental(buy_factory=buy_factory), gateway=gateway)
        for event in events_factory({"AAPL": range(10)}):
            assert engine.generate(event) == []

    def test_max_bar_count_large_enough(self, gateway: IndicatorGateway, events_factory) -> None:
        config = presets.incremental_sma_crossover(slow=3, fast=2, max_bar_count=4)
        engine = SignalEngine(config, gateway=gateway)
        results = [engine.generate(event) for event in events_factory({"AAPL": CROSS_CLOSES})]

        assert len(engine.evaluator.binding("AAPL").series) == 4
        assert [i for i, r in enumerate(results) if r] == [4, 6]

    def test_cached_values_outlive_eviction(self, gateway: IndicatorGateway, events_factory) -> None:
        # Previous-index values were computed while their window was retained
        config = presets.incremental_sma_crossover(slow=3, fast=2, max_bar_count=3)
        engine = SignalEngine(config, gateway=gateway)
        results = [engine.generate(event) for event in events_factory({"AAPL": CROSS_CLOSES})]

        assert len(engine.evaluator.binding("AAPL").series) == 3
        assert [i for i, r in enumerate(results) if r] == [4, 6]

    def test_reset_rebinds(self, gateway: IndicatorGateway, events_factory) -> None:
        engine = SignalEngine(presets.incremental_sma_crossover(slow=3, fast=2), gateway=gateway)
        events = events_factory({"AAPL": CROSS_CLOSES})

        first = [engine.generate(event) for event in events]
        engine.reset()
        assert engine.evaluator.state("AAPL") is BindingState.UNINITIALIZED
        second = [engine.generate(event) for event in events]

        assert first == second
