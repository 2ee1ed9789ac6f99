"""Unit tests for Signal models and SignalEmitter."""

import pytest

from src.domain.signals import (
    NO_OUTCOME,
    Rating,
    RuleOutcome,
    Signal,
    SignalEmitter,
    SignalQualifier,
)


class TestSignal:
    """Signal value object."""

    def test_defaults(self) -> None:
        signal = Signal("AAPL", Rating.BUY)
        assert signal.qualifier is SignalQualifier.BOTH
        assert signal.entry and signal.exit
        assert signal.rating.is_positive

    def test_exit_only(self) -> None:
        signal = Signal("AAPL", Rating.SELL, SignalQualifier.EXIT)
        assert signal.exit
        assert not signal.entry

    def test_conflicts(self) -> None:
        buy = Signal("AAPL", Rating.BUY)
        assert buy.conflicts(Signal("AAPL", Rating.SELL))
        assert not buy.conflicts(Signal("AAPL", Rating.BUY))
        assert not buy.conflicts(Signal("MSFT", Rating.SELL))

    def test_probability_range(self) -> None:
        with pytest.raises(ValueError):
            Signal("AAPL", Rating.BUY, probability=1.5)

    def test_to_dict_skips_unset(self) -> None:
        signal = Signal("AAPL", Rating.SELL, stop_loss=99.5, source="rsi")
        assert signal.to_dict() == {
            "asset": "AAPL",
            "rating": "sell",
            "qualifier": "both",
            "stop_loss": 99.5,
            "source": "rsi",
        }


class TestSignalEmitter:
    """Outcome → signal mapping."""

    def test_empty_outcome(self) -> None:
        assert NO_OUTCOME.is_empty
        assert SignalEmitter().emit("AAPL", NO_OUTCOME) == []

    def test_buy_then_sell_then_block(self) -> None:
        block = Signal("AAPL", Rating.SELL, SignalQualifier.EXIT)
        outcome = RuleOutcome(buy=True, sell=True, signal=block)

        signals = SignalEmitter(source="test").emit("AAPL", outcome)

        assert [s.rating for s in signals] == [Rating.BUY, Rating.SELL, Rating.SELL]
        assert signals[0].source == "test"
        assert signals[2] is block

    def test_emit_all_keeps_asset_order(self) -> None:
        emitter = SignalEmitter()
        signals = emitter.emit_all([
            ("MSFT", RuleOutcome(sell=True)),
            ("AAPL", NO_OUTCOME),
            ("GOOG", RuleOutcome(buy=True)),
        ])

        assert [(s.asset, s.rating) for s in signals] == [("MSFT", Rating.SELL), ("GOOG", Rating.BUY)]
        assert emitter.emitted_count == 2
