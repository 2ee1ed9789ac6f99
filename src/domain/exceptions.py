"""
Domain exceptions for the tastream engine.

Implements a hierarchy distinguishing between recoverable conditions
(history too short for an indicator, fixable by sizing the buffer) and
fatal errors (malformed numeric input, invalid configuration) that
indicate a programming or setup mistake and must not be retried.
"""

from __future__ import annotations


class TastreamError(Exception):
    """Base class for all tastream domain exceptions."""
    pass


class RecoverableError(TastreamError):
    """
    Errors that can be resolved without changing code.

    Examples:
    - Not enough bars buffered yet for an indicator
    """
    pass


class FatalError(TastreamError):
    """
    Errors requiring operator intervention.

    Examples:
    - Invalid configuration
    - Malformed input handed to the numeric library
    """
    pass


class InsufficientData(RecoverableError):
    """
    Raised when an indicator is evaluated before enough history exists.

    Attributes:
        indicator: Indicator identifier (e.g. "sma", "vwap").
        lookback: Preceding bars the indicator needs, including the
            requested offset. Equals the numeric library's lookback + offset.
        offset: Offset the evaluation was requested at.
    """

    def __init__(self, indicator: str, lookback: int, offset: int = 0):
        self.indicator = indicator
        self.lookback = lookback
        self.offset = offset
        super().__init__(
            f"Not enough data to calculate {indicator}, "
            f"minimal lookback period is {lookback}"
        )

    @property
    def required_bars(self) -> int:
        """Minimum buffer length that makes the evaluation succeed."""
        return self.lookback + 1


class ComputationError(FatalError):
    """Numeric computation rejected its input (bad lengths or parameters)."""
    pass


class ConfigurationError(FatalError):
    """Invalid construction parameters or configuration."""
    pass


class InvalidMarketData(FatalError, ValueError):
    """Bar input that cannot be replayed (non-numeric prices, bad timestamps, duplicate bars)."""
    pass
