"""Composable rule objects bound to a live bar series."""

from .base import FALSE_RULE, TRUE_RULE, AndRule, BooleanRule, NotRule, OrRule, Rule
from .conditions import (
    CrossedDownIndicatorRule,
    CrossedUpIndicatorRule,
    OverIndicatorRule,
    UnderIndicatorRule,
)
from .indicators import (
    ConstantIndicator,
    GatewayIndicator,
    PriceIndicator,
    SeriesIndicator,
    as_indicator,
)

__all__ = [
    "AndRule",
    "BooleanRule",
    "ConstantIndicator",
    "CrossedDownIndicatorRule",
    "CrossedUpIndicatorRule",
    "FALSE_RULE",
    "GatewayIndicator",
    "NotRule",
    "OrRule",
    "OverIndicatorRule",
    "PriceIndicator",
    "Rule",
    "SeriesIndicator",
    "TRUE_RULE",
    "UnderIndicatorRule",
    "as_indicator",
]
