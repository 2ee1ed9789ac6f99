"""
Engine configuration as a tagged variant.

    EngineConfig = Recompute | Incremental

- Recompute: stateless buy/sell predicates, or a single signal block in
  their place, re-evaluated in full on every bar once the asset's window
  holds ``history`` bars.
- Incremental: rule objects built once per asset by factories against a
  live growing series, then evaluated at each new index.

Both are validated at construction; invalid values raise ConfigurationError.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from ..bars.bar_buffer import BarBuffer
from ..exceptions import ConfigurationError
from ..indicators.gateway import IndicatorGateway
from ..rules.base import FALSE_RULE, Rule
from ..signals.models import Signal

# predicate(ta, series) -> bool
Predicate = Callable[[IndicatorGateway, BarBuffer], bool]
# block(ta, series) -> Optional[Signal]
SignalBlock = Callable[[IndicatorGateway, BarBuffer], Optional[Signal]]
# factory(series, ta) -> Rule
RuleFactory = Callable[[BarBuffer, IndicatorGateway], Rule]


def never(ta: IndicatorGateway, series: BarBuffer) -> bool:
    """Default predicate."""
    return False


def false_rule(series: BarBuffer, ta: IndicatorGateway) -> Rule:
    """Default rule factory: a rule that is never satisfied."""
    return FALSE_RULE


@dataclass(frozen=True)
class Recompute:
    """
    Stateless recompute style.

    Attributes:
        buy: BUY predicate.
        sell: SELL predicate.
        history: Bars required before predicates run; also the window size.
        block: Single block returning a qualified Signal or None. Replaces
            buy/sell; combining them raises ConfigurationError.
        unbounded: Keep all bars instead of a ``history``-sized window.
    """

    buy: Predicate = never
    sell: Predicate = never
    history: int = 15
    block: Optional[SignalBlock] = None
    unbounded: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.history, int) or self.history < 1:
            raise ConfigurationError(f"history must be an integer >= 1, got {self.history!r}")
        if self.block is not None and (self.buy is not never or self.sell is not never):
            # At most one BUY and one SELL per asset per tick
            raise ConfigurationError("block cannot be combined with buy/sell predicates")

    @property
    def capacity(self) -> Optional[int]:
        return None if self.unbounded else self.history


@dataclass(frozen=True)
class Incremental:
    """
    Stateful incremental rule-object style.

    Attributes:
        buy_factory: Builds the asset's BUY rule from its series.
        sell_factory: Builds the asset's SELL rule from its series.
        max_bar_count: Series capacity; None keeps every bar.
    """

    buy_factory: RuleFactory = false_rule
    sell_factory: RuleFactory = false_rule
    max_bar_count: Optional[int] = None

    def __post_init__(self) -> None:
        if self.max_bar_count is not None and self.max_bar_count < 1:
            raise ConfigurationError(f"max_bar_count must be >= 1 or None, got {self.max_bar_count}")


EngineConfig = Union[Recompute, Incremental]
