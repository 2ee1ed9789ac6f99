"""
Signal engine.

Two rule-composition styles share one signal-emission tail:

- Recompute: stateless predicates re-run over each asset's window
- Incremental: rule objects bound once per asset to a growing series

Usage:
    from src.domain.engine import SignalEngine, presets

    engine = SignalEngine(presets.sma_crossover(slow=20, fast=5))
    signals = engine.generate(event)
"""

from . import presets
from .config import EngineConfig, Incremental, Recompute, false_rule, never
from .incremental import BindingState, IncrementalEvaluator, RuleBinding
from .presets import PRESETS, build_preset
from .recompute import AssetState, RecomputeEvaluator
from .signal_engine import SignalEngine, build_evaluator

__all__ = [
    "AssetState",
    "BindingState",
    "EngineConfig",
    "Incremental",
    "IncrementalEvaluator",
    "PRESETS",
    "Recompute",
    "RecomputeEvaluator",
    "RuleBinding",
    "SignalEngine",
    "build_evaluator",
    "build_preset",
    "false_rule",
    "never",
    "presets",
]
