"""Trading signals: models and the emitter shared by both rule styles."""

from .emitter import SignalEmitter
from .models import NO_OUTCOME, Rating, RuleOutcome, Signal, SignalQualifier

__all__ = [
    "NO_OUTCOME",
    "Rating",
    "RuleOutcome",
    "Signal",
    "SignalEmitter",
    "SignalQualifier",
]
