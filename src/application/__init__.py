"""Application layer - engine wiring and CSV replay."""

from .bootstrap import AppContainer, build_engine, build_engine_config
from .replay import ReplayRunner, ReplayStats, iter_events, load_bars_csv

__all__ = [
    "AppContainer",
    "ReplayRunner",
    "ReplayStats",
    "build_engine",
    "build_engine_config",
    "iter_events",
    "load_bars_csv",
]
