"""
Application Bootstrap - Composition root for engine wiring.

Turns a loaded AppConfig into a ready SignalEngine (and replay runner),
making the construction order explicit and testable.

Usage:
    container = AppContainer(config, env="dev")
    container.initialize()
    for timestamp, signal in container.runner.run(events):
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, TYPE_CHECKING

from ..domain.engine import EngineConfig, Incremental, Recompute, SignalEngine, build_preset
from ..domain.exceptions import ConfigurationError
from ..domain.indicators.gateway import IndicatorGateway
from ..utils.logging_setup import get_logger
from .replay import ReplayRunner

if TYPE_CHECKING:
    from config.models import AppConfig

logger = get_logger(__name__)


def build_engine_config(app_config: "AppConfig") -> EngineConfig:
    """
    Build the preset named in ``strategy`` and apply ``engine`` overrides.

    ``history`` and ``unbounded`` only apply to recompute presets,
    ``max_bar_count`` only to incremental ones.
    """
    strategy = app_config.strategy
    overrides = app_config.engine
    engine_config = build_preset(strategy.preset, strategy.params)

    if isinstance(engine_config, Recompute):
        if overrides.max_bar_count is not None:
            raise ConfigurationError(
                f"max_bar_count does not apply to recompute preset {strategy.preset}"
            )
        changes = {}
        if overrides.history is not None:
            changes["history"] = overrides.history
        if overrides.unbounded:
            changes["unbounded"] = True
        return replace(engine_config, **changes) if changes else engine_config

    if isinstance(engine_config, Incremental):
        if overrides.history is not None or overrides.unbounded:
            raise ConfigurationError(
                f"history/unbounded do not apply to incremental preset {strategy.preset}"
            )
        if overrides.max_bar_count is not None:
            return replace(engine_config, max_bar_count=overrides.max_bar_count)
        return engine_config

    raise ConfigurationError(f"Preset {strategy.preset} produced {type(engine_config).__name__}")


def build_engine(
    app_config: "AppConfig", gateway: Optional[IndicatorGateway] = None
) -> SignalEngine:
    """Build a SignalEngine for the configured strategy."""
    engine_config = build_engine_config(app_config)
    engine = SignalEngine(engine_config, gateway=gateway, name=app_config.strategy.preset)
    logger.info(
        f"Engine ready: preset={app_config.strategy.preset} style={type(engine_config).__name__}",
        extra={"data": {"preset": app_config.strategy.preset, "params": app_config.strategy.params}},
    )
    return engine


@dataclass
class AppContainer:
    """
    Composition root for the replay application.

    Attributes:
        config: Application configuration.
        env: Environment name (dev, prod).
        gateway: Indicator gateway override (TA-Lib backed if None).
    """

    config: "AppConfig"
    env: str = "dev"
    gateway: Optional[IndicatorGateway] = None

    engine: Optional[SignalEngine] = field(default=None, init=False)
    runner: Optional[ReplayRunner] = field(default=None, init=False)

    def initialize(self) -> "AppContainer":
        """Create the engine and the replay runner around it."""
        self.engine = build_engine(self.config, gateway=self.gateway)
        self.runner = ReplayRunner(self.engine)
        logger.debug(f"AppContainer initialized for env={self.env}")
        return self
