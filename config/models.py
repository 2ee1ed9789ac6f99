"""Configuration data models."""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Any, Optional


@dataclass
class EngineConfigModel:
    """Signal engine overrides applied on top of the selected preset."""
    history: Optional[int] = None  # Recompute window size (None = preset default)
    unbounded: bool = False  # Recompute: retain full history instead of a sliding window
    max_bar_count: Optional[int] = None  # Incremental series capacity (None = unbounded)


@dataclass
class StrategyConfig:
    """Strategy preset selection."""
    preset: str
    params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ReplayConfig:
    """CSV replay input configuration."""
    csv: Optional[str]
    asset_column: str
    timestamp_column: str
    default_asset: str  # Used when the CSV has no asset column
    columns: Dict[str, str]  # OHLCV field -> CSV column name


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str
    json: bool
    dir: str
    console: bool
    timezone: str  # Timezone for log timestamps (e.g., "America/New_York", "UTC", or "local")
    categories: Dict[str, str] = field(default_factory=dict)  # Per-category level overrides


@dataclass
class AppConfig:
    """Complete application configuration."""
    engine: EngineConfigModel
    strategy: StrategyConfig
    replay: ReplayConfig
    logging: LoggingConfig
    raw: Dict[str, Any]  # Raw merged config dict
