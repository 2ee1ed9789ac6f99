"""Configuration management."""

from .config_manager import ConfigManager
from .models import AppConfig, EngineConfigModel, LoggingConfig, ReplayConfig, StrategyConfig

__all__ = [
    "ConfigManager",
    "AppConfig",
    "EngineConfigModel",
    "LoggingConfig",
    "ReplayConfig",
    "StrategyConfig",
]
