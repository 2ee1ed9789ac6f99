"""
Configuration manager with environment-based loading.

Supports:
- Base configuration (base.yaml)
- Environment-specific overrides (dev.yaml, prod.yaml)
- Local overrides (local.yaml - gitignored)
"""

from __future__ import annotations
from pathlib import Path
from typing import Dict, Any
import yaml
import logging

from src.domain.exceptions import ConfigurationError

from .models import (
    AppConfig,
    EngineConfigModel,
    StrategyConfig,
    ReplayConfig,
    LoggingConfig,
)


logger = logging.getLogger(__name__)

DEFAULT_COLUMNS = {
    "open": "open",
    "high": "high",
    "low": "low",
    "close": "close",
    "volume": "volume",
}


class ConfigManager:
    """
    Configuration manager with environment support.

    Loads configuration in this order:
    1. base.yaml (default config)
    2. {env}.yaml (environment-specific, e.g., dev.yaml)
    3. local.yaml (if exists, gitignored)

    Later configs override earlier ones.
    """

    def __init__(self, config_dir: str | Path = "config", env: str = "dev"):
        """
        Initialize config manager.

        Args:
            config_dir: Directory containing config files.
            env: Environment name (dev, prod, etc).
        """
        self.config_dir = Path(config_dir)
        self.env = env
        self.config: Dict[str, Any] = {}

    def load(self) -> AppConfig:
        """
        Load configuration from YAML files.

        Returns:
            AppConfig object.

        Raises:
            ConfigurationError: If base config is missing or invalid.
        """
        base_path = self.config_dir / "base.yaml"
        if not base_path.exists():
            raise ConfigurationError(f"Base config not found: {base_path}")

        self.config = self._load_yaml(base_path)
        logger.info(f"Loaded base config from {base_path}")

        env_path = self.config_dir / f"{self.env}.yaml"
        if env_path.exists():
            env_config = self._load_yaml(env_path)
            self.config = self._merge_dicts(self.config, env_config)
            logger.info(f"Loaded {self.env} config from {env_path}")

        local_path = self.config_dir / "local.yaml"
        if local_path.exists():
            self.config = self._merge_dicts(self.config, self._load_yaml(local_path))
            logger.info("Loaded local overrides")

        return self._parse_config()

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Top level of {path} must be a mapping")
        return data

    def _merge_dicts(self, base: Dict, override: Dict) -> Dict:
        """Deep merge two dicts (override wins)."""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_dicts(result[key], value)
            else:
                result[key] = value
        return result

    def _parse_config(self) -> AppConfig:
        """Parse raw dict into AppConfig."""
        try:
            engine_raw = self.config.get("engine") or {}
            engine = EngineConfigModel(
                history=engine_raw.get("history"),
                unbounded=bool(engine_raw.get("unbounded", False)),
                max_bar_count=engine_raw.get("max_bar_count"),
            )

            strategy_raw = self.config.get("strategy") or {}
            strategy = StrategyConfig(
                preset=strategy_raw.get("preset", "sma_crossover"),
                params=dict(strategy_raw.get("params") or {}),
            )

            replay_raw = self.config.get("replay") or {}
            replay = ReplayConfig(
                csv=replay_raw.get("csv"),
                asset_column=replay_raw.get("asset_column", "asset"),
                timestamp_column=replay_raw.get("timestamp_column", "timestamp"),
                default_asset=replay_raw.get("default_asset", "ASSET"),
                columns={**DEFAULT_COLUMNS, **(replay_raw.get("columns") or {})},
            )

            logging_raw = self.config.get("logging") or {}
            logging_config = LoggingConfig(
                level=logging_raw.get("level", "INFO"),
                json=logging_raw.get("json", True),
                dir=logging_raw.get("dir", "./logs"),
                console=logging_raw.get("console", False),
                timezone=logging_raw.get("timezone", "local"),  # Default to local time
                categories=dict(logging_raw.get("categories") or {}),
            )

            return AppConfig(
                engine=engine,
                strategy=strategy,
                replay=replay,
                logging=logging_config,
                raw=self.config,
            )

        except (AttributeError, TypeError, ValueError) as e:
            raise ConfigurationError(f"Failed to parse config: {e}") from e
