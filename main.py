"""
tastream - Replay a bar CSV through a technical-analysis signal engine.

Usage:
    python main.py --csv data/bars.csv                       # Preset from config/base.yaml
    python main.py --csv data/bars.csv --preset rsi --param period=14
    python main.py --env prod --csv data/bars.csv --console
"""

from __future__ import annotations
import argparse
import json
import sys
from typing import Any, Dict, List, Optional

import yaml

from config.config_manager import ConfigManager
from src.application import AppContainer, iter_events, load_bars_csv
from src.domain.engine import PRESETS
from src.domain.exceptions import ConfigurationError, TastreamError
from src.utils import flush_all_loggers, set_log_timezone, setup_category_logging, shutdown_logging
from src.utils.logging_setup import get_logger

logger = get_logger("src.main")

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CONFIG = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Streaming technical-analysis signal engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Presets:
  {", ".join(sorted(PRESETS))}

Examples:
  python main.py --csv bars.csv --preset sma_crossover --param slow=20 --param fast=5
  python main.py --csv bars.csv --preset record_high_low --param "periods=[20, 50]"
        """
    )

    parser.add_argument(
        "--env",
        type=str,
        default="dev",
        help="Environment config to merge over base.yaml (default: dev)"
    )

    parser.add_argument(
        "--config-dir",
        type=str,
        default="config",
        help="Directory containing base.yaml and {env}.yaml (default: config)"
    )

    parser.add_argument(
        "--csv",
        type=str,
        help="Bar CSV to replay (overrides replay.csv)"
    )

    parser.add_argument(
        "--preset",
        type=str,
        choices=sorted(PRESETS),
        help="Strategy preset (overrides strategy.preset)"
    )

    parser.add_argument(
        "--param",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Preset parameter, repeatable. Values are parsed as YAML (e.g. slow=20)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging (DEBUG level for all categories)"
    )

    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set log level (default: logging.level from config, ignored if --verbose is set)"
    )

    parser.add_argument(
        "--log-dir",
        type=str,
        help="Log directory (default: logging.dir from config)"
    )

    parser.add_argument(
        "--console",
        action="store_true",
        help="Also log to stderr"
    )

    return parser.parse_args(argv)


def parse_params(pairs: List[str]) -> Dict[str, Any]:
    """Turn ["slow=20", "fast=5"] into {"slow": 20, "fast": 5}."""
    params: Dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(f"Invalid --param {pair!r}, expected KEY=VALUE")
        try:
            params[key.strip()] = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid value for --param {key}: {e}") from e
    return params


def run(args: argparse.Namespace) -> int:
    """
    Load config, replay the CSV and print one JSON line per signal.

    Returns:
        Exit code.
    """
    config = ConfigManager(config_dir=args.config_dir, env=args.env).load()

    if args.preset:
        config.strategy.preset = args.preset
        config.strategy.params = {}
    if args.param:
        config.strategy.params = {**config.strategy.params, **parse_params(args.param)}
    if args.csv:
        config.replay.csv = args.csv
    if not config.replay.csv:
        raise ConfigurationError("No CSV to replay: pass --csv or set replay.csv")

    log_tz = config.logging.timezone
    set_log_timezone(None if not log_tz or log_tz.lower() == "local" else log_tz)
    try:
        setup_category_logging(
            env=args.env,
            log_dir=args.log_dir or config.logging.dir,
            level=args.log_level or config.logging.level,
            console=args.console or config.logging.console,
            verbose=args.verbose,
            json_files=config.logging.json,
            category_levels=config.logging.categories,
        )
    except ValueError as e:
        raise ConfigurationError(f"Invalid logging config: {e}") from e
    logger.info(
        "Starting replay",
        extra={"data": {"env": args.env, "preset": config.strategy.preset, "csv": config.replay.csv}},
    )

    container = AppContainer(config, env=args.env).initialize()
    replay = config.replay
    frame = load_bars_csv(
        replay.csv,
        timestamp_column=replay.timestamp_column,
        asset_column=replay.asset_column,
        default_asset=replay.default_asset,
        columns=replay.columns,
    )

    for timestamp, signal in container.runner.run(iter_events(frame)):
        print(json.dumps({"timestamp": timestamp.isoformat(), **signal.to_dict()}), flush=True)

    logger.info("Replay finished", extra={"data": container.runner.stats.to_dict()})
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    try:
        return run(args)
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except TastreamError as e:
        logger.error(f"Replay aborted: {e}")
        print(f"Replay aborted: {e}", file=sys.stderr)
        return EXIT_ERROR
    except KeyboardInterrupt:
        print("Shutdown requested", file=sys.stderr)
        return EXIT_OK
    finally:
        flush_all_loggers()
        shutdown_logging()


if __name__ == "__main__":
    sys.exit(main())
