"""
Category logging for the signal engine.

Every module logs through one of four category loggers instead of its own
``__name__`` logger, so a run produces four focused files:

    system  startup, config, CLI, composition root
    data    bar buffers, series registry, CSV input
    signal  indicator gateway, rule engines, emitted signals
    perf    replay timing

Records are written as JSON lines (or plain text) stamped with the current
cycle ID from ``trace_context``, which ties every line to the market event
being processed. File writes go through a QueueHandler/QueueListener pair
per category so the evaluation path never blocks on disk.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
import os
import re
import json
from queue import Queue
from pathlib import Path
from typing import Optional, Dict, List, Mapping
from datetime import datetime
from zoneinfo import ZoneInfo

from .trace_context import get_cycle_id

LOGGER_PREFIX = "tastream"

CATEGORIES = ["system", "data", "signal", "perf"]

# Short file-name tag per category
CATEGORY_SUFFIXES = {
    "system": "sys",
    "data": "dat",
    "signal": "sig",
    "perf": "prf",
}

# First matching prefix wins, so list sub-packages before their parents
MODULE_ROUTING: List[tuple[str, str]] = [
    ("src.domain.bars", "data"),
    ("src.application.replay", "data"),
    ("src.domain.indicators", "signal"),
    ("src.domain.rules", "signal"),
    ("src.domain.engine", "signal"),
    ("src.domain.signals", "signal"),
    ("src.application", "system"),
    ("src", "system"),
]

# Process-wide logging state, set once by setup_category_logging / the CLI
_session_run_number: Optional[int] = None
_log_timezone: Optional[ZoneInfo] = None
_verbose_mode: bool = False
_log_level_override: Optional[str] = None
_category_loggers: Dict[str, logging.Logger] = {}
_queue_listeners: List[logging.handlers.QueueListener] = []


def get_category_for_module(module_name: str) -> str:
    """Category for a dotted module path; unknown modules log as "system"."""
    for prefix, category in MODULE_ROUTING:
        if module_name.startswith(prefix):
            return category
    return "system"


def get_logger(module_name: str) -> logging.Logger:
    """
    Category logger for a module.

    Example:
        logger = get_logger(__name__)   # src.domain.engine.* -> tastream.signal
        logger.info("Bound rules", extra={"data": {"asset": "AAPL"}})
    """
    return logging.getLogger(f"{LOGGER_PREFIX}.{get_category_for_module(module_name)}")


def get_category_logger(category: str) -> logging.Logger:
    """Logger for an explicit category (e.g. "perf" for timing diagnostics)."""
    if category not in CATEGORIES:
        raise ValueError(f"Unknown log category: {category}. Available: {CATEGORIES}")
    return logging.getLogger(f"{LOGGER_PREFIX}.{category}")


# =============================================================================
# Global switches
# =============================================================================

def set_log_timezone(tz: Optional[str] = None) -> None:
    """Timezone for record timestamps; None or "local" means system local time."""
    global _log_timezone
    _log_timezone = None if tz is None or tz == "local" else ZoneInfo(tz)


def get_current_timestamp() -> str:
    return datetime.now(_log_timezone).isoformat()


def set_verbose_mode(enabled: bool) -> None:
    """Verbose forces DEBUG everywhere and echoes DEBUG to the console."""
    global _verbose_mode
    _verbose_mode = enabled


def set_log_level_override(level: Optional[str]) -> None:
    global _log_level_override
    _log_level_override = level.upper() if level else None


def get_effective_log_level() -> str:
    if _verbose_mode:
        return "DEBUG"
    return _log_level_override or "INFO"


def _category_level(category: str, overrides: Mapping[str, str]) -> int:
    """Per-category override unless verbose mode is on."""
    name = get_effective_log_level()
    if not _verbose_mode and category in overrides:
        name = str(overrides[category]).upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level {name!r} for category {category}")
    return level


# =============================================================================
# Formatters
# =============================================================================

class JSONFormatter(logging.Formatter):
    """
    One JSON object per line.

    Keys: ts, level, cat, cycle, msg, plus ``data`` (from ``extra``) and
    ``exception`` when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": get_current_timestamp(),
            "level": record.levelname,
            "cat": self._category(record.name),
            "cycle": getattr(record, "cycle", None) or get_cycle_id(),
            "msg": record.getMessage(),
        }
        data = getattr(record, "data", None)
        if data:
            entry["data"] = data
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    @staticmethod
    def _category(logger_name: str) -> str:
        parts = logger_name.split(".")
        if len(parts) >= 2 and parts[0] == LOGGER_PREFIX and parts[1] in CATEGORIES:
            return parts[1]
        return "system"


class ConsoleFormatter(logging.Formatter):
    """``[LEVEL   ] [cycle] [cat] message``, colored when writing to a TTY."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_colors: bool = True):
        super().__init__()
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        cycle = getattr(record, "cycle", None) or get_cycle_id()
        category = record.name.rsplit(".", 1)[-1]
        level = f"[{record.levelname:8}]"
        if self.use_colors:
            level = f"{self.COLORS.get(record.levelname, '')}{level}{self.RESET}"
        return f"{level} [{cycle}] [{category}] {record.getMessage()}"


class CycleQueueHandler(logging.handlers.QueueHandler):
    """QueueHandler that captures the cycle ID before the record changes threads."""

    def prepare(self, record: logging.LogRecord) -> logging.LogRecord:
        record.cycle = get_cycle_id()
        return super().prepare(record)


# =============================================================================
# Run numbering
# =============================================================================

def _get_next_run_number(log_dir: str, env: str, date_str: str) -> int:
    """1 + highest run number among today's files for ``env``."""
    day_dir = Path(log_dir) / date_str
    if not day_dir.exists():
        return 1

    suffixes = "|".join(CATEGORY_SUFFIXES.values())
    pattern = re.compile(
        rf"^{LOGGER_PREFIX}_{re.escape(env)}_(?:{suffixes})_{re.escape(date_str)}_(\d+)\.log$"
    )
    runs = [int(m.group(1)) for m in map(pattern.match, os.listdir(day_dir)) if m]
    return max(runs, default=0) + 1


def _get_session_run_number(log_dir: str, env: str) -> int:
    """Run number fixed at the first setup of the process."""
    global _session_run_number
    if _session_run_number is None:
        _session_run_number = _get_next_run_number(log_dir, env, datetime.now().strftime("%Y-%m-%d"))
    return _session_run_number


def reset_session_run_number() -> None:
    """Forget the session run number (tests)."""
    global _session_run_number
    _session_run_number = None


# =============================================================================
# Setup / teardown
# =============================================================================

def setup_category_logging(
    env: str,
    log_dir: str = "./logs",
    level: str = "INFO",
    console: bool = False,
    verbose: bool = False,
    json_files: bool = True,
    category_levels: Optional[Mapping[str, str]] = None,
) -> Dict[str, logging.Logger]:
    """
    Attach one file per category under ``{log_dir}/{date}/``.

    Files are named ``tastream_{env}_{sys|dat|sig|prf}_{date}_{run}.log``;
    the run number increments per process so reruns never append to an
    earlier run's files. Calling this again replaces previous handlers.

    Args:
        env: Environment name (dev/prod), part of the file name.
        log_dir: Base log directory.
        level: Default level for every category.
        console: Echo WARNING and above (DEBUG if verbose) to stderr.
        verbose: Force DEBUG for every category.
        json_files: JSON lines if True, plain text otherwise.
        category_levels: Per-category level overrides, e.g. {"signal": "DEBUG"}.

    Returns:
        Category name to configured logger.

    Raises:
        ValueError: Unknown category or level in ``category_levels``.
    """
    overrides = dict(category_levels or {})
    unknown = sorted(set(overrides) - set(CATEGORIES))
    if unknown:
        raise ValueError(f"Unknown log categories {unknown}. Available: {CATEGORIES}")

    shutdown_logging()
    _detach_handlers()

    set_verbose_mode(verbose)
    if not verbose:
        set_log_level_override(level)

    levels = {category: _category_level(category, overrides) for category in CATEGORIES}

    date_str = datetime.now().strftime("%Y-%m-%d")
    day_dir = Path(log_dir) / date_str
    day_dir.mkdir(parents=True, exist_ok=True)
    run_number = _get_session_run_number(log_dir, env)

    for category in CATEGORIES:
        category_level = levels[category]
        logger = logging.getLogger(f"{LOGGER_PREFIX}.{category}")
        logger.setLevel(category_level)
        logger.propagate = False

        path = day_dir / f"{LOGGER_PREFIX}_{env}_{CATEGORY_SUFFIXES[category]}_{date_str}_{run_number}.log"
        file_handler = logging.FileHandler(str(path), mode="a", encoding="utf-8")
        file_handler.setLevel(category_level)
        file_handler.setFormatter(
            JSONFormatter() if json_files
            else logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S")
        )

        log_queue: Queue = Queue(-1)
        logger.addHandler(CycleQueueHandler(log_queue))
        listener = logging.handlers.QueueListener(log_queue, file_handler, respect_handler_level=True)
        listener.start()
        _queue_listeners.append(listener)

        if console:
            console_handler = logging.StreamHandler(sys.stderr)
            console_handler.setFormatter(ConsoleFormatter(use_colors=sys.stderr.isatty()))
            console_handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
            logger.addHandler(console_handler)

        _category_loggers[category] = logger

    return dict(_category_loggers)


def _detach_handlers() -> None:
    for category in CATEGORIES:
        logger = logging.getLogger(f"{LOGGER_PREFIX}.{category}")
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)


def flush_all_loggers() -> None:
    """Flush file handlers behind the queues and any direct handlers."""
    for listener in _queue_listeners:
        for handler in listener.handlers:
            handler.flush()
    for logger in _category_loggers.values():
        for handler in logger.handlers:
            handler.flush()


def shutdown_logging() -> None:
    """Stop queue listeners, draining pending records to disk."""
    for listener in _queue_listeners:
        listener.stop()
        for handler in listener.handlers:
            handler.close()
    _queue_listeners.clear()
