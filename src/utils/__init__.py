"""Logging, trace context and result helpers shared by the engine and the CLI."""

from .logging_setup import (
    setup_category_logging,
    flush_all_loggers,
    shutdown_logging,
    reset_session_run_number,
    set_log_timezone,
    get_logger,
    get_category_logger,
)
from .trace_context import (
    get_cycle_id,
    new_cycle,
)
from .result import (
    Result,
    Ok,
    Err,
)

__all__ = [
    "setup_category_logging",
    "flush_all_loggers",
    "shutdown_logging",
    "reset_session_run_number",
    "set_log_timezone",
    "get_logger",
    "get_category_logger",
    "get_cycle_id",
    "new_cycle",
    "Result",
    "Ok",
    "Err",
]
