"""
Logging system for nodeboot.

This module provides the centralized logging configuration with a rotating
file sink, an optional console sink and bounded integer verbosity levels.
"""

from nodeboot.logging.config import (
    LOG_LEVEL_0,
    LOG_LEVEL_MAX,
    LOG_LEVEL_MIN,
    LoggingContext,
    LogSinks,
    get_logger,
    init_logging,
    to_logging_level,
)
from nodeboot.logging.initializer import (
    build_sinks,
    initialize_logging,
    resolve_log_path,
)

__all__ = [
    # Configuration
    "init_logging",
    "get_logger",
    "to_logging_level",
    "LoggingContext",
    "LogSinks",
    "LOG_LEVEL_0",
    "LOG_LEVEL_MIN",
    "LOG_LEVEL_MAX",
    # Destination selection
    "build_sinks",
    "initialize_logging",
    "resolve_log_path",
]
