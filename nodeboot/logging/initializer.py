"""
Log destination selection.

Logging must never prevent the daemon from starting, so an unusable log
location falls back to the platform default instead of failing.
"""

from pathlib import Path
from typing import Union

from nodeboot.config.paths import default_log_file, resolve_against
from nodeboot.logging.config import LoggingContext, LogSinks, init_logging


def resolve_log_path(log_file: Union[str, Path], data_dir: Path) -> Path:
    """
    Compute the log file location.

    Relative paths are resolved against the data directory. When the parent
    directory of the result does not exist, the platform default log file is
    used instead.

    Args:
        log_file: Requested log file
        data_dir: Absolute data directory

    Returns:
        The log file that will actually be written
    """
    candidate = resolve_against(data_dir, log_file)
    if not candidate.parent.is_dir():
        return default_log_file()
    return candidate


def build_sinks(log_file: Union[str, Path], data_dir: Path, console: bool) -> LogSinks:
    """
    Choose the log sinks.

    The file sink is always present; the console sink only when the process
    keeps its terminal (interactive mode).
    """
    return LogSinks(file_path=resolve_log_path(log_file, data_dir), console=console)


def initialize_logging(
    log_file: Union[str, Path], data_dir: Path, level: int, console: bool
) -> LoggingContext:
    """
    Activate logging for a node process.

    A log file that cannot be opened (a directory, or not writable) is
    replaced by the platform default log file.

    Args:
        log_file: Requested log file
        data_dir: Absolute data directory
        level: Requested verbosity, validated by the logging context
        console: Whether to log to the terminal

    Returns:
        The LoggingContext handle

    Raises:
        OSError: If the platform default log file cannot be opened either
    """
    requested = resolve_against(data_dir, log_file)
    sinks = build_sinks(log_file, data_dir, console)
    try:
        context = init_logging(sinks, level)
    except OSError as e:
        fallback = default_log_file()
        if sinks.file_path == fallback:
            raise
        context = init_logging(LogSinks(file_path=fallback, console=console), level)
        context.logger.warning(
            f"Cannot open log file {sinks.file_path}: {e}, logging to {fallback}"
        )
        return context

    if sinks.file_path != requested:
        context.logger.warning(
            f"Log directory {requested.parent} does not exist, logging to {sinks.file_path}"
        )
    return context
