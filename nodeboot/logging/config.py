"""
Logging configuration for nodeboot.

This module handles the process-wide logging setup:
- Console and rotating file handlers
- Integer verbosity levels bounded by LOG_LEVEL_MIN and LOG_LEVEL_MAX
- A LoggingContext handle returned by init_logging() and passed to the
  components that log
"""

import logging
import logging.handlers
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

ROOT_LOGGER_NAME = "nodeboot"

# Verbosity levels accepted by --log-level
LOG_LEVEL_SILENT = -1
LOG_LEVEL_0 = 0
LOG_LEVEL_1 = 1
LOG_LEVEL_4 = 4
LOG_LEVEL_MIN = LOG_LEVEL_SILENT
LOG_LEVEL_MAX = LOG_LEVEL_4

# Levels finer than DEBUG used by verbosity 2..4
_TRACE_LEVEL_NAMES = {
    logging.DEBUG - 1: "TRACE",
    logging.DEBUG - 2: "TRACE2",
    logging.DEBUG - 3: "TRACE3",
}
for _level, _name in _TRACE_LEVEL_NAMES.items():
    logging.addLevelName(_level, _name)

_MAX_FILE_SIZE_MB = 10
_BACKUP_COUNT = 5

# Detailed format for the log file
_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(module)s.%(funcName)s:%(lineno)d | %(message)s"

# Simplified format for the console
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"

_LOG_COLORS = {
    "DEBUG": "\033[94m",  # Blue
    "INFO": "\033[92m",  # Green
    "WARNING": "\033[93m",  # Yellow
    "ERROR": "\033[91m",  # Red
    "CRITICAL": "\033[91m\033[1m",  # Bold Red
    "RESET": "\033[0m",
}


class ColorFormatter(logging.Formatter):
    """Formatter that adds colors to log levels for console output."""

    def format(self, record):
        levelname = record.levelname
        if levelname in _LOG_COLORS:
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = (
                f"{_LOG_COLORS[levelname]}{levelname}{_LOG_COLORS['RESET']}"
            )
        return super().format(record)


def get_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Loggers named ``nodeboot.*`` write to the sinks installed by
    init_logging(). Messages emitted before init_logging() only reach
    Python's last-resort handler.

    Args:
        name: Logger name, typically __name__ of the calling module
    """
    return logging.getLogger(name)


def to_logging_level(level: int) -> int:
    """
    Map a verbosity level to a stdlib logging level.

    -1 silences everything, 0 logs INFO, 1 logs DEBUG and 2..4 enable
    progressively finer trace levels.
    """
    if level <= LOG_LEVEL_SILENT:
        return logging.CRITICAL + 10
    if level == LOG_LEVEL_0:
        return logging.INFO
    return logging.DEBUG - (level - LOG_LEVEL_1)


@dataclass(frozen=True)
class LogSinks:
    """
    The set of active log destinations.

    Attributes:
        file_path: Log file that always receives output
        console: Whether to also log to the attached terminal
    """

    file_path: Path
    console: bool = False


class LoggingContext:
    """
    Handle on the configured logging system.

    Created only by init_logging(). Components receive it explicitly rather
    than reaching for module-level state.
    """

    def __init__(
        self,
        logger: logging.Logger,
        sinks: LogSinks,
        handlers: list[logging.Handler],
    ) -> None:
        self._logger = logger
        self._sinks = sinks
        self._handlers = handlers
        self._level = LOG_LEVEL_0
        self._logger.setLevel(to_logging_level(LOG_LEVEL_0))

    @property
    def level(self) -> int:
        """Current verbosity level."""
        return self._level

    @property
    def sinks(self) -> LogSinks:
        return self._sinks

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    def get_logger(self, name: Optional[str] = None) -> logging.Logger:
        """Return the root nodeboot logger or one of its children."""
        if not name:
            return self._logger
        if name == ROOT_LOGGER_NAME or name.startswith(f"{ROOT_LOGGER_NAME}."):
            return logging.getLogger(name)
        return self._logger.getChild(name)

    def set_level(self, level: int) -> bool:
        """
        Change the verbosity level.

        An out-of-range level is reported as a warning and leaves the
        current level untouched.

        Args:
            level: Requested verbosity level

        Returns:
            True if the level is valid, False otherwise
        """
        if level < LOG_LEVEL_MIN or level > LOG_LEVEL_MAX:
            self._logger.warning(f"Wrong log level value: {level}")
            return False

        if level != self._level:
            self._level = level
            self._logger.setLevel(to_logging_level(level))
            self._logger.info(f"Log level set to {level}")
        return True

    def close(self) -> None:
        """Detach and close every handler installed by init_logging()."""
        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.close()
        self._handlers = []


def _create_file_handler(file_path: Path) -> logging.Handler:
    file_handler = logging.handlers.RotatingFileHandler(
        filename=file_path,
        maxBytes=_MAX_FILE_SIZE_MB * 1024 * 1024,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
    return file_handler


def _create_console_handler() -> logging.Handler:
    console_handler = logging.StreamHandler(sys.stdout)
    if getattr(sys.stdout, "isatty", lambda: False)():
        console_handler.setFormatter(ColorFormatter(_CONSOLE_FORMAT))
    else:
        console_handler.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
    return console_handler


def init_logging(sinks: LogSinks, level: int = LOG_LEVEL_0) -> LoggingContext:
    """
    Configure the nodeboot logger with the given sinks.

    Logging starts at LOG_LEVEL_0 and is then moved to ``level``; an invalid
    ``level`` is reported through the freshly installed sinks.

    Args:
        sinks: Destinations to activate
        level: Requested verbosity level

    Returns:
        The LoggingContext handle
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)

    # Clear any existing handlers to avoid duplicates if reconfigured
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()

    handlers: list[logging.Handler] = [_create_file_handler(sinks.file_path)]
    if sinks.console:
        handlers.append(_create_console_handler())

    for handler in handlers:
        logger.addHandler(handler)

    context = LoggingContext(logger, sinks, handlers)
    logger.debug(
        f"Logging initialized (file: {sinks.file_path}, console: {sinks.console})"
    )
    context.set_level(level)
    return context
