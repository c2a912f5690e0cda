"""
Centralized error reporting for nodeboot.

Turns exceptions into operator-facing messages and exit codes.
"""

from typing import Optional

from nodeboot.errors.exceptions import (
    ConfigError,
    LifecycleError,
    NetworkError,
    NodebootError,
    UnknownCommandError,
    ValidationError,
)

EXIT_SUCCESS = 0
EXIT_FAILURE = 1

# User-friendly message templates, most specific class first
ERROR_MESSAGES: list[tuple[type[NodebootError], str]] = [
    (ValidationError, "Invalid value: {message}"),
    (ConfigError, "Configuration error: {message}"),
    (NetworkError, "Connection error: {message}"),
    (UnknownCommandError, "{message}"),
    (LifecycleError, "Lifecycle error: {message}"),
]


def error_to_user_message(error: Exception) -> str:
    """
    Build the message shown to the operator for an error.

    Args:
        error: The exception to describe

    Returns:
        A single message, followed by the suggestion when one is attached
    """
    if not isinstance(error, NodebootError):
        return f"Unexpected error: {error}"

    template = "{message}"
    for error_class, candidate in ERROR_MESSAGES:
        if isinstance(error, error_class):
            template = candidate
            break

    text = template.format(message=error.message)
    if error.suggestion:
        text = f"{text}\n{error.suggestion}"
    return text


def get_error_code(error: Exception) -> Optional[str]:
    """Return the error code attached to an error, if any."""
    if isinstance(error, NodebootError):
        return error.error_code
    return None


def exit_code_for(error: Optional[Exception]) -> int:
    """Every reported error maps to the same non-zero exit code."""
    return EXIT_SUCCESS if error is None else EXIT_FAILURE
