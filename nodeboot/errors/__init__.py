"""
Error handling framework for nodeboot.

This module provides the exception hierarchy, the error code registry and
helpers that turn errors into operator-facing messages and exit codes.
"""

from nodeboot.errors.error_codes import ErrorCodes
from nodeboot.errors.exceptions import (
    ConfigError,
    ConfigFileError,
    LifecycleError,
    NetworkError,
    NodebootError,
    UnknownCommandError,
    ValidationError,
)
from nodeboot.errors.handler import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    error_to_user_message,
    exit_code_for,
    get_error_code,
)

__all__ = [
    # Base exception
    "NodebootError",
    # Exception hierarchy
    "ValidationError",
    "ConfigError",
    "ConfigFileError",
    "NetworkError",
    "UnknownCommandError",
    "LifecycleError",
    # Codes
    "ErrorCodes",
    # Reporting
    "EXIT_SUCCESS",
    "EXIT_FAILURE",
    "error_to_user_message",
    "exit_code_for",
    "get_error_code",
]
