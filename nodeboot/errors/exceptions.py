"""
Exception hierarchy for nodeboot.

Every failure the orchestrator can report to an operator is one of the
classes below. The entry point catches ``NodebootError`` and maps it to a
non-zero exit code; anything else is treated as an unexpected crash.
"""

from typing import Any, Optional


class NodebootError(Exception):
    """
    Base exception class for all nodeboot errors.

    Attributes:
        message: Human-readable error message naming the failing resource
        error_code: Optional error code from ``ErrorCodes``
        details: Optional dictionary with additional error details
        suggestion: Optional hint on how to fix the problem
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestion = suggestion
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Serialize the error for structured logging."""
        result: dict[str, Any] = {
            "type": type(self).__name__,
            "message": self.message,
        }
        if self.error_code:
            result["error_code"] = self.error_code
        if self.details:
            result["details"] = self.details
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result


class ValidationError(NodebootError):
    """
    Raised when a locally supplied value is malformed.

    Covers unparseable control addresses, empty forwarded commands and
    out-of-range values. No side effect has been attempted when this is
    raised.

    Examples:
        >>> raise ValidationError(
        ...     message="Invalid IP: abc",
        ...     error_code="VAL-InvalidHost",
        ...     details={"host": "abc"},
        ... )
    """

    pass


class ConfigError(NodebootError):
    """
    Raised when the effective configuration cannot be built.

    Fatal: the process does not proceed to any mode.
    """

    pass


class ConfigFileError(ConfigError):
    """Raised when the configuration file cannot be read or parsed."""

    pass


class NetworkError(NodebootError):
    """Raised when the control endpoint is unreachable or misbehaves."""

    pass


class UnknownCommandError(NodebootError):
    """Raised when a running instance does not recognize a forwarded command."""

    pass


class LifecycleError(NodebootError):
    """
    Raised when a process lifecycle transition fails.

    Covers fork failures, service registration or start failures and
    runtime load failures. Partial service registrations are rolled back
    before this is raised.
    """

    pass
