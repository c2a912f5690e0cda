"""Control endpoint client."""

from nodeboot.control.client import (
    COMMAND_ENDPOINT,
    CommandResult,
    ControlAddress,
    RemoteCommandClient,
)

__all__ = [
    "COMMAND_ENDPOINT",
    "CommandResult",
    "ControlAddress",
    "RemoteCommandClient",
]
