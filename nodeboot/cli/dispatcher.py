"""
Mode selection.

select_mode() is a pure priority chain over the parsed command line and the
effective configuration: the first matching rule wins.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from nodeboot.cli.invocation import RawInvocation
from nodeboot.config.models import EffectiveConfig
from nodeboot.config.options import DETACH_OPTION, SERVICE_MARKER_OPTION


class Mode(str, Enum):
    """Mutually exclusive execution modes."""

    HELP = "help"
    SYSTEM_QUERY = "system-query"
    REMOTE_COMMAND = "remote-command"
    WINDOWS_SERVICE = "windows-service"
    DETACH = "detach"
    INTERACTIVE = "interactive"


# Modes that start the node runtime in some form
NODE_MODES = frozenset({Mode.WINDOWS_SERVICE, Mode.DETACH, Mode.INTERACTIVE})


@dataclass(frozen=True)
class Dispatch:
    """
    The selected mode plus what is needed to carry it out.

    Attributes:
        mode: Selected mode
        invocation: Parsed command line
        config: Effective configuration, absent for Help and SystemQuery
    """

    mode: Mode
    invocation: RawInvocation
    config: Optional[EffectiveConfig] = None

    @property
    def command(self) -> tuple[str, ...]:
        return self.invocation.command

    @property
    def queries(self) -> tuple[str, ...]:
        return self.invocation.system_queries

    @property
    def usage(self) -> str:
        return self.invocation.usage

    @property
    def starts_node(self) -> bool:
        return self.mode in NODE_MODES

    @property
    def console(self) -> bool:
        """Only an interactive node keeps a terminal to log to."""
        return self.mode is Mode.INTERACTIVE

    def require_config(self) -> EffectiveConfig:
        if self.config is None:
            raise ValueError(f"Mode {self.mode.value} requires an effective configuration")
        return self.config


def select_mode(
    invocation: RawInvocation, config: Optional[EffectiveConfig] = None
) -> Dispatch:
    """
    Select exactly one mode.

    Order: help, system query, forwarded command, service marker, detach,
    interactive. Help and system queries never need the configuration; a
    forwarded command always wins over any daemonization flag.

    Args:
        invocation: Parsed command line
        config: Effective configuration, required unless help or a system
            query was requested

    Returns:
        The Dispatch for the selected mode
    """
    if invocation.help_requested:
        return Dispatch(Mode.HELP, invocation, config)

    if invocation.system_queries:
        return Dispatch(Mode.SYSTEM_QUERY, invocation, config)

    if config is None:
        raise ValueError("An effective configuration is required to select this mode")

    if invocation.command:
        return Dispatch(Mode.REMOTE_COMMAND, invocation, config)

    if config.value(SERVICE_MARKER_OPTION):
        return Dispatch(Mode.WINDOWS_SERVICE, invocation, config)

    if config.value(DETACH_OPTION):
        return Dispatch(Mode.DETACH, invocation, config)

    return Dispatch(Mode.INTERACTIVE, invocation, config)
