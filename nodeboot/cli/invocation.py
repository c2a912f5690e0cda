"""
Command-line parsing.

Builds the click command from the option registry and turns argv into a
RawInvocation that records only the options given explicitly on the
command line, so the resolver can layer them over file values and defaults.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Optional, Sequence

import click
from click.core import ParameterSource

from nodeboot.config.options import (
    COMMAND_OPTION,
    HELP_OPTION,
    OPTIONS,
    SYSTEM_QUERY_OPTIONS,
    OptionType,
    click_parameters,
    get_option,
)

PROG_NAME = "nodeboot"


@dataclass(frozen=True)
class RawInvocation:
    """
    Parsed command line.

    Attributes:
        named: Options given explicitly on the command line, by kebab-case name
        command: Positional tokens, the command forwarded to a running instance
        argv: Tokens as given, without the program name
        prog_name: Program name used in usage output
        usage: Rendered help text derived from the visible options
    """

    named: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))
    command: tuple[str, ...] = ()
    argv: tuple[str, ...] = ()
    prog_name: str = PROG_NAME
    usage: str = ""

    def is_set(self, name: str) -> bool:
        return name in self.named

    def get(self, name: str, default: Any = None) -> Any:
        return self.named.get(name, default)

    def flag(self, name: str) -> bool:
        return bool(self.named.get(name, False))

    @property
    def help_requested(self) -> bool:
        return self.flag(HELP_OPTION)

    @property
    def system_queries(self) -> tuple[str, ...]:
        """Requested system-query flags in registry order."""
        return tuple(name for name in SYSTEM_QUERY_OPTIONS if self.flag(name))

    @property
    def informational(self) -> bool:
        """Help and system queries answer without touching the data directory."""
        return self.help_requested or bool(self.system_queries)


def _capture(argv: tuple[str, ...], prog_name: str, **values: Any) -> RawInvocation:
    ctx = click.get_current_context()
    named: dict[str, Any] = {}
    for option in OPTIONS:
        if option.positional:
            continue
        if ctx.get_parameter_source(option.field_name) is not ParameterSource.COMMANDLINE:
            continue
        value = values[option.field_name]
        if option.type is OptionType.STRING_LIST:
            value = tuple(value)
        named[option.name] = value

    command = tuple(values.get(get_option(COMMAND_OPTION).field_name) or ())
    return RawInvocation(
        named=MappingProxyType(named),
        command=command,
        argv=argv,
        prog_name=prog_name,
        usage=ctx.get_help(),
    )


def build_command(argv: Sequence[str] = (), prog_name: str = PROG_NAME) -> click.Command:
    """
    Build the click command accepting every registered option.

    Help is an ordinary flag here so it can be dispatched like any other mode.
    """
    captured_argv = tuple(argv)

    def callback(**values: Any) -> RawInvocation:
        return _capture(captured_argv, prog_name, **values)

    return click.Command(
        name=prog_name,
        params=click_parameters(),
        callback=callback,
        add_help_option=False,
        help="Start a node, or forward DAEMON_COMMAND to a running one.",
        context_settings={"max_content_width": 100},
    )


def parse_invocation(
    argv: Sequence[str], prog_name: Optional[str] = None
) -> RawInvocation:
    """
    Parse command-line tokens.

    Args:
        argv: Tokens without the program name
        prog_name: Program name for usage output

    Returns:
        The RawInvocation

    Raises:
        click.UsageError: On unknown options or malformed values
    """
    name = prog_name or PROG_NAME
    command = build_command(argv, name)
    return command.main(args=list(argv), prog_name=name, standalone_mode=False)
