"""
Option definitions shared by the command line, the configuration file and
the help output.

The registry is fixed at import time and never changes while the process
runs.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

import click

from nodeboot.config.paths import DEFAULT_CONFIG_FILE_NAME, DEFAULT_LOG_FILE_NAME
from nodeboot.logging.config import LOG_LEVEL_0, LOG_LEVEL_MAX, LOG_LEVEL_MIN


class OptionType(str, Enum):
    """Semantic type of an option value."""

    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    STRING_LIST = "list"


class OptionGroup(str, Enum):
    """
    Where an option may be given.

    GENERAL options are command-line only, SETTINGS options may also come
    from the configuration file, INTERNAL options are hidden from help.
    """

    GENERAL = "general"
    SETTINGS = "settings"
    INTERNAL = "internal"


_PYTHON_TYPES: dict[OptionType, Any] = {
    OptionType.STRING: str,
    OptionType.INTEGER: int,
    OptionType.BOOLEAN: bool,
    OptionType.STRING_LIST: list[str],
}

_CLICK_TYPES: dict[OptionType, click.ParamType] = {
    OptionType.STRING: click.STRING,
    OptionType.INTEGER: click.INT,
    OptionType.STRING_LIST: click.STRING,
}


@dataclass(frozen=True)
class OptionDefinition:
    """
    A named configuration setting.

    Attributes:
        name: Kebab-case option name, also the config file key
        type: Semantic value type
        help: Help text shown by --help
        default: Default value, None when computed at resolution time
        hidden: Accepted but not shown in help
        group: Where the option may be given
        positional: Collects trailing positional tokens
        short: Optional short flag such as "-h"
        default_description: Help text for defaults computed at runtime
    """

    name: str
    type: OptionType
    help: str = ""
    default: Any = None
    hidden: bool = False
    group: OptionGroup = OptionGroup.SETTINGS
    positional: bool = False
    short: Optional[str] = None
    default_description: Optional[str] = None

    @property
    def field_name(self) -> str:
        """Python identifier used for this option in models and click."""
        return self.name.replace("-", "_")

    @property
    def flag(self) -> str:
        return f"--{self.name}"

    @property
    def python_type(self) -> Any:
        return _PYTHON_TYPES[self.type]

    def to_click_parameter(self) -> click.Parameter:
        """Build the click parameter accepting this option on the command line."""
        if self.positional:
            return click.Argument(
                [self.field_name],
                nargs=-1,
                required=False,
                metavar=f"[{self.field_name.upper()}]...",
            )

        decls = [self.flag]
        if self.short:
            decls.append(self.short)

        if self.type is OptionType.BOOLEAN:
            return click.Option(
                decls, is_flag=True, default=False, help=self.help, hidden=self.hidden
            )

        show_default: Any = self.default_description or (
            self.default not in (None, ())
        )
        return click.Option(
            decls,
            type=_CLICK_TYPES[self.type],
            multiple=self.type is OptionType.STRING_LIST,
            default=self.default,
            show_default=show_default,
            help=self.help,
            hidden=self.hidden,
        )

    def render(self, value: Any) -> list[str]:
        """Turn a value back into command-line tokens."""
        if self.positional:
            return [str(item) for item in value]
        if self.type is OptionType.BOOLEAN:
            return [self.flag] if value else []
        if self.type is OptionType.STRING_LIST:
            tokens: list[str] = []
            for item in value:
                tokens.extend([self.flag, str(item)])
            return tokens
        return [self.flag, str(value)]


HELP_OPTION = "help"
SYSTEM_QUERY_OPTIONS = ("version", "os-version")
SERVICE_MARKER_OPTION = "run-as-service"
DETACH_OPTION = "detach"
COMMAND_OPTION = "daemon-command"

OPTIONS: tuple[OptionDefinition, ...] = (
    # General
    OptionDefinition(
        "help",
        OptionType.BOOLEAN,
        "Produce help message",
        group=OptionGroup.GENERAL,
        short="-h",
    ),
    OptionDefinition(
        "version",
        OptionType.BOOLEAN,
        "Output version information",
        group=OptionGroup.GENERAL,
    ),
    OptionDefinition(
        "os-version",
        OptionType.BOOLEAN,
        "Output the operating system description",
        group=OptionGroup.GENERAL,
    ),
    OptionDefinition(
        "data-dir",
        OptionType.STRING,
        "Specify data directory",
        group=OptionGroup.GENERAL,
        default_description="platform default",
    ),
    OptionDefinition(
        "config-file",
        OptionType.STRING,
        "Specify configuration file. This can either be an absolute path or "
        "a path relative to the data directory",
        default=DEFAULT_CONFIG_FILE_NAME,
        group=OptionGroup.GENERAL,
    ),
    OptionDefinition(
        "detach",
        OptionType.BOOLEAN,
        "Run as daemon",
        group=OptionGroup.GENERAL,
    ),
    # Settings
    OptionDefinition(
        "log-file",
        OptionType.STRING,
        "Specify log file. This can either be an absolute path or a path "
        "relative to the data directory",
        default=DEFAULT_LOG_FILE_NAME,
    ),
    OptionDefinition(
        "log-level",
        OptionType.INTEGER,
        f"Log verbosity ({LOG_LEVEL_MIN}-{LOG_LEVEL_MAX})",
        default=LOG_LEVEL_0,
    ),
    OptionDefinition(
        "rpc-bind-ip",
        OptionType.STRING,
        "IP address of the control endpoint",
        default="127.0.0.1",
    ),
    OptionDefinition(
        "rpc-bind-port",
        OptionType.STRING,
        "Port of the control endpoint",
        default="18081",
    ),
    OptionDefinition(
        "p2p-bind-ip",
        OptionType.STRING,
        "Interface for p2p network protocol",
        default="0.0.0.0",
    ),
    OptionDefinition(
        "p2p-bind-port",
        OptionType.INTEGER,
        "Port for p2p network protocol",
        default=18080,
    ),
    OptionDefinition(
        "add-peer",
        OptionType.STRING_LIST,
        "Manually add peer to local peerlist",
        default=(),
    ),
    # Internal
    OptionDefinition(
        SERVICE_MARKER_OPTION,
        OptionType.BOOLEAN,
        "True if running as a Windows service",
        hidden=True,
        group=OptionGroup.INTERNAL,
    ),
    OptionDefinition(
        COMMAND_OPTION,
        OptionType.STRING_LIST,
        "Command forwarded to a running instance",
        default=(),
        hidden=True,
        group=OptionGroup.INTERNAL,
        positional=True,
    ),
)

_BY_NAME = {option.name: option for option in OPTIONS}
_BY_FIELD = {option.field_name: option for option in OPTIONS}


def get_option(name: str) -> OptionDefinition:
    """Look up an option by kebab-case name or field name."""
    option = _BY_NAME.get(name) or _BY_FIELD.get(name)
    if option is None:
        raise KeyError(f"Unknown option: {name}")
    return option


def is_known_option(name: str) -> bool:
    return name in _BY_NAME


def visible_options() -> list[OptionDefinition]:
    """Options shown in help output."""
    return [option for option in OPTIONS if not option.hidden]


def file_options() -> list[OptionDefinition]:
    """Options that may be set from the configuration file."""
    return [option for option in OPTIONS if option.group is OptionGroup.SETTINGS]


def click_parameters(options: Iterable[OptionDefinition] = OPTIONS) -> list[click.Parameter]:
    return [option.to_click_parameter() for option in options]
