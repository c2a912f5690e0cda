"""
Configuration resolution.

Layers option defaults, configuration file values and command-line values
into one EffectiveConfig, in strictly increasing precedence.
"""

from pathlib import Path
from typing import Any, Optional

import yaml  # type: ignore[import-untyped]
from pydantic import ValidationError as PydanticValidationError

from nodeboot.cli.invocation import RawInvocation
from nodeboot.config.models import ConfigFileValues, EffectiveConfig, ValueSource
from nodeboot.config.options import (
    OPTIONS,
    OptionGroup,
    OptionType,
    get_option,
    is_known_option,
)
from nodeboot.config.paths import default_data_dir, resolve_against
from nodeboot.config.settings import NodeSettings, get_node_settings
from nodeboot.errors import ConfigError, ConfigFileError, ErrorCodes
from nodeboot.logging import get_logger

logger = get_logger(__name__)


def load_config_file(config_path: Path) -> dict[str, Any]:
    """
    Read a flat configuration file.

    The file is a YAML mapping from option names to scalar values (or a
    list for list options). An empty file yields an empty mapping.

    Args:
        config_path: Absolute path of an existing configuration file

    Returns:
        Raw values keyed by option name, with types checked

    Raises:
        ConfigFileError: If the file cannot be read or is not valid YAML
        ConfigError: If a key is unknown or a value has the wrong type
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except OSError as e:
        raise ConfigFileError(
            message=f"Cannot read configuration file {config_path}: {e}",
            error_code=ErrorCodes.CONF_FILE_UNREADABLE,
            details={"file_path": str(config_path)},
        ) from e
    except yaml.YAMLError as e:
        raise ConfigFileError(
            message=f"Invalid syntax in configuration file {config_path}: {e}",
            error_code=ErrorCodes.CONF_INVALID_SYNTAX,
            details={"file_path": str(config_path)},
            suggestion="The configuration file must contain 'option-name: value' lines",
        ) from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ConfigFileError(
            message=f"Configuration file {config_path} must contain a mapping of option names to values",
            error_code=ErrorCodes.CONF_INVALID_STRUCTURE,
            details={"file_path": str(config_path), "found": type(document).__name__},
        )

    raw: dict[str, Any] = {}
    for key, value in document.items():
        name = str(key)
        if not is_known_option(name):
            raise ConfigError(
                message=f"Unknown option '{name}' in configuration file {config_path}",
                error_code=ErrorCodes.CONF_UNKNOWN_OPTION,
                details={"file_path": str(config_path), "option": name},
            )
        option = get_option(name)
        if option.group is not OptionGroup.SETTINGS:
            raise ConfigError(
                message=f"Option '{name}' cannot be set in configuration file {config_path}",
                error_code=ErrorCodes.CONF_UNKNOWN_OPTION,
                details={"file_path": str(config_path), "option": name},
                suggestion=f"Pass {option.flag} on the command line instead",
            )
        if value is None:
            raise ConfigError(
                message=f"Missing value for '{name}' in configuration file {config_path}",
                error_code=ErrorCodes.CONF_INVALID_VALUE,
                details={"file_path": str(config_path), "option": name},
                suggestion=f"Give '{name}' a value or remove the line",
            )
        if option.type is OptionType.STRING_LIST and not isinstance(value, list):
            value = [value]
        raw[name] = value

    try:
        values = ConfigFileValues.model_validate(raw)
    except PydanticValidationError as e:
        failing = ", ".join(
            str(error["loc"][0]) for error in e.errors() if error.get("loc")
        )
        raise ConfigError(
            message=f"Invalid value for {failing} in configuration file {config_path}",
            error_code=ErrorCodes.CONF_INVALID_VALUE,
            details={"file_path": str(config_path), "errors": e.errors()},
        ) from e

    return {
        name: getattr(values, get_option(name).field_name) for name in raw
    }


class ConfigResolver:
    """Builds the EffectiveConfig for one process start."""

    def __init__(self, settings: Optional[NodeSettings] = None) -> None:
        self._settings = settings

    @property
    def settings(self) -> NodeSettings:
        return self._settings or get_node_settings()

    def resolve_data_dir(self, invocation: RawInvocation) -> Path:
        """
        Pick the data directory and make it absolute.

        Command line first, then NODEBOOT_DATA_DIR, then the platform default.
        """
        if invocation.is_set("data-dir"):
            data_dir = Path(invocation.get("data-dir")).expanduser()
        elif self.settings.data_dir is not None:
            data_dir = Path(self.settings.data_dir).expanduser()
        else:
            data_dir = default_data_dir()
        return data_dir.absolute()

    def resolve(
        self, invocation: RawInvocation, create_data_dir: bool = True
    ) -> EffectiveConfig:
        """
        Produce the effective configuration.

        Args:
            invocation: Parsed command line
            create_data_dir: Create the data directory if it is missing

        Returns:
            The frozen EffectiveConfig

        Raises:
            ConfigError: On an unusable data directory or a bad configuration file
        """
        data_dir = self.resolve_data_dir(invocation)
        if create_data_dir:
            ensure_directory(data_dir)

        values: dict[str, Any] = {}
        sources: dict[str, ValueSource] = {}
        for option in OPTIONS:
            if option.default is not None:
                values[option.name] = option.default
                sources[option.name] = ValueSource.DEFAULT

        config_file = invocation.get("config-file", get_option("config-file").default)
        config_path = resolve_against(data_dir, config_file)

        config_file_loaded = config_path.exists()
        if config_file_loaded:
            logger.debug(f"Loading configuration file {config_path}")
            for name, value in load_config_file(config_path).items():
                values[name] = value
                sources[name] = ValueSource.FILE
        else:
            logger.debug(f"No configuration file at {config_path}")

        for name, value in invocation.named.items():
            values[name] = value
            sources[name] = ValueSource.COMMAND_LINE

        if invocation.command:
            sources["daemon-command"] = ValueSource.COMMAND_LINE

        return EffectiveConfig(
            data_dir=data_dir,
            config_file=config_path,
            config_file_loaded=config_file_loaded,
            log_file=resolve_against(data_dir, values["log-file"]),
            log_level=values["log-level"],
            detach=bool(values.get("detach", False)),
            run_as_service=bool(values.get("run-as-service", False)),
            rpc_bind_ip=values["rpc-bind-ip"],
            rpc_bind_port=values["rpc-bind-port"],
            p2p_bind_ip=values["p2p-bind-ip"],
            p2p_bind_port=values["p2p-bind-port"],
            add_peer=tuple(values["add-peer"]),
            daemon_command=invocation.command,
            sources=sources,
        )


def ensure_directory(path: Path) -> None:
    """Create a directory if needed; safe to call when it already exists."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ConfigError(
            message=f"Cannot create data directory {path}: {e}",
            error_code=ErrorCodes.CONF_DATA_DIR_FAILED,
            details={"data_dir": str(path)},
        ) from e
