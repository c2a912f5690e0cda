"""
Pydantic models for the effective configuration and configuration file values.
"""

from enum import Enum
from pathlib import Path
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, create_model

from nodeboot.config.options import file_options, get_option


class ValueSource(str, Enum):
    """Where an effective value came from, lowest precedence first."""

    DEFAULT = "default"
    FILE = "file"
    COMMAND_LINE = "command-line"


class EffectiveConfig(BaseModel):
    """
    Final merged view of every configuration source for one process run.

    Paths are absolute. The model is frozen once built.
    """

    model_config = ConfigDict(frozen=True)

    data_dir: Path = Field(..., description="Absolute data directory")
    config_file: Path = Field(..., description="Absolute configuration file path")
    config_file_loaded: bool = Field(
        False, description="Whether the configuration file existed and was parsed"
    )
    log_file: Path = Field(..., description="Requested log file, absolute")
    log_level: int = Field(0, description="Requested log verbosity")
    detach: bool = Field(False, description="Run in the background")
    run_as_service: bool = Field(False, description="Running under the service manager")
    rpc_bind_ip: str = Field("127.0.0.1", description="Control endpoint host")
    rpc_bind_port: str = Field("18081", description="Control endpoint port")
    p2p_bind_ip: str = Field("0.0.0.0", description="P2P listen interface")
    p2p_bind_port: int = Field(18080, description="P2P listen port")
    add_peer: tuple[str, ...] = Field(default_factory=tuple, description="Extra peers")
    daemon_command: tuple[str, ...] = Field(
        default_factory=tuple, description="Command forwarded to a running instance"
    )
    sources: Mapping[str, ValueSource] = Field(
        default_factory=dict, description="Source of each option value"
    )

    def value(self, name: str) -> Any:
        """Return the effective value of an option by kebab-case name."""
        return getattr(self, get_option(name).field_name)

    def source_of(self, name: str) -> ValueSource:
        return self.sources.get(name, ValueSource.DEFAULT)


def _build_file_values_model() -> type[BaseModel]:
    fields: dict[str, Any] = {
        option.field_name: (
            Optional[option.python_type],
            Field(default=None, alias=option.name),
        )
        for option in file_options()
    }
    return create_model(
        "ConfigFileValues",
        __config__=ConfigDict(extra="forbid", coerce_numbers_to_str=True),
        **fields,
    )


# Validates and coerces the values read from the configuration file
ConfigFileValues = _build_file_values_model()
