"""
Environment-provided defaults.

These settings sit below every command-line and config-file value: they only
replace built-in defaults, never explicit options.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NodeSettings(BaseSettings):
    """
    Process-level settings read from NODEBOOT_* environment variables.

    Environment variables:
        NODEBOOT_DATA_DIR: Default data directory. Default: platform default
        NODEBOOT_CONTROL_TIMEOUT: Seconds to wait for the control endpoint. Default: 10
        NODEBOOT_SERVICE_NAME: Windows service name. Default: "Nodeboot Daemon"
        NODEBOOT_SERVICE_START_TIMEOUT: Seconds to wait for the service to run. Default: 30
        NODEBOOT_RUNTIME: Import string of the node runtime factory
    """

    data_dir: Optional[Path] = Field(
        default=None, description="Default data directory"
    )
    control_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for requests to the control endpoint",
    )
    service_name: str = Field(
        default="Nodeboot Daemon", description="Name of the Windows service"
    )
    service_start_timeout: float = Field(
        default=30.0,
        gt=0,
        description="Seconds to wait for the service to reach the running state",
    )
    runtime: str = Field(
        default="nodeboot.runtime:StandbyRuntime",
        description="module:attribute of the node runtime factory",
    )

    model_config = SettingsConfigDict(env_prefix="NODEBOOT_")


# Cache settings to avoid repeated env access
@lru_cache
def get_node_settings() -> NodeSettings:
    """Get node settings with caching."""
    return NodeSettings()


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_node_settings.cache_clear()
