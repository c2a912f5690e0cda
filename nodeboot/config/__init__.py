"""
Configuration for nodeboot: option registry, environment settings and the
resolver producing the effective configuration.
"""

from nodeboot.config.models import EffectiveConfig, ValueSource
from nodeboot.config.options import (
    OPTIONS,
    OptionDefinition,
    OptionGroup,
    OptionType,
    file_options,
    get_option,
    visible_options,
)
from nodeboot.config.settings import (
    NodeSettings,
    clear_settings_cache,
    get_node_settings,
)

__all__ = [
    "EffectiveConfig",
    "ValueSource",
    "OPTIONS",
    "OptionDefinition",
    "OptionGroup",
    "OptionType",
    "file_options",
    "get_option",
    "visible_options",
    "NodeSettings",
    "clear_settings_cache",
    "get_node_settings",
]
