"""
Platform default locations and data-directory relative path handling.
"""

import os
import sys
import tempfile
from pathlib import Path
from typing import Union

APP_DIR_NAME = "nodeboot"
DEFAULT_CONFIG_FILE_NAME = "nodeboot.yaml"
DEFAULT_LOG_FILE_NAME = "nodeboot.log"


def default_data_dir() -> Path:
    """
    Compute the platform default data directory.

    Windows: %APPDATA%\\nodeboot
    macOS: ~/Library/Application Support/nodeboot
    Other: ~/.nodeboot
    """
    if os.name == "nt":
        appdata = os.environ.get("APPDATA")
        base = Path(appdata) if appdata else Path.home() / "AppData" / "Roaming"
        return base / APP_DIR_NAME
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / APP_DIR_NAME
    return Path.home() / f".{APP_DIR_NAME}"


def default_log_file() -> Path:
    """Fallback log file used when the configured log directory is missing."""
    return Path(tempfile.gettempdir()) / DEFAULT_LOG_FILE_NAME


def resolve_against(base: Path, path: Union[str, Path]) -> Path:
    """
    Resolve ``path`` against ``base`` unless it is already absolute.

    The process working directory never takes part in the resolution.
    """
    candidate = Path(path).expanduser()
    if candidate.is_absolute():
        return candidate
    return base / candidate
