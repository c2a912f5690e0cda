"""
Version management for nodeboot.

The version comes from the installed distribution metadata. In a source
checkout that is not installed, it is read from pyproject.toml instead.
"""

from importlib.metadata import PackageNotFoundError, version
from pathlib import Path

import tomli

PROJECT_NAME = "nodeboot"
PYPROJECT_PATH = Path(__file__).resolve().parent.parent / "pyproject.toml"
_FALLBACK_VERSION = "0.0.0"


def get_version_from_pyproject() -> str:
    """
    Read the version string from pyproject.toml.

    Returns:
        The project version, or a placeholder if the file is missing or invalid
    """
    try:
        with open(PYPROJECT_PATH, "rb") as f:
            pyproject_data = tomli.load(f)
        return pyproject_data["project"]["version"]
    except FileNotFoundError:
        return _FALLBACK_VERSION
    except (KeyError, tomli.TOMLDecodeError):
        return _FALLBACK_VERSION


def get_version() -> str:
    """Get the current version of the nodeboot package."""
    try:
        return version(PROJECT_NAME)
    except PackageNotFoundError:
        return get_version_from_pyproject()


__version__ = get_version()
