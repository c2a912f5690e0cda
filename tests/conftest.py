"""
Global test fixtures for nodeboot.

Every test runs with NODEBOOT_* variables cleared, a temporary home
directory and a fresh nodeboot logger.
"""

import logging
from pathlib import Path

import pytest

from nodeboot.cli.invocation import parse_invocation
from nodeboot.config import clear_settings_cache
from nodeboot.config.resolver import ConfigResolver

_ENV_VARS = (
    "NODEBOOT_DATA_DIR",
    "NODEBOOT_CONTROL_TIMEOUT",
    "NODEBOOT_SERVICE_NAME",
    "NODEBOOT_SERVICE_START_TIMEOUT",
    "NODEBOOT_RUNTIME",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """Keep tests away from the real environment and home directory."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("APPDATA", str(home / "AppData"))
    clear_settings_cache()
    yield home
    clear_settings_cache()


@pytest.fixture(autouse=True)
def reset_logger():
    """Remove handlers installed by init_logging()."""
    yield
    logger = logging.getLogger("nodeboot")
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Existing, empty data directory."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def resolve():
    """Parse argv and resolve it into (invocation, config)."""

    def _resolve(*argv: str):
        invocation = parse_invocation(list(argv))
        return invocation, ConfigResolver().resolve(invocation)

    return _resolve
