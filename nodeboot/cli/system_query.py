"""Static system information printed by --version and --os-version."""

import platform
from typing import Iterable

from nodeboot.version import PROJECT_NAME, __version__


def describe(queries: Iterable[str]) -> list[str]:
    """Return one output line per requested query, in registry order."""
    lines = []
    for query in queries:
        if query == "version":
            lines.append(f"{PROJECT_NAME} v{__version__}")
        elif query == "os-version":
            lines.append(f"OS: {platform.platform()}")
    return lines
