"""
nodeboot - bootstrap orchestrator for a long-running node process.

Resolves the configuration of one process start, selects its execution mode
and carries out the matching process lifecycle transition.
"""

from nodeboot.version import __version__

__all__ = ["__version__"]
