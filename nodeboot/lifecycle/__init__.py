"""
Process lifecycle management.

The platform variant is chosen once, from the running operating system.
"""

import os

from nodeboot.lifecycle.base import PlatformLifecycle
from nodeboot.lifecycle.posix import PosixFork
from nodeboot.lifecycle.windows import (
    ServiceLaunch,
    ServiceManager,
    Win32ServiceHost,
    WindowsServiceLifecycle,
)
from nodeboot.runtime import RuntimeFactory

PLATFORM_LIFECYCLE: type[PlatformLifecycle] = (
    WindowsServiceLifecycle if os.name == "nt" else PosixFork
)


def get_platform_lifecycle(runtime_factory: RuntimeFactory) -> PlatformLifecycle:
    """Create the lifecycle variant for this platform."""
    return PLATFORM_LIFECYCLE(runtime_factory)


__all__ = [
    "PLATFORM_LIFECYCLE",
    "PlatformLifecycle",
    "PosixFork",
    "ServiceLaunch",
    "ServiceManager",
    "Win32ServiceHost",
    "WindowsServiceLifecycle",
    "get_platform_lifecycle",
]
