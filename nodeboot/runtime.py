"""
The node runtime seen from the orchestrator.

The runtime itself (consensus, storage, networking, control endpoint) lives
outside this package. nodeboot only constructs it from an import string and
calls run()/stop().
"""

import importlib
import threading
from abc import ABC, abstractmethod
from typing import Callable

from nodeboot.config.models import EffectiveConfig
from nodeboot.errors import ErrorCodes, LifecycleError
from nodeboot.logging import LoggingContext


class NodeRuntime(ABC):
    """A node runtime: run() blocks until stop() is called."""

    @abstractmethod
    def run(self) -> None:
        """Run until stopped."""

    @abstractmethod
    def stop(self) -> None:
        """Ask a running runtime to return from run()."""


RuntimeFactory = Callable[[EffectiveConfig, LoggingContext], NodeRuntime]


class StandbyRuntime(NodeRuntime):
    """
    Runtime that holds the process until it is stopped.

    Used when no node implementation is configured through NODEBOOT_RUNTIME.
    """

    def __init__(self, config: EffectiveConfig, log: LoggingContext) -> None:
        self._config = config
        self._logger = log.get_logger(__name__)
        self._stopped = threading.Event()

    def run(self) -> None:
        self._logger.info(
            f"Node standing by (p2p {self._config.p2p_bind_ip}:{self._config.p2p_bind_port}, "
            f"control {self._config.rpc_bind_ip}:{self._config.rpc_bind_port})"
        )
        # Short waits keep KeyboardInterrupt responsive on every platform
        while not self._stopped.wait(timeout=1.0):
            pass
        self._logger.info("Node stopped")

    def stop(self) -> None:
        self._stopped.set()


def load_runtime_factory(import_path: str) -> RuntimeFactory:
    """
    Import a runtime factory from a ``module:attribute`` string.

    Raises:
        LifecycleError: If the string is malformed or the attribute cannot be loaded
    """
    module_name, _, attribute = import_path.partition(":")
    if not module_name or not attribute:
        raise LifecycleError(
            message=f"Invalid runtime '{import_path}', expected 'module:attribute'",
            error_code=ErrorCodes.LIFE_RUNTIME_LOAD_FAILED,
            details={"runtime": import_path},
        )

    try:
        module = importlib.import_module(module_name)
        factory = getattr(module, attribute)
    except (ImportError, AttributeError) as e:
        raise LifecycleError(
            message=f"Cannot load node runtime '{import_path}': {e}",
            error_code=ErrorCodes.LIFE_RUNTIME_LOAD_FAILED,
            details={"runtime": import_path},
        ) from e

    if not callable(factory):
        raise LifecycleError(
            message=f"Node runtime '{import_path}' is not callable",
            error_code=ErrorCodes.LIFE_RUNTIME_LOAD_FAILED,
            details={"runtime": import_path},
        )
    return factory
