"""
Process lifecycle transitions shared by every platform.

Every variant starts from the freshly started process and reaches one of the
running forms: interactive, detached, or hosted by the service manager.
Failures are raised as LifecycleError and never swallowed.
"""

from abc import ABC, abstractmethod

from nodeboot.cli.dispatcher import Dispatch, Mode
from nodeboot.config.models import EffectiveConfig
from nodeboot.errors import EXIT_SUCCESS, ErrorCodes, LifecycleError
from nodeboot.logging import LoggingContext
from nodeboot.runtime import NodeRuntime, RuntimeFactory
from nodeboot.version import PROJECT_NAME, __version__


class PlatformLifecycle(ABC):
    """
    Platform capability carrying out the selected node mode.

    Args:
        runtime_factory: Builds the node runtime from the effective configuration
    """

    def __init__(self, runtime_factory: RuntimeFactory) -> None:
        self._runtime_factory = runtime_factory

    def transition(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """
        Move the process into the running form the mode asks for.

        Returns:
            Exit code for the current process

        Raises:
            LifecycleError: If the transition fails or the mode does not start a node
        """
        if dispatch.mode is Mode.INTERACTIVE:
            return self.run_interactive(dispatch, log)
        if dispatch.mode is Mode.DETACH:
            return self.detach(dispatch, log)
        if dispatch.mode is Mode.WINDOWS_SERVICE:
            return self.run_as_service(dispatch, log)
        raise LifecycleError(
            message=f"Mode {dispatch.mode.value} does not start a node",
            error_code=ErrorCodes.LIFE_UNSUPPORTED_MODE,
            details={"mode": dispatch.mode.value},
        )

    def run_interactive(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """Run the node in the current process, attached to the console."""
        return self.run_node(dispatch.require_config(), log)

    @abstractmethod
    def detach(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """Move the node to the background."""

    @abstractmethod
    def run_as_service(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """Run the node under the host service manager."""

    def create_runtime(self, config: EffectiveConfig, log: LoggingContext) -> NodeRuntime:
        return self._runtime_factory(config, log)

    def run_node(self, config: EffectiveConfig, log: LoggingContext) -> int:
        """Start the runtime and block until it stops."""
        log.logger.info(f"{PROJECT_NAME} v{__version__}")
        runtime = self.create_runtime(config, log)
        try:
            runtime.run()
        except KeyboardInterrupt:
            log.logger.info("Interrupted, stopping node")
            runtime.stop()
        return EXIT_SUCCESS
