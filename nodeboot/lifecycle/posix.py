"""
POSIX lifecycle: detaching is a double fork.
"""

import os
from typing import Callable, Optional

from nodeboot.cli.dispatcher import Dispatch
from nodeboot.errors import EXIT_FAILURE, EXIT_SUCCESS, ErrorCodes, LifecycleError
from nodeboot.lifecycle.base import PlatformLifecycle
from nodeboot.logging import LoggingContext
from nodeboot.runtime import RuntimeFactory


def isolate_process() -> None:
    """Drop the working directory and the terminal's standard streams."""
    os.chdir("/")
    os.umask(0o022)
    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    if devnull > 2:
        os.close(devnull)


class PosixFork(PlatformLifecycle):
    """
    Lifecycle for POSIX hosts.

    Args:
        runtime_factory: Builds the node runtime
        fork: Process fork primitive
        setsid: Session creation primitive
        exit: Immediate process exit, used by the intermediate child
        isolate: Prepares the final child once it has no terminal
    """

    def __init__(
        self,
        runtime_factory: RuntimeFactory,
        fork: Optional[Callable[[], int]] = None,
        setsid: Optional[Callable[[], None]] = None,
        exit: Callable[[int], None] = os._exit,
        isolate: Callable[[], None] = isolate_process,
    ) -> None:
        super().__init__(runtime_factory)
        self._fork = fork or os.fork
        self._setsid = setsid or os.setsid
        self._exit = exit
        self._isolate = isolate

    def detach(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """
        Fork into the background.

        The original process returns EXIT_SUCCESS without starting the node.
        The child starts a new session and forks again so the daemon can never
        reacquire a terminal; only the grandchild runs the node. A child that
        cannot detach exits with EXIT_FAILURE instead of raising.
        """
        config = dispatch.require_config()
        logger = log.get_logger(__name__)

        try:
            pid = self._fork()
        except OSError as e:
            raise LifecycleError(
                message=f"Cannot fork daemon process: {e}",
                error_code=ErrorCodes.LIFE_FORK_FAILED,
            ) from e

        if pid > 0:
            logger.debug(f"Forked daemon process {pid}")
            return EXIT_SUCCESS

        try:
            self._setsid()
            if self._fork() > 0:
                self._exit(EXIT_SUCCESS)
                return EXIT_SUCCESS
        except OSError as e:
            # The original process has already returned EXIT_SUCCESS
            logger.error(f"Cannot detach daemon process: {e}")
            self._exit(EXIT_FAILURE)
            return EXIT_FAILURE

        self._isolate()
        logger.info(f"Daemon running with pid {os.getpid()}")
        return self.run_node(config, log)

    def run_as_service(self, dispatch: Dispatch, log: LoggingContext) -> int:
        raise LifecycleError(
            message="Running as a Windows service is not supported on this platform",
            error_code=ErrorCodes.LIFE_UNSUPPORTED_MODE,
            details={"mode": dispatch.mode.value},
            suggestion="Use --detach to run in the background",
        )
