"""
Windows lifecycle: detaching hands the node to the service manager.

Detach installs and starts a service whose command line relaunches nodeboot
in WindowsService mode, then exits. The relaunched process registers its
lifecycle callbacks with the service manager and runs the node until the
manager asks it to stop.

Service management goes through ``sc.exe``; hosting uses pywin32, imported
only when a service is actually hosted.
"""

import re
import subprocess
import sys
import time
from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from nodeboot.cli.dispatcher import Dispatch, Mode
from nodeboot.config.options import (
    COMMAND_OPTION,
    DETACH_OPTION,
    HELP_OPTION,
    OPTIONS,
    SERVICE_MARKER_OPTION,
    SYSTEM_QUERY_OPTIONS,
    get_option,
)
from nodeboot.config.settings import NodeSettings, get_node_settings
from nodeboot.errors import EXIT_SUCCESS, ErrorCodes, LifecycleError
from nodeboot.lifecycle.base import PlatformLifecycle
from nodeboot.logging import LoggingContext
from nodeboot.runtime import NodeRuntime, RuntimeFactory

# Option that selects each mode in a relaunched process
MODE_SELECTORS = {Mode.WINDOWS_SERVICE: SERVICE_MARKER_OPTION}

# Options never carried over to the relaunched process
_NOT_RELAUNCHED = frozenset(
    {HELP_OPTION, DETACH_OPTION, SERVICE_MARKER_OPTION, COMMAND_OPTION, "data-dir"}
    | set(SYSTEM_QUERY_OPTIONS)
)

_STATE_PATTERN = re.compile(r"STATE\s*:\s*\d+\s+(\w+)")


@dataclass(frozen=True)
class ServiceLaunch:
    """
    A second process launch scheduled through the service manager.

    Attributes:
        name: Service name
        program: Executable and leading arguments that start nodeboot
        arguments: Options for the relaunched process, without the mode selector
        mode: Mode the relaunched process will select
    """

    name: str
    program: tuple[str, ...]
    arguments: tuple[str, ...]
    mode: Mode = Mode.WINDOWS_SERVICE

    @classmethod
    def for_dispatch(
        cls,
        dispatch: Dispatch,
        name: str,
        program: Optional[Sequence[str]] = None,
    ) -> "ServiceLaunch":
        """
        Build the launch that continues ``dispatch`` as a service.

        Explicit command-line options are carried over; the data directory
        is passed as the absolute path already resolved, since the service
        manager starts processes in its own working directory.
        """
        config = dispatch.require_config()
        arguments = get_option("data-dir").render(str(config.data_dir))
        for option in OPTIONS:
            if option.name in _NOT_RELAUNCHED or option.positional:
                continue
            if dispatch.invocation.is_set(option.name):
                arguments.extend(option.render(dispatch.invocation.get(option.name)))

        return cls(
            name=name,
            program=tuple(program or (sys.executable, "-m", "nodeboot")),
            arguments=tuple(arguments),
        )

    @property
    def argv(self) -> list[str]:
        """Full argv of the relaunched process, mode selector included."""
        selector = get_option(MODE_SELECTORS[self.mode]).render(True)
        return [*self.program, *self.arguments, *selector]

    def command_line(self) -> str:
        return subprocess.list2cmdline(self.argv)


class ServiceManager:
    """
    Windows service control through ``sc.exe``.

    Args:
        runner: subprocess.run compatible callable
        sc_path: Path of the service control program
    """

    def __init__(
        self,
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
        sc_path: str = "sc.exe",
    ) -> None:
        self._runner = runner
        self._sc_path = sc_path

    def _sc(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self._sc_path, *args]
        try:
            return self._runner(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            raise LifecycleError(
                message=f"Cannot run {self._sc_path}: {e}",
                error_code=ErrorCodes.LIFE_SERVICE_INSTALL_FAILED,
                details={"command": cmd},
            ) from e

    @staticmethod
    def _output(result: subprocess.CompletedProcess) -> str:
        return " ".join(f"{result.stdout or ''} {result.stderr or ''}".split())

    def install(self, launch: ServiceLaunch) -> None:
        result = self._sc(
            "create",
            launch.name,
            "binPath=",
            launch.command_line(),
            "start=",
            "demand",
            "DisplayName=",
            launch.name,
        )
        if result.returncode != 0:
            raise LifecycleError(
                message=f"Cannot install service '{launch.name}': {self._output(result)}",
                error_code=ErrorCodes.LIFE_SERVICE_INSTALL_FAILED,
                details={"service": launch.name, "returncode": result.returncode},
                suggestion="Installing a service requires an elevated prompt",
            )

    def start(self, name: str) -> None:
        result = self._sc("start", name)
        if result.returncode != 0:
            raise LifecycleError(
                message=f"Cannot start service '{name}': {self._output(result)}",
                error_code=ErrorCodes.LIFE_SERVICE_START_FAILED,
                details={"service": name, "returncode": result.returncode},
            )

    def query_state(self, name: str) -> Optional[str]:
        """Current service state such as RUNNING or STOPPED, None if unknown."""
        result = self._sc("query", name)
        if result.returncode != 0:
            return None
        match = _STATE_PATTERN.search(result.stdout or "")
        return match.group(1) if match else None

    def uninstall(self, name: str) -> bool:
        result = self._sc("delete", name)
        return result.returncode == 0


class Win32ServiceHost:
    """Hosts a runtime under the Windows service control dispatcher."""

    def run(self, name: str, runtime: NodeRuntime) -> None:
        """
        Register the service callbacks and block until the service stops.

        Raises:
            LifecycleError: If pywin32 is missing or the dispatcher cannot start
        """
        try:
            import pywintypes
            import servicemanager
            import win32service
            import win32serviceutil
        except ImportError as e:
            raise LifecycleError(
                message=f"Cannot host service '{name}': pywin32 is not available",
                error_code=ErrorCodes.LIFE_SERVICE_HOST_FAILED,
            ) from e

        class NodeService(win32serviceutil.ServiceFramework):
            _svc_name_ = name
            _svc_display_name_ = name

            def SvcStop(self) -> None:
                self.ReportServiceStatus(win32service.SERVICE_STOP_PENDING)
                runtime.stop()

            def SvcDoRun(self) -> None:
                runtime.run()

        servicemanager.Initialize()
        servicemanager.PrepareToHostSingle(NodeService)
        try:
            servicemanager.StartServiceCtrlDispatcher()
        except pywintypes.error as e:
            raise LifecycleError(
                message=f"Cannot connect service '{name}' to the service manager: {e}",
                error_code=ErrorCodes.LIFE_SERVICE_HOST_FAILED,
                suggestion="--run-as-service is only meant for processes started by the service manager",
            ) from e


class WindowsServiceLifecycle(PlatformLifecycle):
    """
    Lifecycle for Windows hosts.

    Args:
        runtime_factory: Builds the node runtime
        manager: Service control used by detach
        host: Service dispatcher used in WindowsService mode
        settings: Service name and start timeout
        clock: Monotonic clock used while waiting for the service to run
        sleep: Pause between service state queries
    """

    def __init__(
        self,
        runtime_factory: RuntimeFactory,
        manager: Optional[Any] = None,
        host: Optional[Any] = None,
        settings: Optional[NodeSettings] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        super().__init__(runtime_factory)
        self._manager = manager or ServiceManager()
        self._host = host or Win32ServiceHost()
        self._settings = settings or get_node_settings()
        self._clock = clock
        self._sleep = sleep

    def detach(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """
        Install and start the service, then return without running the node.

        A service that was installed but failed to start is uninstalled
        before the error is raised.
        """
        launch = ServiceLaunch.for_dispatch(dispatch, self._settings.service_name)
        log.logger.info(f"Installing service '{launch.name}': {launch.command_line()}")

        self._manager.install(launch)
        try:
            self._manager.start(launch.name)
            self._wait_until_running(launch.name)
        except LifecycleError:
            log.logger.error(f"Service '{launch.name}' did not start, removing it")
            if not self._manager.uninstall(launch.name):
                log.logger.error(f"Could not remove service '{launch.name}'")
            raise

        log.logger.info(f"Service '{launch.name}' is running")
        return EXIT_SUCCESS

    def _wait_until_running(self, name: str) -> None:
        deadline = self._clock() + self._settings.service_start_timeout
        while True:
            state = self._manager.query_state(name)
            if state == "RUNNING":
                return
            if state == "STOPPED":
                raise LifecycleError(
                    message=f"Service '{name}' stopped right after starting",
                    error_code=ErrorCodes.LIFE_SERVICE_START_FAILED,
                    details={"service": name},
                )
            if self._clock() >= deadline:
                raise LifecycleError(
                    message=f"Service '{name}' did not reach the running state "
                    f"within {self._settings.service_start_timeout:g}s (last state: {state})",
                    error_code=ErrorCodes.LIFE_SERVICE_START_FAILED,
                    details={"service": name, "state": state},
                )
            self._sleep(0.5)

    def run_as_service(self, dispatch: Dispatch, log: LoggingContext) -> int:
        """Run the node under the service manager until it requests a stop."""
        config = dispatch.require_config()
        log.logger.info(f"Starting as service '{self._settings.service_name}'")
        runtime = self.create_runtime(config, log)
        self._host.run(self._settings.service_name, runtime)
        return EXIT_SUCCESS
