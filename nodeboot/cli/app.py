"""
Main entry point for the nodeboot command.

Runs one process start end to end: parse the command line, resolve the
effective configuration, select the mode and carry it out. Every outcome
is mapped to an exit code here; errors are reported on stderr.
"""

import sys
from typing import Callable, Optional, Sequence

import click
from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.markup import escape

from nodeboot.cli.dispatcher import Dispatch, Mode, select_mode
from nodeboot.cli.invocation import parse_invocation
from nodeboot.cli.system_query import describe
from nodeboot.config.resolver import ConfigResolver
from nodeboot.config.settings import get_node_settings
from nodeboot.control import ControlAddress, RemoteCommandClient
from nodeboot.errors import (
    EXIT_FAILURE,
    EXIT_SUCCESS,
    ErrorCodes,
    LifecycleError,
    NodebootError,
    error_to_user_message,
    exit_code_for,
    get_error_code,
)
from nodeboot.lifecycle import PlatformLifecycle, get_platform_lifecycle
from nodeboot.logging import get_logger, initialize_logging
from nodeboot.runtime import load_runtime_factory

logger = get_logger(__name__)
error_console = Console(stderr=True)

ClientFactory = Callable[[ControlAddress], RemoteCommandClient]


def default_client_factory(address: ControlAddress) -> RemoteCommandClient:
    return RemoteCommandClient(address, timeout=get_node_settings().control_timeout)


def default_lifecycle() -> PlatformLifecycle:
    """Platform lifecycle running the runtime named by NODEBOOT_RUNTIME."""
    return get_platform_lifecycle(load_runtime_factory(get_node_settings().runtime))


def report_error(error: Exception) -> None:
    """Print an error for the operator on stderr."""
    message = escape(error_to_user_message(error))
    error_console.print(f"[bold red]Error:[/bold red] {message}", soft_wrap=True)


def forward_command(dispatch: Dispatch, client_factory: ClientFactory) -> int:
    """
    Send the forwarded command to the running instance and print its output.

    The address is validated before any connection is attempted.
    """
    config = dispatch.require_config()
    address = ControlAddress.parse(config.rpc_bind_ip, config.rpc_bind_port)
    result = client_factory(address).send(dispatch.command)
    if result.output:
        click.echo(result.output)
    return EXIT_SUCCESS


def start_node(dispatch: Dispatch, lifecycle: Optional[PlatformLifecycle]) -> int:
    """Activate logging, then hand the process to the platform lifecycle."""
    if not dispatch.starts_node:
        raise LifecycleError(
            message=f"Mode {dispatch.mode.value} does not start a node",
            error_code=ErrorCodes.LIFE_UNSUPPORTED_MODE,
            details={"mode": dispatch.mode.value},
        )

    config = dispatch.require_config()
    log = initialize_logging(
        config.log_file, config.data_dir, config.log_level, console=dispatch.console
    )
    log.logger.debug(
        f"Log level {config.log_level} from {config.source_of('log-level').value}"
    )
    try:
        active = lifecycle or default_lifecycle()
        return active.transition(dispatch, log)
    except NodebootError as e:
        message = error_to_user_message(e)
        code = get_error_code(e)
        log.logger.error(f"{message} [{code}]" if code else message)
        raise
    except Exception:
        log.logger.exception("Unexpected error while running the node")
        raise
    finally:
        log.close()


def execute(
    dispatch: Dispatch,
    lifecycle: Optional[PlatformLifecycle] = None,
    client_factory: Optional[ClientFactory] = None,
) -> int:
    """
    Carry out the selected mode.

    Returns:
        Exit code for the current process
    """
    if dispatch.mode is Mode.HELP:
        click.echo(dispatch.usage)
        return EXIT_SUCCESS

    if dispatch.mode is Mode.SYSTEM_QUERY:
        for line in describe(dispatch.queries):
            click.echo(line)
        return EXIT_SUCCESS

    if dispatch.mode is Mode.REMOTE_COMMAND:
        return forward_command(dispatch, client_factory or default_client_factory)

    return start_node(dispatch, lifecycle)


def run(
    argv: Optional[Sequence[str]] = None,
    prog_name: Optional[str] = None,
    resolver: Optional[ConfigResolver] = None,
    lifecycle: Optional[PlatformLifecycle] = None,
    client_factory: Optional[ClientFactory] = None,
) -> int:
    """
    Run one process start.

    Args:
        argv: Command-line tokens without the program name, sys.argv by default
        prog_name: Program name shown in usage output
        resolver: Configuration resolver
        lifecycle: Platform lifecycle, chosen from the running platform by default
        client_factory: Builds the client used for forwarded commands

    Returns:
        Process exit code
    """
    args = list(sys.argv[1:] if argv is None else argv)

    try:
        invocation = parse_invocation(args, prog_name)
    except click.ClickException as e:
        e.show()
        return EXIT_FAILURE

    try:
        config = None
        if not invocation.informational:
            config = (resolver or ConfigResolver()).resolve(invocation)
        dispatch = select_mode(invocation, config)
        logger.debug(f"Selected mode: {dispatch.mode.value}")
        return execute(dispatch, lifecycle, client_factory)
    except NodebootError as e:
        report_error(e)
        return exit_code_for(e)
    except Exception as e:
        logger.debug("Unhandled error", exc_info=True)
        report_error(e)
        return EXIT_FAILURE


def main() -> None:
    """Console script entry point."""
    load_dotenv(find_dotenv(usecwd=True))
    sys.exit(run())


if __name__ == "__main__":
    main()
