"""
Client for the control endpoint of a running node.

Forwards a single command and reports the outcome. The client never starts
an instance and never retries: one attempt, one outcome.
"""

import ipaddress
from dataclasses import dataclass
from typing import Any, Optional, Sequence

import httpx

from nodeboot.errors import (
    ErrorCodes,
    NetworkError,
    UnknownCommandError,
    ValidationError,
)
from nodeboot.logging import get_logger

logger = get_logger(__name__)

COMMAND_ENDPOINT = "/command"


@dataclass(frozen=True)
class ControlAddress:
    """Validated host and port of a control endpoint."""

    host: str
    port: int

    @classmethod
    def parse(cls, host: str, port: Any) -> "ControlAddress":
        """
        Validate a host and port.

        Args:
            host: Dotted IPv4 address
            port: Decimal port number, as given in the configuration

        Raises:
            ValidationError: If either value cannot be parsed
        """
        try:
            parsed_host = ipaddress.IPv4Address(str(host).strip())
        except ValueError as e:
            raise ValidationError(
                message=f"Invalid IP: {host}",
                error_code=ErrorCodes.VAL_INVALID_HOST,
                details={"host": host},
                suggestion="Use a dotted IPv4 address such as 127.0.0.1",
            ) from e

        port_text = str(port).strip()
        if not port_text.isdecimal() or not 0 < int(port_text) <= 65535:
            raise ValidationError(
                message=f"Invalid port: {port}",
                error_code=ErrorCodes.VAL_INVALID_PORT,
                details={"port": port},
                suggestion="Use a port number between 1 and 65535",
            )

        return cls(host=str(parsed_host), port=int(port_text))

    @property
    def base_url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class CommandResult:
    """Outcome of a recognized command."""

    command: tuple[str, ...]
    output: str


class RemoteCommandClient:
    """
    Sends one command to a running instance.

    Args:
        address: Validated control endpoint address
        timeout: Seconds to wait for connect and response
        transport: Optional httpx transport, used by tests
    """

    def __init__(
        self,
        address: ControlAddress,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.address = address
        self.timeout = timeout
        self._transport = transport

    def send(self, command: Sequence[str]) -> CommandResult:
        """
        Deliver a command and wait for its response.

        Args:
            command: Non-empty ordered command tokens

        Returns:
            The command output

        Raises:
            ValidationError: If the command is empty
            NetworkError: If the endpoint is unreachable, times out or answers badly
            UnknownCommandError: If the running instance does not recognize the command
        """
        tokens = tuple(str(token) for token in command)
        if not tokens:
            raise ValidationError(
                message="No command given",
                error_code=ErrorCodes.VAL_EMPTY_COMMAND,
            )

        url = f"{self.address.base_url}{COMMAND_ENDPOINT}"
        logger.debug(f"Forwarding {' '.join(tokens)} to {url}")

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(url, json={"command": list(tokens)})
        except httpx.TimeoutException as e:
            raise NetworkError(
                message=f"Timed out waiting for the node at {self.address}",
                error_code=ErrorCodes.NET_TIMEOUT,
                details={"target": str(self.address), "timeout": self.timeout},
                suggestion="Check that the node is running and responsive",
            ) from e
        except httpx.TransportError as e:
            raise NetworkError(
                message=f"Cannot connect to the node at {self.address}: {e}",
                error_code=ErrorCodes.NET_UNREACHABLE,
                details={"target": str(self.address)},
                suggestion="Check that the node is running and --rpc-bind-ip/--rpc-bind-port match it",
            ) from e

        if not response.is_success:
            raise NetworkError(
                message=f"Node at {self.address} answered with HTTP {response.status_code}",
                error_code=ErrorCodes.NET_BAD_RESPONSE,
                details={"target": str(self.address), "status_code": response.status_code},
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise NetworkError(
                message=f"Node at {self.address} sent an unreadable response",
                error_code=ErrorCodes.NET_BAD_RESPONSE,
                details={"target": str(self.address)},
            ) from e

        if not isinstance(payload, dict) or "recognized" not in payload:
            raise NetworkError(
                message=f"Node at {self.address} sent an unexpected response",
                error_code=ErrorCodes.NET_BAD_RESPONSE,
                details={"target": str(self.address), "response": payload},
            )

        if not payload["recognized"]:
            raise UnknownCommandError(
                message="Unknown command",
                error_code=ErrorCodes.CMD_UNKNOWN,
                details={"command": list(tokens), "target": str(self.address)},
            )

        return CommandResult(command=tokens, output=str(payload.get("output") or ""))
