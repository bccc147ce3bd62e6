"""Local port allocation and forwarding specifier parsing."""

from __future__ import annotations

import socket
from collections.abc import Callable
from dataclasses import dataclass

from fig.infra.errors import ForwardingParseError

MAX_PORT = 65535


@dataclass(frozen=True)
class ForwardingInfo:
    """A local-to-remote port mapping parsed from a forwarding specifier."""

    local_port: int
    remote_host: str
    remote_port: int


def allocate_ephemeral_port() -> int:
    """Ask the OS for a free ephemeral port on the loopback interface.

    The socket is released before returning, so another process may claim
    the port before the caller binds it. That race is accepted.

    Raises:
        OSError: If the transient socket cannot be bound
    """
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


def is_port_in_use(port: int, host: str = "localhost") -> bool:
    """Check if a local TCP port is already in use.

    Args:
        port: Port number to check
        host: Host to check on (default: localhost)

    Returns:
        True if port is in use, False otherwise
    """
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
            return False
        except OSError:
            return True


def parse_port(value: str, label: str = "port") -> int:
    """Parse a TCP port number, rejecting anything outside 1..65535."""
    if not value.isdigit():
        raise ForwardingParseError(f"Could not parse {label} '{value}' as a number.")
    port = int(value)
    if not 1 <= port <= MAX_PORT:
        raise ForwardingParseError(
            f"{label.capitalize()} {port} is outside the valid range 1-{MAX_PORT}."
        )
    return port


def parse_forwarding_specifier(
    specifier: str,
    allocate: Callable[[], int] = allocate_ephemeral_port,
) -> ForwardingInfo:
    """Parse ``remote-host:remote-port`` or ``local-port:remote-host:remote-port``.

    When the local port is omitted one is drawn from ``allocate``, which is
    only called once the rest of the specifier has been validated.

    Raises:
        ForwardingParseError: On any other shape or a non-numeric port
    """
    parts = specifier.split(":")
    usage = (
        "Expected 'remote-host:remote-port' or "
        "'local-port:remote-host:remote-port'."
    )

    if len(parts) == 2:
        remote_host, remote_port = parts
        local_port: int | None = None
    elif len(parts) == 3:
        local_port = parse_port(parts[0], "local port")
        remote_host, remote_port = parts[1], parts[2]
    else:
        raise ForwardingParseError(
            f"Invalid forwarding specifier '{specifier}'.", details=usage
        )

    if not remote_host:
        raise ForwardingParseError(
            f"Invalid forwarding specifier '{specifier}': remote host is empty.",
            details=usage,
        )
    parsed_remote_port = parse_port(remote_port, "remote port")

    if local_port is None:
        local_port = allocate()

    return ForwardingInfo(
        local_port=local_port,
        remote_host=remote_host,
        remote_port=parsed_remote_port,
    )
