"""Database session command.

Opens a psql shell, a local pgbouncer, or a plain port-forward against the
PostgreSQL instance configured for an environment.
"""

from __future__ import annotations

from typing import Annotated

import typer

from fig.cli.context import get_cli_context
from fig.cli.shared.console import CLIConsole, console, with_error_handling
from fig.infra.config import PostgresConfig, resolve_environment
from fig.infra.constants import DEFAULT_CONSTANTS
from fig.infra.errors import ConfigError, PortInUseError
from fig.infra.ports import allocate_ephemeral_port, is_port_in_use
from fig.infra.postgres import (
    SessionMode,
    build_bouncer_command,
    build_primary_command,
    build_tunnel_command,
    select_session_mode,
)
from fig.infra.supervisor import ProcessSupervisor, interrupt_handler


def resolve_local_port(port: int | None, out: CLIConsole = console) -> int:
    """Use the requested port if it is free, otherwise allocate one.

    Raises:
        PortInUseError: If an explicitly requested port is already bound
    """
    if port is not None:
        if is_port_in_use(port):
            raise PortInUseError(
                f"Port {port} is already in use.",
                details="Pick another --port or omit it to use a random open port.",
            )
        return port

    port = allocate_ephemeral_port()
    out.info(f"Found random open port {port}")
    return port


def run_session(
    connection: PostgresConfig,
    mode: SessionMode,
    supervisor: ProcessSupervisor,
    *,
    port: int | None = None,
    out: CLIConsole = console,
) -> None:
    """Run one database session in ``mode`` under ``supervisor``.

    Raises:
        ConfigError: For forward mode on a direct connection, or bouncer
                     mode without a password
        ExecutionError: If the primary command fails
    """
    match mode:
        case SessionMode.SHELL:
            local_port = (
                resolve_local_port(port, out) if connection.is_tunneled else connection.port
            )
            supervisor.run(
                build_primary_command(connection, local_port),
                build_tunnel_command(connection, local_port),
            )

        case SessionMode.BOUNCER:
            listen_port = resolve_local_port(port, out)
            upstream_port = (
                allocate_ephemeral_port() if connection.is_tunneled else connection.port
            )
            bouncer = build_bouncer_command(connection, listen_port, upstream_port)
            out.info(
                f"pgbouncer listening on localhost:{listen_port} "
                f"(psql -h localhost -p {listen_port} -U {connection.user} {connection.database})"
            )
            supervisor.run(bouncer, build_tunnel_command(connection, upstream_port))

        case SessionMode.FORWARD:
            local_port = (
                resolve_local_port(port, out) if connection.is_tunneled else connection.port
            )
            tunnel = build_tunnel_command(connection, local_port)
            if tunnel is None:
                raise ConfigError(
                    "Direct connections have nothing to forward.",
                    details=f"Connect to {connection.host}:{connection.port} directly, "
                    "or use --shell.",
                )
            out.info(f"Forwarding localhost:{local_port} -> {connection.database}")
            supervisor.run_forward(tunnel)


@with_error_handling
def psql(
    environment: Annotated[
        str,
        typer.Argument(metavar="ENV", help="Environment to connect to: local, test, prod"),
    ],
    port: Annotated[
        int | None,
        typer.Option(
            "--port",
            "-p",
            min=1,
            max=65535,
            help="Optional static port. If omitted, a random open port is chosen.",
        ),
    ] = None,
    shell: Annotated[
        bool,
        typer.Option("--shell", "-s", help="Start an interactive psql shell."),
    ] = False,
    bouncer: Annotated[
        bool,
        typer.Option(
            "--bouncer",
            "-b",
            help="Start a local pgbouncer so clients can connect without a password.",
        ),
    ] = False,
    startup_delay: Annotated[
        float,
        typer.Option(
            "--startup-delay",
            min=0.0,
            help="Seconds to wait for the tunnel before starting the primary command.",
        ),
    ] = DEFAULT_CONSTANTS.TUNNEL_STARTUP_DELAY,
) -> None:
    """🐘 Proxy a remote postgres connection.

    Without flags the tunnel is held open until interrupted. --shell opens
    psql through it; --bouncer runs a transaction-pooling pgbouncer in front
    of it.

    Examples:
        # Forward the test database to a random local port
        fig psql test

        # Open a shell against production
        fig psql prod --shell

        # Run pgbouncer on port 6432
        fig psql test --bouncer --port 6432
    """
    cli_ctx = get_cli_context()
    env = resolve_environment(environment)
    connection = cli_ctx.load_config().postgres_for(env)
    mode = select_session_mode(shell, bouncer)

    supervisor = ProcessSupervisor(startup_delay=startup_delay)
    with interrupt_handler(
        supervisor.token, forward_interrupts=mode is not SessionMode.SHELL
    ):
        run_session(connection, mode, supervisor, port=port, out=cli_ctx.console)
