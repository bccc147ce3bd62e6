"""Builders for psql, tunnel, and pgbouncer commands.

All builders are pure apart from ``build_bouncer_command``, which writes the
pgbouncer ini to a temp file owned by the returned CommandSpec.
"""

from __future__ import annotations

from enum import Enum
from typing import assert_never

from loguru import logger

from fig.infra.config.models import (
    CloudProxyTunnel,
    DirectConnection,
    KubernetesTunnel,
    PostgresConfig,
)
from fig.infra.constants import DEFAULT_CONSTANTS
from fig.infra.errors import ConfigError
from fig.infra.k8s.commands import build_kubectl_port_forward
from fig.infra.templates import render_template_to_temp_file
from fig.infra.types import CommandSpec


class SessionMode(str, Enum):
    """Which primary action a database session runs."""

    SHELL = "shell"
    BOUNCER = "bouncer"
    FORWARD = "forward"


def select_session_mode(shell: bool, bouncer: bool) -> SessionMode:
    """Pick exactly one mode: shell wins over bouncer, forwarding is the default."""
    if shell:
        return SessionMode.SHELL
    if bouncer:
        return SessionMode.BOUNCER
    return SessionMode.FORWARD


def _effective_endpoint(connection: PostgresConfig, local_port: int) -> tuple[str, int]:
    """Return the host and port a local client should connect to."""
    match connection.connection:
        case DirectConnection():
            return connection.host, connection.port
        case KubernetesTunnel() | CloudProxyTunnel():
            return DEFAULT_CONSTANTS.DEFAULT_POSTGRES_HOST, local_port
        case _:
            assert_never(connection.connection)


def build_primary_command(connection: PostgresConfig, local_port: int) -> CommandSpec:
    """Build a psql invocation for ``connection``.

    The password travels in ``PGPASSWORD`` and never appears in argv.

    Args:
        connection: Resolved postgres block
        local_port: Local end of the tunnel (ignored for direct connections)
    """
    host, port = _effective_endpoint(connection, local_port)

    env = {"PGOPTIONS": f"--search_path={connection.search_path}"}
    if connection.password is not None:
        env["PGPASSWORD"] = connection.password

    return CommandSpec(
        program=DEFAULT_CONSTANTS.PSQL,
        args=(
            "-h",
            host,
            "-U",
            connection.user,
            "-p",
            str(port),
            connection.database,
        ),
        env=env,
    )


def build_tunnel_command(
    connection: PostgresConfig, local_port: int
) -> CommandSpec | None:
    """Build the command that exposes the database on ``local_port``.

    Returns:
        None for direct connections, otherwise the tunnel command
    """
    match connection.connection:
        case DirectConnection():
            return None
        case KubernetesTunnel(
            context=context,
            namespace=namespace,
            deployment=deployment,
            container=container,
        ):
            if container:
                # kubectl forwards at the pod network level; every container shares it.
                logger.debug(
                    f"Container '{container}' shares the pod network of deployment/{deployment}"
                )
            return build_kubectl_port_forward(
                f"deployment/{deployment}",
                local_port,
                connection.port,
                context=context,
                namespace=namespace,
            )
        case CloudProxyTunnel(instance=instance):
            return CommandSpec(
                program=DEFAULT_CONSTANTS.CLOUD_SQL_PROXY,
                args=("-instances", f"{instance}=tcp:{local_port}"),
            )
        case _:
            assert_never(connection.connection)


def build_bouncer_command(
    connection: PostgresConfig, listen_port: int, upstream_port: int
) -> CommandSpec:
    """Build a pgbouncer invocation pooling connections to the upstream database.

    The ini file is rendered to a uniquely named, owner-only temp file which
    is listed in the returned command's ``temp_files``.

    Args:
        connection: Resolved postgres block
        listen_port: Port pgbouncer listens on
        upstream_port: Port the database (or its tunnel) is reachable on

    Raises:
        ConfigError: If the block has no password
    """
    if connection.password is None:
        raise ConfigError(
            "pgbouncer requires a password, but none is configured.",
            details="Set 'password' in the postgres block or use --shell instead.",
        )

    upstream_host, _ = _effective_endpoint(connection, upstream_port)

    ini_path = render_template_to_temp_file(
        "pgbouncer.ini.j2",
        {
            "database": connection.database,
            "upstream_host": upstream_host,
            "upstream_port": upstream_port,
            "user": connection.user,
            "password": connection.password,
            "listen_port": listen_port,
        },
        prefix=DEFAULT_CONSTANTS.BOUNCER_INI_PREFIX,
        suffix=".ini",
    )
    logger.debug(f"Rendered pgbouncer config to {ini_path}")

    return CommandSpec(
        program=DEFAULT_CONSTANTS.PGBOUNCER,
        args=(str(ini_path),),
        temp_files=(ini_path,),
    )
