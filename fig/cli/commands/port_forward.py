"""Generic Kubernetes port forwarding."""

from __future__ import annotations

from typing import Annotated

import typer

from fig.cli.context import CLIContext, get_cli_context
from fig.cli.shared.console import console, with_error_handling
from fig.infra.config import PortForwardConfig
from fig.infra.errors import ConfigNotFoundError
from fig.infra.k8s import build_port_forward_command
from fig.infra.ports import parse_forwarding_specifier
from fig.infra.supervisor import ProcessSupervisor, interrupt_handler


def load_port_forward_defaults(cli_ctx: CLIContext) -> PortForwardConfig:
    """Read ``[port_forward]`` defaults; a missing config file means no defaults."""
    try:
        config = cli_ctx.load_config()
    except ConfigNotFoundError:
        return PortForwardConfig()
    return config.port_forward or PortForwardConfig()


@with_error_handling
def port_forward(
    specifier: Annotated[
        str,
        typer.Argument(
            metavar="SPECIFIER",
            help="LOCAL_PORT:REMOTE_HOST:REMOTE_PORT or REMOTE_HOST:REMOTE_PORT, e.g. svc/api:8080",
        ),
    ],
    context: Annotated[
        str | None,
        typer.Option("--context", help="Kubernetes context (overrides config)"),
    ] = None,
    namespace: Annotated[
        str | None,
        typer.Option("--namespace", "-n", help="Kubernetes namespace (overrides config)"),
    ] = None,
) -> None:
    """🔀 Forward a local port through the cluster.

    Cluster resources (svc/NAME, deployment/NAME, pod/NAME) are forwarded
    directly. Any other host is reached through a temporary relay pod that
    is deleted when forwarding stops.

    Examples:
        fig port-forward svc/api:8080
        fig port-forward 6379:redis.internal:6379 --context staging
    """
    cli_ctx = get_cli_context()
    info = parse_forwarding_specifier(specifier)
    defaults = load_port_forward_defaults(cli_ctx)

    command = build_port_forward_command(
        info,
        context=context or defaults.context,
        namespace=namespace or defaults.namespace,
    )

    console.info(
        f"Forwarding localhost:{info.local_port} -> {info.remote_host}:{info.remote_port}"
    )
    supervisor = ProcessSupervisor()
    with interrupt_handler(supervisor.token):
        supervisor.run_forward(command)
