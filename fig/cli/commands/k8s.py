"""Kubernetes deployment helpers: logs and exec.

Both commands target the ``[k8s_<env>]`` deployment from the configuration.
"""

from __future__ import annotations

import shlex
from typing import Annotated

import typer

from fig.cli.context import get_cli_context
from fig.cli.shared.console import with_error_handling
from fig.infra.config import resolve_environment
from fig.infra.errors import ConfigError
from fig.infra.k8s import build_exec_command, build_logs_command
from fig.infra.supervisor import ProcessSupervisor, interrupt_handler

EnvArgument = Annotated[
    str, typer.Argument(metavar="ENV", help="Environment to target: test, prod")
]


@with_error_handling
def logs(
    environment: EnvArgument,
    follow: Annotated[
        bool,
        typer.Option(
            "--follow",
            "-f",
            help="Stream logs (also enabled by log_<env>.follow in the config)",
        ),
    ] = False,
) -> None:
    """📜 Show logs for the environment's deployment."""
    env = resolve_environment(environment)
    config = get_cli_context().load_config()
    target = config.k8s_for(env)

    follow = follow or config.log_for(env).follow

    supervisor = ProcessSupervisor()
    with interrupt_handler(supervisor.token):
        supervisor.run(build_logs_command(target, follow=follow))


@with_error_handling
def exec_command(
    environment: EnvArgument,
    command: Annotated[
        list[str] | None,
        typer.Argument(help="Command to run (default: exec_<env>.cmd from the config)"),
    ] = None,
) -> None:
    """🖥️  Run a command inside the environment's deployment.

    Examples:
        fig exec test
        fig exec prod -- python manage.py shell
    """
    env = resolve_environment(environment)
    config = get_cli_context().load_config()
    target = config.k8s_for(env)

    if not command:
        exec_config = config.exec_for(env)
        if exec_config is None:
            raise ConfigError(
                f"No command given and [exec_{env.value}] is missing.",
                details=f"Pass a command or add cmd to [exec_{env.value}].",
            )
        command = shlex.split(exec_config.cmd)

    supervisor = ProcessSupervisor()
    # Interactive session: the terminal delivers SIGINT to kubectl itself
    with interrupt_handler(supervisor.token, forward_interrupts=False):
        supervisor.run(build_exec_command(target, command))
