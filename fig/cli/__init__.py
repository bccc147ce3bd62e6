"""Main CLI application module.

This module provides the main entry point for the fig CLI.

Commands:
- doctor (check): Verify external dependencies
- config: Per-project configuration files
- psql: Database sessions through tunnels
- port-forward: Generic Kubernetes port forwarding
- access-key: Access key resource manifests
- logs / exec: Kubernetes deployment helpers
"""

from typing import Annotated

import typer

from fig import __version__
from fig.infra.constants import DEFAULT_CONSTANTS
from fig.utils.logging import configure_logging

from .commands import (
    access_key,
    config_app,
    doctor,
    exec_command,
    logs,
    port_forward,
    psql,
)
from .context import build_cli_context

# Create the main CLI application
app = typer.Typer(
    help="🛠️  fig - project-scoped developer tooling for databases and Kubernetes",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"fig {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    config: Annotated[
        str,
        typer.Option(
            "--config",
            "-c",
            help="Config name (or path to a .toml file) to read configuration from.",
        ),
    ] = DEFAULT_CONSTANTS.DEFAULT_CONFIG_NAME,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Enable debug logging.")
    ] = False,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            callback=_version_callback,
            is_eager=True,
            help="Show the version and exit.",
        ),
    ] = None,
) -> None:
    configure_logging(verbose)
    ctx.obj = build_cli_context(config, verbose)


# Register command groups
app.add_typer(config_app, name="config")

# Register commands
app.command("doctor")(doctor)
app.command("check", hidden=True)(doctor)
app.command("psql")(psql)
app.command("port-forward")(port_forward)
app.command("access-key")(access_key)
app.command("logs")(logs)
app.command("exec")(exec_command)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
