"""Configuration file management commands.

Commands:
    init  - Write a stub configuration (or copy an existing file)
    show  - Print the configuration
    edit  - Open the configuration in $EDITOR
    list  - List configurations for the current project
    path  - Print the resolved configuration path
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from typing import Annotated

import click
import typer
from rich.syntax import Syntax
from rich.table import Table

from fig.cli.context import CLIContext, get_cli_context
from fig.cli.shared.console import console, with_error_handling
from fig.infra.config import load_config
from fig.infra.errors import ConfigError, ConfigNotFoundError, ExecutionError
from fig.infra.templates import render_template

config_app = typer.Typer(
    name="config",
    help="⚙️  Manage per-project configuration files",
    no_args_is_help=True,
)


def _existing_config_path(cli_ctx: CLIContext) -> Path:
    path = cli_ctx.config_path
    if not path.is_file():
        raise ConfigNotFoundError(
            f"Config file not found: {path}",
            details="Run 'fig config init' to create a stub configuration.",
        )
    return path


def write_config(path: Path, content: bytes) -> None:
    """Create ``path`` with ``content``, refusing to overwrite an existing file.

    Raises:
        ConfigError: If the file already exists
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("xb") as f:
            f.write(content)
    except FileExistsError as e:
        raise ConfigError(
            f"Config file already exists: {path}",
            details="Use 'fig config edit' to change it.",
        ) from e


@config_app.command()
@with_error_handling
def init(
    from_path: Annotated[
        Path | None,
        typer.Option(
            "--from",
            help="Copy an existing config file instead of writing the stub",
            exists=True,
            dir_okay=False,
            readable=True,
        ),
    ] = None,
) -> None:
    """📝 Install a stub configuration file with examples to help with setup.

    Examples:
        fig config init
        fig --config staging config init --from ../other-project/default.toml
    """
    cli_ctx = get_cli_context()
    path = cli_ctx.config_path

    if from_path is not None:
        # Validate before copying so a broken file is never installed
        load_config(from_path)
        content = from_path.read_bytes()
    else:
        content = render_template(
            "config.toml.j2", {"project_name": cli_ctx.paths.project_name}
        ).encode("utf-8")

    write_config(path, content)
    console.ok(f"Wrote config file to {path}")


@config_app.command()
@with_error_handling
def show() -> None:
    """📄 Print the configuration file."""
    path = _existing_config_path(get_cli_context())
    console.print(f"[dim]{path}[/dim]")
    console.print(Syntax(path.read_text(encoding="utf-8"), "toml"))


@config_app.command()
@with_error_handling
def edit() -> None:
    """✏️  Open the configuration file in $EDITOR (default: vim)."""
    cli_ctx = get_cli_context()
    path = _existing_config_path(cli_ctx)
    editor = os.environ.get("EDITOR") or cli_ctx.constants.DEFAULT_EDITOR

    try:
        click.edit(filename=str(path), editor=editor)
    except click.ClickException as e:
        raise ExecutionError(f"Editor '{editor}' failed", details=e.message) from e


@config_app.command("list")
@with_error_handling
def list_configs() -> None:
    """📋 List configuration files for the current project."""
    cli_ctx = get_cli_context()
    configs = cli_ctx.paths.list_configs()

    if not configs:
        console.warn(f"No configs found in {cli_ctx.paths.project_dir}")
        console.print("[dim]Run 'fig config init' to create one.[/dim]")
        return

    table = Table(title=f"Configs for {cli_ctx.paths.project_name}")
    table.add_column("", width=1)
    table.add_column("Name", style="cyan")
    table.add_column("Modified")
    table.add_column("Path", style="dim")

    for path in configs:
        modified = datetime.fromtimestamp(path.stat().st_mtime).strftime("%Y-%m-%d %H:%M")
        marker = "*" if path == cli_ctx.config_path else ""
        table.add_row(marker, path.stem, modified, str(path))

    console.print(table)


@config_app.command()
@with_error_handling
def path() -> None:
    """📍 Print the resolved configuration file path."""
    typer.echo(str(get_cli_context().config_path))
