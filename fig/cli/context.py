"""CLI context and dependency container."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import click
import typer

from fig.cli.shared.console import CLIConsole, console
from fig.infra.config import Config, load_config
from fig.infra.constants import DEFAULT_CONSTANTS, FigConstants, FigPaths


@dataclass(frozen=True)
class CLIContext:
    """Runtime dependencies for CLI commands."""

    console: CLIConsole
    constants: FigConstants
    paths: FigPaths
    config_name: str
    verbose: bool = False

    @property
    def config_path(self) -> Path:
        return self.paths.config_file(self.config_name)

    def load_config(self) -> Config:
        return load_config(self.config_path)


def build_cli_context(
    config_name: str = DEFAULT_CONSTANTS.DEFAULT_CONFIG_NAME, verbose: bool = False
) -> CLIContext:
    """Build a fresh CLIContext."""
    return CLIContext(
        console=console,
        constants=DEFAULT_CONSTANTS,
        paths=FigPaths.for_cwd(),
        config_name=config_name,
        verbose=verbose,
    )


def get_cli_context(ctx: typer.Context | None = None) -> CLIContext:
    """Return the CLIContext from Typer, falling back to a new instance."""
    context = ctx or click.get_current_context(silent=True)
    if context and isinstance(context.obj, CLIContext):
        return context.obj
    return build_cli_context()
