"""Data types shared by the command builders and the process supervisor."""

from __future__ import annotations

import shlex
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType


@dataclass(frozen=True)
class CommandSpec:
    """A fully resolved external command.

    Attributes:
        program: Executable name or path
        args: Arguments passed after the program
        env: Extra environment variables layered over the caller's environment
        temp_files: Files created for this command, removed by ``cleanup()``
    """

    program: str
    args: tuple[str, ...] = ()
    env: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    temp_files: tuple[Path, ...] = ()

    def argv(self) -> list[str]:
        return [self.program, *self.args]

    def display(self) -> str:
        """Render the command for humans. Environment values are omitted."""
        rendered = shlex.join(self.argv())
        if self.env:
            return f"{' '.join(sorted(self.env))}=*** {rendered}"
        return rendered

    def cleanup(self) -> None:
        for path in self.temp_files:
            path.unlink(missing_ok=True)
