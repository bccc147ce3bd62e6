"""Error taxonomy for fig commands.

Configuration and parse errors are raised before any process is spawned.
Execution errors are raised by the process supervisor after a child has been
started (or failed to start).
"""

from __future__ import annotations

import signal


class FigError(Exception):
    """Base class for all errors surfaced to the operator."""

    exit_code: int = 1

    def __init__(self, message: str, details: str | None = None):
        self.message = message
        self.details = details
        super().__init__(message)


class ConfigError(FigError):
    """Raised when the configuration is missing a block or is invalid."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file is missing or unreadable."""


class MalformedConfigError(ConfigError):
    """Raised when the configuration file is not valid TOML or fails validation."""


class ParseError(FigError):
    """Raised for malformed command line input."""


class ForwardingParseError(ParseError):
    """Raised when a forwarding specifier cannot be parsed."""


class EnvironmentResolutionError(FigError):
    """Raised when an environment name is not recognized."""


class PortInUseError(FigError):
    """Raised when an explicitly requested local port is already bound."""


class DoctorError(FigError):
    """Raised when one or more dependency checks fail."""


class ExecutionError(FigError):
    """Raised when a supervised process exits unsuccessfully.

    ``returncode`` follows the ``subprocess`` convention: a negative value
    means the process was terminated by that signal number.
    """

    def __init__(
        self,
        message: str,
        details: str | None = None,
        *,
        returncode: int | None = None,
    ):
        super().__init__(message, details)
        self.returncode = returncode

    @classmethod
    def from_returncode(cls, program: str, returncode: int) -> ExecutionError:
        if returncode < 0:
            try:
                name = signal.Signals(-returncode).name
            except ValueError:
                name = f"signal {-returncode}"
            return cls(f"{program} was terminated by {name}", returncode=returncode)
        return cls(f"{program} exited with status {returncode}", returncode=returncode)


class SpawnError(ExecutionError):
    """Raised when a process could not be started at all."""


class ExecutionCancelled(ExecutionError):
    """Raised when supervision was interrupted by the operator."""

    exit_code = 130
