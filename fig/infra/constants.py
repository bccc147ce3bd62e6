"""fig constants and configuration paths.

This module centralizes the magic strings, timings, and file locations
used by the command builders, the process supervisor, and the CLI.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer


@dataclass(frozen=True)
class FigConstants:
    """Constants for fig commands.

    All attributes are class-level and immutable.
    """

    APP_NAME: str = "fig"
    DEFAULT_CONFIG_NAME: str = "default"
    CONFIG_SUFFIX: str = ".toml"
    DEFAULT_EDITOR: str = "vim"

    # External binaries
    KUBECTL: str = "kubectl"
    PSQL: str = "psql"
    PGBOUNCER: str = "pgbouncer"
    CLOUD_SQL_PROXY: str = "cloud_sql_proxy"
    GCLOUD: str = "gcloud"

    # PostgreSQL defaults
    DEFAULT_POSTGRES_HOST: str = "localhost"
    DEFAULT_POSTGRES_PORT: int = 5432
    DEFAULT_POSTGRES_SCHEMA: str = "public"

    # Supervisor timings (seconds)
    TUNNEL_STARTUP_DELAY: float = 3.0
    POLL_INTERVAL: float = 0.2
    TERMINATE_TIMEOUT: float = 5.0

    # Remote port-forward relay pod
    RELAY_POD_PREFIX: str = "fig-port-forward"
    RELAY_IMAGE: str = "alpine/socat:latest"
    RELAY_READY_TIMEOUT: str = "60s"

    # Temp file prefixes
    BOUNCER_INI_PREFIX: str = "fig-pgbouncer-"
    FORWARD_SCRIPT_PREFIX: str = "fig-port-forward-"


class FigPaths:
    """Path resolver for per-project configuration files.

    Configuration lives under the user's application directory, scoped by
    the name of the current working directory:
    ``<app dir>/<project name>/<config name>.toml``.
    """

    def __init__(self, config_root: Path, project_name: str) -> None:
        """Initialize configuration paths.

        Args:
            config_root: Application configuration directory
            project_name: Name used to scope configs to the current project
        """
        self._constants = DEFAULT_CONSTANTS
        self.config_root = config_root
        self.project_name = project_name

    @classmethod
    def for_cwd(cls) -> FigPaths:
        """Build paths for the current working directory."""
        config_root = Path(typer.get_app_dir(DEFAULT_CONSTANTS.APP_NAME))
        return cls(config_root, Path.cwd().name)

    @property
    def project_dir(self) -> Path:
        """Get path to the directory holding this project's configs."""
        return self.config_root / self.project_name

    def config_file(self, name: str) -> Path:
        """Resolve a ``--config`` value to a file path.

        Values that look like paths (contain a separator or carry the
        ``.toml`` suffix) are used as given; anything else is treated as a
        config name inside the project directory.
        """
        if "/" in name or name.endswith(self._constants.CONFIG_SUFFIX):
            return Path(name).expanduser()
        return (self.project_dir / name).with_suffix(self._constants.CONFIG_SUFFIX)

    def list_configs(self) -> list[Path]:
        """List config files in the project directory, sorted by name."""
        if not self.project_dir.is_dir():
            return []
        return sorted(self.project_dir.glob(f"*{self._constants.CONFIG_SUFFIX}"))


DEFAULT_CONSTANTS = FigConstants()
