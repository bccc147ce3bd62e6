import os
import sys
from pathlib import Path

import pytest

# Keep log output quiet unless a test asks for it
os.environ.setdefault("LOG_LEVEL", "WARNING")

from fig.cli.context import CLIContext
from fig.cli.shared.console import CLIConsole
from fig.infra.constants import DEFAULT_CONSTANTS, FigPaths
from fig.infra.supervisor import ProcessSupervisor
from fig.infra.types import CommandSpec

SAMPLE_CONFIG = """\
[postgres_local]
type = "direct"
user = "postgres"
password = "password1"
database = "object_store"
schema = "object_store"

[postgres_test]
type = { kubernetes = { context = "gke_dev", namespace = "p8e", deployment = "p8e-api-db" } }
user = "p8e-api"
password = "password1"
database = "p8e-api"
schema = "p8e-api"

[postgres_prod]
type = { gcloudproxy = { instance = "figure-production:us-east1:identity-db" } }
user = "identity"
database = "identity-db"

[port_forward]
context = "gke_dev"
namespace = "tools"

[k8s_test]
deployment = "api"
namespace = "p8e"

[log_test]
follow = true

[exec_test]
cmd = "/bin/sh -l"
"""


@pytest.fixture
def sample_config_text() -> str:
    return SAMPLE_CONFIG


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "default.toml"
    path.write_text(SAMPLE_CONFIG)
    return path


@pytest.fixture
def fig_paths(tmp_path: Path) -> FigPaths:
    return FigPaths(tmp_path / "config-root", "myproject")


@pytest.fixture
def cli_context(fig_paths: FigPaths) -> CLIContext:
    return CLIContext(
        console=CLIConsole(),
        constants=DEFAULT_CONSTANTS,
        paths=fig_paths,
        config_name="default",
    )


@pytest.fixture
def fast_supervisor() -> ProcessSupervisor:
    """Supervisor with short timings so tests spawning real processes stay quick."""
    return ProcessSupervisor(startup_delay=0.05, poll_interval=0.01, terminate_timeout=5)


def _python_command(code: str, **kwargs) -> CommandSpec:
    return CommandSpec(sys.executable, ("-c", code), **kwargs)


@pytest.fixture
def python_command():
    """Factory for CommandSpecs running ``code`` in a fresh interpreter."""
    return _python_command
