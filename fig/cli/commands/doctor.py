"""Dependency checks for the external tools fig drives."""

from __future__ import annotations

from fig.cli.shared.console import console, with_error_handling
from fig.infra.constants import DEFAULT_CONSTANTS
from fig.infra.errors import DoctorError, ExecutionError
from fig.infra.supervisor import ProcessSupervisor
from fig.infra.types import CommandSpec

DEPENDENCY_CHECKS: tuple[CommandSpec, ...] = (
    CommandSpec(DEFAULT_CONSTANTS.KUBECTL, ("version", "--client")),
    CommandSpec(DEFAULT_CONSTANTS.PSQL, ("--version",)),
    CommandSpec(DEFAULT_CONSTANTS.GCLOUD, ("version",)),
    CommandSpec(DEFAULT_CONSTANTS.CLOUD_SQL_PROXY, ("--version",)),
    CommandSpec(DEFAULT_CONSTANTS.PGBOUNCER, ("--version",)),
)


def check_dependency(supervisor: ProcessSupervisor, check: CommandSpec) -> bool:
    """Run ``check`` quietly and report whether it succeeded."""
    try:
        supervisor.run(check, suppress_std=True)
    except ExecutionError:
        return False
    return True


def run_checks(
    supervisor: ProcessSupervisor,
    checks: tuple[CommandSpec, ...] = DEPENDENCY_CHECKS,
) -> list[str]:
    """Run every check, printing a line per tool. Returns the missing tools."""
    missing: list[str] = []
    for check in checks:
        if check_dependency(supervisor, check):
            console.ok(f"{check.program} is installed")
        else:
            console.error(f"{check.program} is not installed")
            missing.append(check.program)
    return missing


@with_error_handling
def doctor() -> None:
    """🩺 Check that all required dependencies are installed.

    Runs a version command for kubectl, psql, gcloud, cloud_sql_proxy,
    and pgbouncer.

    Examples:
        fig doctor
    """
    console.print_header("Checking Dependencies")

    missing = run_checks(ProcessSupervisor())
    if missing:
        raise DoctorError(
            "Please make sure all of the above checks are successful!",
            details=f"Missing or broken: {', '.join(missing)}",
        )
