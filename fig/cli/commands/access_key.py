"""Access key resource generation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Annotated

import typer

from fig.cli.shared.console import console, with_error_handling
from fig.infra.errors import ParseError
from fig.infra.k8s import build_access_key_manifests, generate_access_key, render_manifests

# RFC 1123 subdomain, as required for Secret and Role names
RESOURCE_NAME_PATTERN = re.compile(r"^[a-z0-9]([-a-z0-9.]{0,251}[a-z0-9])?$")


def validate_resource_name(name: str) -> str:
    if not RESOURCE_NAME_PATTERN.match(name):
        raise ParseError(
            f"Invalid resource name '{name}'.",
            details="Use lowercase letters, digits, '-' and '.', "
            "starting and ending with an alphanumeric character.",
        )
    return name


@with_error_handling
def access_key(
    name: Annotated[str, typer.Argument(help="Name of the Secret holding the key")],
    namespace: Annotated[
        str, typer.Option("--namespace", "-n", help="Namespace for the resources")
    ] = "default",
    service_account: Annotated[
        str | None,
        typer.Option(
            "--service-account",
            help="Service account granted read access to the key",
        ),
    ] = None,
    key_bytes: Annotated[
        int,
        typer.Option("--bytes", min=16, max=256, help="Random bytes in the key"),
    ] = 32,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write manifests to a file instead of stdout"),
    ] = None,
) -> None:
    """🔑 Generate access key resource manifests.

    Emits a Secret with a random key and, with --service-account, a Role
    and RoleBinding allowing that account to read it.

    Examples:
        fig access-key api-key -n backend | kubectl apply -f -
        fig access-key api-key -n backend --service-account worker -o key.yaml
    """
    validate_resource_name(name)
    if service_account:
        validate_resource_name(service_account)

    manifests = build_access_key_manifests(
        name,
        namespace=namespace,
        service_account=service_account,
        key=generate_access_key(key_bytes),
    )
    rendered = render_manifests(manifests)

    if output is None:
        typer.echo(rendered, nl=False)
        return

    try:
        fd = os.open(output, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError as e:
        raise ParseError(f"Refusing to overwrite existing file: {output}") from e
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(rendered)
    console.ok(f"Wrote {len(manifests)} manifest(s) to {output}")
