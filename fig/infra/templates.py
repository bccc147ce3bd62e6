"""Jinja2 templates for generated configuration and scripts."""

from __future__ import annotations

import os
import shlex
import tempfile
from pathlib import Path
from typing import Any

from jinja2 import Environment, PackageLoader, StrictUndefined


def get_template_env() -> Environment:
    """Get Jinja2 environment for template rendering.

    Shell templates quote interpolated values with the ``shquote`` filter.
    """
    env = Environment(
        loader=PackageLoader("fig", "templates"),
        undefined=StrictUndefined,
        keep_trailing_newline=True,
    )
    env.filters["shquote"] = lambda value: shlex.quote(str(value))
    return env


def render_template(template_name: str, context: dict[str, Any]) -> str:
    """Render a Jinja2 template to a string."""
    template = get_template_env().get_template(template_name)
    return template.render(**context)


def render_template_to_temp_file(
    template_name: str,
    context: dict[str, Any],
    *,
    prefix: str,
    suffix: str,
    mode: int = 0o600,
) -> Path:
    """Render a template into a uniquely named file in the temp directory.

    The file is created with ``mode`` before any content is written so
    credentials never sit in a world-readable file. The caller owns the
    returned path and is responsible for removing it.
    """
    content = render_template(template_name, context)
    fd, name = tempfile.mkstemp(prefix=prefix, suffix=suffix)
    path = Path(name)
    try:
        os.fchmod(fd, mode)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path
