"""Configuration file loading and environment resolution."""

import tomllib
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from fig.infra.config.models import Config, Environment
from fig.infra.errors import (
    ConfigNotFoundError,
    EnvironmentResolutionError,
    MalformedConfigError,
)


def load_config(file_path: Path) -> Config:
    """Load and validate a fig TOML configuration file.

    Args:
        file_path: Path to the TOML file

    Returns:
        Validated, immutable Config

    Raises:
        ConfigNotFoundError: If the file doesn't exist or can't be read
        MalformedConfigError: If the TOML is invalid or fails validation
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise ConfigNotFoundError(
            f"Config file not found: {file_path}",
            details="Run 'fig config init' to create a stub configuration.",
        ) from e
    except OSError as e:
        raise ConfigNotFoundError(
            f"Config file could not be read: {file_path}", details=str(e)
        ) from e

    logger.debug(f"Loading configuration from {file_path}")

    try:
        loaded = tomllib.loads(content)
    except tomllib.TOMLDecodeError as e:
        raise MalformedConfigError(
            f"Error parsing TOML in {file_path}", details=str(e)
        ) from e

    try:
        config = Config.model_validate(loaded)
    except ValidationError as e:
        raise MalformedConfigError(
            f"Invalid configuration in {file_path}", details=str(e)
        ) from e

    logger.debug(
        f"Loaded blocks: {[name for name, value in config if value is not None]}"
    )
    return config


def resolve_environment(name: str | None, *, strict: bool = True) -> Environment:
    """Map an environment name to an Environment.

    Args:
        name: Environment name (``local``, ``test`` or ``prod``)
        strict: If False, unrecognized or missing names fall back to ``local``

    Raises:
        EnvironmentResolutionError: If ``strict`` and the name is unrecognized
    """
    if name is not None:
        try:
            return Environment(name.strip().lower())
        except ValueError:
            pass

    if strict:
        valid = ", ".join(env.value for env in Environment)
        raise EnvironmentResolutionError(
            f"Unrecognized environment '{name}'.", details=f"Valid environments: {valid}"
        )

    logger.warning(f"Unrecognized environment '{name}', defaulting to 'local'")
    return Environment.LOCAL
