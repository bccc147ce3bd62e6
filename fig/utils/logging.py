import os
import sys

from loguru import logger

DEFAULT_LEVEL = "WARNING"


def _resolve_level(verbose: bool) -> tuple[str, str | None]:
    """Return the level to log at, plus the rejected ``LOG_LEVEL`` value if any."""
    if verbose:
        return "DEBUG", None
    requested = os.getenv("LOG_LEVEL", DEFAULT_LEVEL).strip().upper()
    try:
        logger.level(requested)
    except ValueError:
        return DEFAULT_LEVEL, requested
    return requested, None


def configure_logging(verbose: bool = False) -> None:
    """Send fig's diagnostic log to stderr.

    ``--verbose`` enables debug output; otherwise ``LOG_LEVEL`` applies,
    defaulting to warnings only so child process output stays readable.
    An unknown ``LOG_LEVEL`` falls back to the default with a warning.
    """
    logger.remove()
    level, rejected = _resolve_level(verbose)
    logger.add(sys.stderr, level=level, serialize=False, diagnose=False, backtrace=False)
    if rejected is not None:
        logger.warning(f"Ignoring unknown LOG_LEVEL '{rejected}', using {DEFAULT_LEVEL}")
