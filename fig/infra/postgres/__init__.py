"""PostgreSQL command builders."""

from .commands import (
    SessionMode,
    build_bouncer_command,
    build_primary_command,
    build_tunnel_command,
    select_session_mode,
)

__all__ = [
    "SessionMode",
    "build_bouncer_command",
    "build_primary_command",
    "build_tunnel_command",
    "select_session_mode",
]
