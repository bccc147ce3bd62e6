"""CLI command modules.

Command Groups:
- config: Create, inspect, and edit per-project configuration files
- doctor: Check that external dependencies are installed
- psql: Open a database session through the configured tunnel
- port-forward: Generic Kubernetes port forwarding
- access-key: Generate access key resource manifests
- logs / exec: Inspect the configured Kubernetes deployment
"""

from .access_key import access_key
from .config import config_app
from .doctor import doctor
from .k8s import exec_command, logs
from .port_forward import port_forward
from .psql import psql

__all__ = [
    "access_key",
    "config_app",
    "doctor",
    "exec_command",
    "logs",
    "port_forward",
    "psql",
]
