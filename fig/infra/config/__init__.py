"""Configuration model and loader for fig."""

from .loader import load_config, resolve_environment
from .models import (
    CloudProxyTunnel,
    Config,
    ConnectionKind,
    DirectConnection,
    Environment,
    ExecConfig,
    KubernetesTarget,
    KubernetesTunnel,
    LogConfig,
    PortForwardConfig,
    PostgresConfig,
)

__all__ = [
    "CloudProxyTunnel",
    "Config",
    "ConnectionKind",
    "DirectConnection",
    "Environment",
    "ExecConfig",
    "KubernetesTarget",
    "KubernetesTunnel",
    "LogConfig",
    "PortForwardConfig",
    "PostgresConfig",
    "load_config",
    "resolve_environment",
]
