"""kubectl command builders and Kubernetes manifest generation."""

from .access_key import build_access_key_manifests, generate_access_key, render_manifests
from .commands import (
    build_exec_command,
    build_kubectl_port_forward,
    build_logs_command,
    build_port_forward_command,
    build_remote_forward_command,
    generate_pod_name,
    is_cluster_target,
)

__all__ = [
    "build_access_key_manifests",
    "build_exec_command",
    "build_kubectl_port_forward",
    "build_logs_command",
    "build_port_forward_command",
    "build_remote_forward_command",
    "generate_access_key",
    "generate_pod_name",
    "is_cluster_target",
    "render_manifests",
]
