"""kubectl command builders.

Provides the commands behind Kubernetes port forwarding (directly to a
cluster resource, or through a relay pod to a host outside the cluster)
and the ``logs``/``exec`` helpers.
"""

from __future__ import annotations

import secrets
from collections.abc import Sequence

from fig.infra.config.models import KubernetesTarget
from fig.infra.constants import DEFAULT_CONSTANTS
from fig.infra.ports import ForwardingInfo
from fig.infra.templates import render_template_to_temp_file
from fig.infra.types import CommandSpec

# Resource kinds kubectl port-forward accepts as "<kind>/<name>"
CLUSTER_TARGET_KINDS = (
    "pod",
    "pods",
    "po",
    "svc",
    "service",
    "services",
    "deploy",
    "deployment",
    "deployments",
    "sts",
    "statefulset",
    "statefulsets",
    "rs",
    "replicaset",
    "replicasets",
)


def _kubectl(
    *args: str, context: str | None = None, namespace: str | None = None
) -> CommandSpec:
    scope: list[str] = []
    if context:
        scope += ["--context", context]
    if namespace:
        scope += ["--namespace", namespace]
    return CommandSpec(program=DEFAULT_CONSTANTS.KUBECTL, args=(*scope, *args))


def is_cluster_target(host: str) -> bool:
    """Check whether ``host`` names a cluster resource such as ``svc/api``."""
    kind, sep, name = host.partition("/")
    return bool(sep) and bool(name) and kind.lower() in CLUSTER_TARGET_KINDS


def generate_pod_name() -> str:
    """Generate a unique name for a relay pod."""
    return f"{DEFAULT_CONSTANTS.RELAY_POD_PREFIX}-{secrets.token_hex(4)}"


def build_kubectl_port_forward(
    target: str,
    local_port: int,
    remote_port: int,
    *,
    context: str | None = None,
    namespace: str | None = None,
) -> CommandSpec:
    """Build ``kubectl port-forward <target> local:remote``."""
    return _kubectl(
        "port-forward",
        target,
        f"{local_port}:{remote_port}",
        context=context,
        namespace=namespace,
    )


def build_remote_forward_command(
    info: ForwardingInfo,
    *,
    context: str | None = None,
    namespace: str | None = None,
    pod_name: str | None = None,
) -> CommandSpec:
    """Build a script forwarding a local port to a host reachable from the cluster.

    The script starts a socat relay pod, waits for it, port-forwards to it,
    and deletes the pod when it exits. It is written to an owner-executable
    temp file listed in the returned command's ``temp_files``.
    """
    script_path = render_template_to_temp_file(
        "remote_port_forward.sh.j2",
        {
            "kubectl": DEFAULT_CONSTANTS.KUBECTL,
            "pod_name": pod_name or generate_pod_name(),
            "context": context,
            "namespace": namespace,
            "image": DEFAULT_CONSTANTS.RELAY_IMAGE,
            "ready_timeout": DEFAULT_CONSTANTS.RELAY_READY_TIMEOUT,
            "local_port": info.local_port,
            "remote_host": info.remote_host,
            "remote_port": info.remote_port,
        },
        prefix=DEFAULT_CONSTANTS.FORWARD_SCRIPT_PREFIX,
        suffix=".sh",
        mode=0o700,
    )
    return CommandSpec(program=str(script_path), temp_files=(script_path,))


def build_port_forward_command(
    info: ForwardingInfo,
    *,
    context: str | None = None,
    namespace: str | None = None,
) -> CommandSpec:
    """Pick the forwarding command for ``info``.

    Cluster resources (``svc/api``, ``deployment/db``) are forwarded directly;
    any other host goes through a relay pod.
    """
    if is_cluster_target(info.remote_host):
        return build_kubectl_port_forward(
            info.remote_host,
            info.local_port,
            info.remote_port,
            context=context,
            namespace=namespace,
        )
    return build_remote_forward_command(info, context=context, namespace=namespace)


def build_logs_command(target: KubernetesTarget, *, follow: bool) -> CommandSpec:
    args = ["logs", f"deployment/{target.deployment}"]
    if target.container:
        args += ["--container", target.container]
    if follow:
        args.append("--follow")
    return _kubectl(*args, context=target.context, namespace=target.namespace)


def build_exec_command(target: KubernetesTarget, command: Sequence[str]) -> CommandSpec:
    args = ["exec", "-it", f"deployment/{target.deployment}"]
    if target.container:
        args += ["--container", target.container]
    return _kubectl(
        *args, "--", *command, context=target.context, namespace=target.namespace
    )
