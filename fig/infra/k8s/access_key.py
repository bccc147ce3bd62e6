"""Access key resource manifests.

Generates a Kubernetes Secret holding a random access key and, when a
service account is given, a Role and RoleBinding that let it read only
that Secret.
"""

from __future__ import annotations

import hashlib
import secrets
from typing import Any

import yaml

MANAGED_BY_LABELS = {"app.kubernetes.io/managed-by": "fig"}


def generate_access_key(num_bytes: int = 32) -> str:
    """Generate a URL-safe random access key."""
    return secrets.token_urlsafe(num_bytes)


def key_fingerprint(key: str) -> str:
    """Short SHA-256 fingerprint used to identify a key without exposing it."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def build_access_key_manifests(
    name: str,
    *,
    namespace: str = "default",
    service_account: str | None = None,
    key: str | None = None,
) -> list[dict[str, Any]]:
    """Build the manifests for an access key.

    Args:
        name: Name of the Secret (the Role and RoleBinding derive from it)
        namespace: Namespace for all resources
        service_account: Service account granted read access to the Secret
        key: Access key to store; a random one is generated when omitted

    Returns:
        List of manifest dicts in apply order
    """
    key = key or generate_access_key()
    manifests: list[dict[str, Any]] = [
        {
            "apiVersion": "v1",
            "kind": "Secret",
            "metadata": {
                "name": name,
                "namespace": namespace,
                "labels": dict(MANAGED_BY_LABELS),
                "annotations": {"fig/key-fingerprint": key_fingerprint(key)},
            },
            "type": "Opaque",
            "stringData": {"access-key": key},
        }
    ]

    if service_account:
        role_name = f"{name}-reader"
        manifests.append(
            {
                "apiVersion": "rbac.authorization.k8s.io/v1",
                "kind": "Role",
                "metadata": {
                    "name": role_name,
                    "namespace": namespace,
                    "labels": dict(MANAGED_BY_LABELS),
                },
                "rules": [
                    {
                        "apiGroups": [""],
                        "resources": ["secrets"],
                        "resourceNames": [name],
                        "verbs": ["get"],
                    }
                ],
            }
        )
        manifests.append(
            {
                "apiVersion": "rbac.authorization.k8s.io/v1",
                "kind": "RoleBinding",
                "metadata": {
                    "name": role_name,
                    "namespace": namespace,
                    "labels": dict(MANAGED_BY_LABELS),
                },
                "subjects": [
                    {
                        "kind": "ServiceAccount",
                        "name": service_account,
                        "namespace": namespace,
                    }
                ],
                "roleRef": {
                    "apiGroup": "rbac.authorization.k8s.io",
                    "kind": "Role",
                    "name": role_name,
                },
            }
        )

    return manifests


def render_manifests(manifests: list[dict[str, Any]]) -> str:
    """Serialize manifests as a multi-document YAML stream."""
    return yaml.safe_dump_all(manifests, sort_keys=False, default_flow_style=False)
