"""Typed representation of the fig TOML configuration.

A config file holds one ``[postgres_<env>]`` block per environment plus
optional Kubernetes defaults::

    [postgres_test]
    type = { kubernetes = { context = "gke_dev", namespace = "db", deployment = "pg" } }
    user = "app"
    password = "secret"
    database = "app"

The connection ``type`` accepts ``"direct"``, a single-key table naming the
tunnel kind (``kubernetes`` or ``gcloudproxy``), or a flat table carrying a
``kind`` key.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fig.infra.constants import DEFAULT_CONSTANTS
from fig.infra.errors import ConfigError


class Environment(str, Enum):
    """Named deployment environments a config block can target."""

    LOCAL = "local"
    TEST = "test"
    PRODUCTION = "prod"


# =============================================================================
# Connection kinds
# =============================================================================


class DirectConnection(BaseModel):
    """Connect straight to ``host:port`` with no tunnel."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["direct"] = "direct"


class KubernetesTunnel(BaseModel):
    """Reach the database through ``kubectl port-forward`` to a deployment."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["kubernetes"] = "kubernetes"
    context: str
    namespace: str
    deployment: str
    container: str | None = None


class CloudProxyTunnel(BaseModel):
    """Reach the database through the Cloud SQL proxy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["gcloudproxy"] = "gcloudproxy"
    instance: str


ConnectionKind = Annotated[
    DirectConnection | KubernetesTunnel | CloudProxyTunnel,
    Field(discriminator="kind"),
]


# =============================================================================
# Config blocks
# =============================================================================


class PostgresConfig(BaseModel):
    """How to reach a PostgreSQL instance for one environment."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    connection: ConnectionKind = Field(alias="type")
    host: str = DEFAULT_CONSTANTS.DEFAULT_POSTGRES_HOST
    port: int = Field(default=DEFAULT_CONSTANTS.DEFAULT_POSTGRES_PORT, ge=1, le=65535)
    user: str
    password: str | None = None
    database: str
    search_path: str = Field(
        default=DEFAULT_CONSTANTS.DEFAULT_POSTGRES_SCHEMA, alias="schema"
    )

    @field_validator("connection", mode="before")
    @classmethod
    def _normalize_connection(cls, value: Any) -> Any:
        # "direct" -> {"kind": "direct"}
        if isinstance(value, str):
            return {"kind": value}
        # {kubernetes = {...}} -> {"kind": "kubernetes", ...}
        if isinstance(value, dict) and "kind" not in value and len(value) == 1:
            kind, body = next(iter(value.items()))
            if body is None:
                body = {}
            if isinstance(body, dict):
                return {"kind": kind, **body}
        return value

    @property
    def is_tunneled(self) -> bool:
        return not isinstance(self.connection, DirectConnection)


class PortForwardConfig(BaseModel):
    """Defaults for the generic ``port-forward`` command."""

    model_config = ConfigDict(frozen=True)

    context: str | None = None
    namespace: str | None = None


class KubernetesTarget(BaseModel):
    """A deployment used by the ``logs`` and ``exec`` commands."""

    model_config = ConfigDict(frozen=True)

    deployment: str
    context: str | None = None
    namespace: str | None = None
    container: str | None = None


class LogConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    follow: bool = False


class ExecConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    cmd: str


# =============================================================================
# Root
# =============================================================================


class Config(BaseModel):
    """Root of a fig configuration file."""

    model_config = ConfigDict(frozen=True)

    postgres_local: PostgresConfig | None = None
    postgres_test: PostgresConfig | None = None
    postgres_prod: PostgresConfig | None = None

    port_forward: PortForwardConfig | None = None

    k8s_test: KubernetesTarget | None = None
    k8s_prod: KubernetesTarget | None = None

    log_test: LogConfig | None = None
    log_prod: LogConfig | None = None

    exec_test: ExecConfig | None = None
    exec_prod: ExecConfig | None = None

    def _block(self, prefix: str, env: Environment) -> Any:
        block_name = f"{prefix}_{env.value}"
        return block_name, getattr(self, block_name, None)

    def postgres_for(self, env: Environment) -> PostgresConfig:
        """Return the postgres block for ``env``.

        Raises:
            ConfigError: If the block is not defined
        """
        block_name, block = self._block("postgres", env)
        if block is None:
            raise ConfigError(
                f"[{block_name}] block is missing from the configuration.",
                details=f"Add a [{block_name}] table or run 'fig config edit'.",
            )
        return block

    def k8s_for(self, env: Environment) -> KubernetesTarget:
        """Return the Kubernetes target for ``env``.

        Raises:
            ConfigError: If the block is not defined
        """
        block_name, block = self._block("k8s", env)
        if block is None:
            raise ConfigError(f"[{block_name}] block is missing from the configuration.")
        return block

    def log_for(self, env: Environment) -> LogConfig:
        _, block = self._block("log", env)
        return block or LogConfig()

    def exec_for(self, env: Environment) -> ExecConfig | None:
        _, block = self._block("exec", env)
        return block
