from __future__ import annotations

import os
import re
from dataclasses import dataclass
from typing import Mapping

from .errors import ConfigError

RUN_MODES = ("dev", "test", "prod")
NAMESPACE_RE = re.compile(r"^[a-z0-9]([a-z0-9\-]{0,61}[a-z0-9])?$")

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def _env_bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    # Core
    namespace: str = "default"
    run_mode: str = "dev"
    db_path: str = "ksr.db"

    # API server
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    shutdown_grace_s: int = 5

    # Control plane connection
    in_cluster: bool = False
    kubeconfig: str | None = None
    kube_context: str | None = None

    def validate(self) -> "Settings":
        if not NAMESPACE_RE.match(self.namespace):
            raise ConfigError(
                f"Invalid namespace {self.namespace!r}. Use lowercase letters/numbers and hyphen (max 63 chars)."
            )
        if self.run_mode not in RUN_MODES:
            raise ConfigError(f"Invalid run mode {self.run_mode!r}. Expected one of: {', '.join(RUN_MODES)}.")
        if not 1 <= self.api_port <= 65535:
            raise ConfigError(f"API port out of range: {self.api_port}")
        if self.shutdown_grace_s < 0:
            raise ConfigError("Shutdown grace period must not be negative.")
        if not self.db_path:
            raise ConfigError("Event store path must not be empty.")
        return self


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build validated settings from KSR_* environment variables.

    Raises ConfigError on any malformed value; the caller treats that as fatal.
    """
    env = os.environ if environ is None else environ
    # Running inside a pod is detected the same way the kubernetes client does it.
    in_cluster_default = bool(env.get("KUBERNETES_SERVICE_HOST"))
    return Settings(
        namespace=env.get("KSR_NAMESPACE", "default").strip(),
        run_mode=env.get("KSR_RUN_MODE", "dev").strip().lower(),
        db_path=env.get("KSR_DB_PATH", "ksr.db"),
        api_host=env.get("KSR_API_HOST", "0.0.0.0"),
        api_port=_env_int(env, "KSR_API_PORT", 8000),
        shutdown_grace_s=_env_int(env, "KSR_SHUTDOWN_GRACE_S", 5),
        in_cluster=_env_bool(env, "KSR_IN_CLUSTER", in_cluster_default),
        kubeconfig=env.get("KSR_KUBECONFIG") or None,
        kube_context=env.get("KSR_KUBE_CONTEXT") or None,
    ).validate()
