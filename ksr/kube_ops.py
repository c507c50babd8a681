from __future__ import annotations

import json
import logging
from typing import Any

import yaml
from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config import ConfigException
from urllib3.exceptions import HTTPError

from .errors import INVALID, TRANSPORT, ConfigError, ResourceCreateError, ResourceDeleteError, category_for_status
from .settings import Settings

LOG = logging.getLogger(__name__)


def build_core_api(settings: Settings) -> client.CoreV1Api:
    """Create a CoreV1Api handle from in-cluster or kubeconfig credentials.

    HTTP-level retries are switched off: every call is one round trip.
    """
    cfg = client.Configuration()
    try:
        if settings.in_cluster:
            config.load_incluster_config(client_configuration=cfg)
        else:
            config.load_kube_config(
                config_file=settings.kubeconfig,
                context=settings.kube_context,
                client_configuration=cfg,
            )
    except (ConfigException, OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot load Kubernetes credentials: {e}") from e
    cfg.retries = 0
    LOG.debug("Control plane endpoint: %s", cfg.host)
    return client.CoreV1Api(client.ApiClient(cfg))


def _api_detail(e: ApiException) -> str:
    # The control plane answers with a v1/Status object; prefer its message.
    try:
        body = json.loads(e.body) if e.body else {}
    except (TypeError, ValueError):
        body = {}
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return str(e.reason or f"HTTP {e.status}")


class ClusterResourceClient:
    """Create/Delete Service objects in one namespace. No retries, no caching."""

    def __init__(self, core_api: client.CoreV1Api, namespace: str):
        self._api = core_api
        self.namespace = namespace

    def create(self, body: dict[str, Any]) -> client.V1Service:
        name = str((body.get("metadata") or {}).get("name", ""))
        try:
            return self._api.create_namespaced_service(namespace=self.namespace, body=body)
        except ApiException as e:
            raise ResourceCreateError(name, category_for_status(e.status), _api_detail(e), e.status) from e
        except (HTTPError, OSError) as e:
            raise ResourceCreateError(name, TRANSPORT, f"{type(e).__name__}: {e}") from e

    def delete(self, name: str) -> None:
        # An empty name would address the collection endpoint.
        if not name:
            raise ResourceDeleteError(name, INVALID, "resource name may not be empty")
        try:
            self._api.delete_namespaced_service(
                name=name,
                namespace=self.namespace,
                body=client.V1DeleteOptions(),
            )
        except ApiException as e:
            raise ResourceDeleteError(name, category_for_status(e.status), _api_detail(e), e.status) from e
        except (HTTPError, OSError) as e:
            raise ResourceDeleteError(name, TRANSPORT, f"{type(e).__name__}: {e}") from e

    def to_manifest(self, obj: Any) -> Any:
        """JSON-compatible (camelCase) form of an object returned by the control plane."""
        return self._api.api_client.sanitize_for_serialization(obj)
