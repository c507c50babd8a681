import json
import logging
import sys
import threading

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

# Ensure project root is importable (so `import main` / `import cli` work reliably across environments)
import os as _os
_project_root = _os.path.dirname(_os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from ksr.kube_ops import ClusterResourceClient  # noqa: E402
from ksr.logs import EventStoreHandler  # noqa: E402
from ksr.services import ServiceReconciler  # noqa: E402

_REASONS = {404: "Not Found", 409: "Conflict", 422: "Unprocessable Entity", 500: "Internal Server Error"}


def api_error(status: int, message: str) -> ApiException:
    e = ApiException(status=status, reason=_REASONS.get(status, "Error"))
    e.body = json.dumps({"kind": "Status", "apiVersion": "v1", "status": "Failure", "message": message, "code": status})
    return e


class FakeCoreV1Api:
    """In-memory stand-in for the control plane's Service endpoints.

    Enforces namespace existence and name uniqueness the way the API server does.
    """

    def __init__(self, namespaces=("default",)):
        self.namespaces = set(namespaces)
        self.services: dict[tuple[str, str], client.V1Service] = {}
        self.calls: list[tuple[str, str]] = []
        self.failures: dict[str, Exception] = {}
        self.api_client = client.ApiClient()
        self._lock = threading.Lock()

    def add_service(self, name: str, namespace: str = "default") -> None:
        self.services[(namespace, name)] = client.V1Service(
            api_version="v1",
            kind="Service",
            metadata=client.V1ObjectMeta(name=name, namespace=namespace),
        )

    def create_namespaced_service(self, namespace, body, **kwargs):
        name = body["metadata"]["name"]
        with self._lock:
            self.calls.append(("create", name))
            if name in self.failures:
                raise self.failures[name]
            if namespace not in self.namespaces:
                raise api_error(404, f'namespaces "{namespace}" not found')
            if (namespace, name) in self.services:
                raise api_error(409, f'services "{name}" already exists')
            spec = body.get("spec") or {}
            svc = client.V1Service(
                api_version="v1",
                kind="Service",
                metadata=client.V1ObjectMeta(name=name, namespace=namespace, uid=f"uid-{len(self.services) + 1}"),
                spec=client.V1ServiceSpec(
                    cluster_ip=f"10.96.0.{len(self.services) + 1}",
                    selector=spec.get("selector"),
                ),
            )
            self.services[(namespace, name)] = svc
            return svc

    def delete_namespaced_service(self, name, namespace, body=None, **kwargs):
        with self._lock:
            self.calls.append(("delete", name))
            if name in self.failures:
                raise self.failures[name]
            if (namespace, name) not in self.services:
                raise api_error(404, f'services "{name}" not found')
            del self.services[(namespace, name)]
            return client.V1Status(status="Success")


@pytest.fixture
def fake_api():
    return FakeCoreV1Api()


@pytest.fixture
def cluster(fake_api):
    return ClusterResourceClient(fake_api, "default")


@pytest.fixture
def reconciler(cluster):
    return ServiceReconciler(cluster)


@pytest.fixture
def manifest():
    return {
        "apiVersion": "v1",
        "kind": "Service",
        "metadata": {"name": "web", "labels": {"app": "web"}},
        "spec": {
            "selector": {"app": "web"},
            "ports": [{"name": "http", "port": 80, "targetPort": 8080, "protocol": "TCP"}],
        },
    }


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo logging changes made by the supervisor during a test."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)
    ksr_logger = logging.getLogger("ksr")
    for h in list(ksr_logger.handlers):
        if isinstance(h, EventStoreHandler):
            ksr_logger.removeHandler(h)
