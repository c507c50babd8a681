from __future__ import annotations

import json
import logging
from typing import Sequence

from kubernetes.client import V1Service
from pydantic import ValidationError

from .api_models import ServiceManifest
from .errors import DecodeError, ResourceDeleteError
from .kube_ops import ClusterResourceClient

LOG = logging.getLogger(__name__)


def decode_manifest(payload: bytes) -> ServiceManifest:
    try:
        data = json.loads(payload)
    except (UnicodeDecodeError, ValueError, RecursionError) as e:
        raise DecodeError(f"Payload is not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise DecodeError("Service manifest must be a JSON object.")
    try:
        return ServiceManifest.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Payload does not match the Service schema: {e}") from e


class ServiceReconciler:
    """Create and delete Services through a ClusterResourceClient.

    Holds no per-call state, so one instance is shared by all request handlers.
    Conflicts between concurrent calls for the same name are resolved by the
    control plane.
    """

    def __init__(self, cluster: ClusterResourceClient):
        self.cluster = cluster

    def create_service_from_encoded(self, payload: bytes) -> V1Service:
        return self.create_service(decode_manifest(payload))

    def create_service(self, descriptor: ServiceManifest) -> V1Service:
        # ResourceCreateError propagates unchanged; no retry.
        created = self.cluster.create(descriptor.to_body())
        LOG.info('Service "%s" created', descriptor.name)
        return created

    def delete_services(self, names: Sequence[str]) -> None:
        """Delete every name in order, best effort.

        Individual failures are logged and never raised: this is a cleanup
        sweep, callers needing per-name outcomes use the cluster client.
        """
        for name in names:
            try:
                self.cluster.delete(name)
            except ResourceDeleteError as e:
                LOG.info('Service "%s" delete failed (%s): %s', name, e.category, e.detail)
            else:
                LOG.info('Service "%s" deleted', name)
