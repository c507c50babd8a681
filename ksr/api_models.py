from __future__ import annotations

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr


class _Manifest(BaseModel):
    # Kubernetes objects carry many optional fields; keep the ones we do not
    # model and hand them to the control plane untouched.
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class ObjectMeta(_Manifest):
    name: StrictStr = Field(..., min_length=1, description="Service name, unique within the namespace")
    namespace: StrictStr | None = None
    labels: dict[str, StrictStr] | None = None
    annotations: dict[str, StrictStr] | None = None


class ServicePort(_Manifest):
    name: StrictStr | None = None
    protocol: Literal["TCP", "UDP", "SCTP"] | None = None
    port: StrictInt = Field(..., ge=1, le=65535)
    target_port: Union[StrictInt, StrictStr, None] = Field(None, alias="targetPort")
    node_port: StrictInt | None = Field(None, alias="nodePort", ge=1, le=65535)


class ServiceSpec(_Manifest):
    type: Literal["ClusterIP", "NodePort", "LoadBalancer", "ExternalName"] | None = None
    selector: dict[str, StrictStr] | None = None
    ports: list[ServicePort] | None = None
    cluster_ip: StrictStr | None = Field(None, alias="clusterIP")
    external_name: StrictStr | None = Field(None, alias="externalName")


class ServiceManifest(_Manifest):
    """A v1/Service manifest as accepted by the control plane."""

    api_version: Literal["v1"] = Field("v1", alias="apiVersion")
    kind: Literal["Service"] = "Service"
    metadata: ObjectMeta
    spec: ServiceSpec | None = None

    @property
    def name(self) -> str:
        return self.metadata.name

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DeleteServicesRequest(BaseModel):
    names: list[Annotated[str, Field(min_length=1)]] = Field(
        default_factory=list, description="Service names, deleted in order"
    )
