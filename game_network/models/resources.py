"""Orchestration platform resources handled by the network plugins.

These are deliberately small views of the Kubernetes objects: only the fields
the plugins read or write are modelled. Conversion to and from the API types
lives in ``game_network.kube.conversions``.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


PROTOCOL_TCP = "TCP"
PROTOCOL_UDP = "UDP"


class ServiceType(str, Enum):
    """Exposure mode of a Service."""
    LOAD_BALANCER = "LoadBalancer"
    CLUSTER_IP = "ClusterIP"
    NODE_PORT = "NodePort"
    EXTERNAL_NAME = "ExternalName"


class OwnerReference(BaseModel):
    """Controller reference that ties a resource's lifetime to its owner."""
    api_version: str
    kind: str
    name: str
    uid: str
    controller: bool = True
    block_owner_deletion: bool = True


class GameServerPod(BaseModel):
    """A game server instance."""
    name: str
    namespace: str
    uid: str = ""
    api_version: str = "v1"
    kind: str = "Pod"
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    pod_ip: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def owner_reference(self) -> OwnerReference:
        return OwnerReference(
            api_version=self.api_version,
            kind=self.kind,
            name=self.name,
            uid=self.uid
        )


class ServicePort(BaseModel):
    """Maps an externally advertised port to the pod's target port."""
    name: str
    port: int
    protocol: str = PROTOCOL_TCP
    target_port: int


class LoadBalancerIngress(BaseModel):
    """An endpoint provisioned for a LoadBalancer Service."""
    ip: Optional[str] = None
    hostname: Optional[str] = None


class ExposureService(BaseModel):
    """The Service exposing one game server pod through a load balancer."""
    name: str
    namespace: str
    labels: Dict[str, str] = Field(default_factory=dict)
    annotations: Dict[str, str] = Field(default_factory=dict)
    service_type: ServiceType = ServiceType.LOAD_BALANCER
    selector: Dict[str, str] = Field(default_factory=dict)
    ports: List[ServicePort] = Field(default_factory=list)
    owner_references: List[OwnerReference] = Field(default_factory=list)
    ingress: List[LoadBalancerIngress] = Field(default_factory=list)
    resource_version: Optional[str] = None

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.name}"

    def port_numbers(self) -> List[int]:
        """External port numbers in declaration order."""
        return [port.port for port in self.ports]

    def external_endpoint(self) -> Optional[str]:
        """Address of the first provisioned ingress, if any."""
        if not self.ingress:
            return None
        first = self.ingress[0]
        return first.ip or first.hostname
