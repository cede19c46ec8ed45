"""
Pytest configuration and shared fixtures
"""

import json
import pytest
from typing import Dict, List, Optional, Tuple

from game_network.config.settings import AlibabaCloudOptions, CloudProviderOptions, SLBOptions
from game_network.exceptions import ClusterAPIError, ResourceNotFoundError
from game_network.kube.client import ClusterClient
from game_network.models.network import NetworkStatus
from game_network.models.resources import (
    ExposureService,
    GameServerPod,
    LoadBalancerIngress,
    OwnerReference,
    ServicePort,
    ServiceType,
)
from game_network.networking.network_manager import (
    NETWORK_CONF_KEY,
    NETWORK_DISABLED_KEY,
    NETWORK_STATUS_KEY,
    NETWORK_TYPE_KEY,
    OWNER_GSS_KEY,
)


class FakeClusterClient(ClusterClient):
    """In-memory ClusterClient recording every mutating call."""

    def __init__(self, services: Optional[List[ExposureService]] = None,
                 game_server_sets: Optional[List[Tuple[str, OwnerReference]]] = None):
        self.services: Dict[Tuple[str, str], ExposureService] = {}
        for service in services or []:
            self.services[(service.namespace, service.name)] = service
        self.game_server_sets: Dict[Tuple[str, str], OwnerReference] = {}
        for namespace, ref in game_server_sets or []:
            self.game_server_sets[(namespace, ref.name)] = ref
        self.calls: List[Tuple[str, str]] = []
        self.failures: Dict[str, Exception] = {}

    def fail(self, operation: str, error: Optional[Exception] = None) -> None:
        self.failures[operation] = error or ClusterAPIError(operation, "injected failure", status=500)

    def _check(self, operation: str) -> None:
        if operation in self.failures:
            raise self.failures[operation]

    async def list_services(self) -> List[ExposureService]:
        self._check("list_services")
        return [service.model_copy(deep=True) for service in self.services.values()]

    async def get_service(self, namespace: str, name: str) -> ExposureService:
        self._check("get_service")
        service = self.services.get((namespace, name))
        if service is None:
            raise ResourceNotFoundError("Service", namespace, name)
        return service.model_copy(deep=True)

    async def create_service(self, service: ExposureService) -> ExposureService:
        self._check("create_service")
        self.calls.append(("create_service", service.key))
        if (service.namespace, service.name) in self.services:
            raise ClusterAPIError("create_service", "AlreadyExists", status=409)
        self.services[(service.namespace, service.name)] = service.model_copy(deep=True)
        return service

    async def update_service(self, service: ExposureService) -> ExposureService:
        self._check("update_service")
        self.calls.append(("update_service", service.key))
        if (service.namespace, service.name) not in self.services:
            raise ResourceNotFoundError("Service", service.namespace, service.name)
        self.services[(service.namespace, service.name)] = service.model_copy(deep=True)
        return service

    async def get_game_server_set(self, namespace: str, name: str) -> OwnerReference:
        self._check("get_game_server_set")
        ref = self.game_server_sets.get((namespace, name))
        if ref is None:
            raise ResourceNotFoundError("GameServerSet", namespace, name)
        return ref


def build_pod(name: str = "gs-0", namespace: str = "default", lb_id: Optional[str] = "lb-1",
              port_protocols: Optional[str] = "7777/UDP", fixed: Optional[str] = None,
              disabled: Optional[str] = None, status: Optional[NetworkStatus] = None,
              pod_ip: Optional[str] = "10.0.0.5", network_type: str = "AlibabaCloud-SLB",
              annotations: Optional[Dict[str, str]] = None,
              labels: Optional[Dict[str, str]] = None) -> GameServerPod:
    conf = []
    if lb_id is not None:
        conf.append({"name": "SlbIds", "value": lb_id})
    if port_protocols is not None:
        conf.append({"name": "PortProtocols", "value": port_protocols})
    if fixed is not None:
        conf.append({"name": "Fixed", "value": fixed})

    pod_annotations = {
        NETWORK_TYPE_KEY: network_type,
        NETWORK_CONF_KEY: json.dumps(conf),
    }
    if disabled is not None:
        pod_annotations[NETWORK_DISABLED_KEY] = disabled
    if status is not None:
        pod_annotations[NETWORK_STATUS_KEY] = status.to_json()
    pod_annotations.update(annotations or {})

    return GameServerPod(
        name=name,
        namespace=namespace,
        uid=f"uid-{name}",
        labels=labels or {OWNER_GSS_KEY: "gss"},
        annotations=pod_annotations,
        pod_ip=pod_ip
    )


def build_service(name: str = "gs-0", namespace: str = "default", lb_id: str = "lb-1",
                  ports: Optional[List[Tuple[int, str, int]]] = None,
                  service_type: ServiceType = ServiceType.LOAD_BALANCER,
                  ingress_ip: Optional[str] = None, labelled: bool = True) -> ExposureService:
    ports = ports if ports is not None else [(500, "UDP", 7777)]
    return ExposureService(
        name=name,
        namespace=namespace,
        labels={"service.k8s.alibaba/loadbalancer-id": lb_id} if labelled else {},
        annotations={
            "service.beta.kubernetes.io/alibaba-cloud-loadbalancer-id": lb_id,
            "service.beta.kubernetes.io/alibaba-cloud-loadbalancer-force-override-listeners": "true",
        },
        service_type=service_type,
        selector={"statefulset.kubernetes.io/pod-name": name},
        ports=[
            ServicePort(name=str(target), port=port, protocol=protocol, target_port=target)
            for port, protocol, target in ports
        ],
        ingress=[LoadBalancerIngress(ip=ingress_ip)] if ingress_ip else []
    )


@pytest.fixture
def make_pod():
    """Factory for game server pods carrying network annotations"""
    return build_pod


@pytest.fixture
def make_service():
    """Factory for exposure services bound to a load balancer"""
    return build_service


@pytest.fixture
def fake_client():
    """Empty in-memory cluster"""
    return FakeClusterClient()


@pytest.fixture
def provider_options():
    """Provider options with the [500, 700) port range"""
    return CloudProviderOptions(
        alibabacloud=AlibabaCloudOptions(slb=SLBOptions(min_port=500, max_port=700))
    )


@pytest.fixture
def small_provider_options():
    """Provider options with a two port range"""
    return CloudProviderOptions(
        alibabacloud=AlibabaCloudOptions(slb=SLBOptions(min_port=500, max_port=502))
    )
