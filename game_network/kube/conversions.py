"""Conversion between Kubernetes API objects and the domain models."""

from typing import Any, Dict, Optional, Union

from kubernetes_asyncio import client as k8s

from ..models.resources import (
    PROTOCOL_TCP,
    ExposureService,
    GameServerPod,
    LoadBalancerIngress,
    OwnerReference,
    ServicePort,
    ServiceType,
)


def _target_port(target: Optional[Union[int, str]], fallback: int) -> int:
    # Named target ports cannot be resolved without the pod spec.
    if isinstance(target, int):
        return target
    if isinstance(target, str) and target.isdigit():
        return int(target)
    return fallback


def owner_reference_to_k8s(ref: OwnerReference) -> k8s.V1OwnerReference:
    return k8s.V1OwnerReference(
        api_version=ref.api_version,
        kind=ref.kind,
        name=ref.name,
        uid=ref.uid,
        controller=ref.controller,
        block_owner_deletion=ref.block_owner_deletion
    )


def owner_reference_from_k8s(ref: k8s.V1OwnerReference) -> OwnerReference:
    return OwnerReference(
        api_version=ref.api_version,
        kind=ref.kind,
        name=ref.name,
        uid=ref.uid,
        controller=bool(ref.controller),
        block_owner_deletion=bool(ref.block_owner_deletion)
    )


def owner_reference_from_object(obj: Dict[str, Any]) -> OwnerReference:
    """Controller reference pointing at a custom object returned as a dict."""
    metadata = obj.get("metadata") or {}
    return OwnerReference(
        api_version=obj.get("apiVersion", ""),
        kind=obj.get("kind", ""),
        name=metadata.get("name", ""),
        uid=metadata.get("uid", "")
    )


def service_from_k8s(obj: k8s.V1Service) -> ExposureService:
    metadata = obj.metadata or k8s.V1ObjectMeta()
    spec = obj.spec or k8s.V1ServiceSpec()

    ports = [
        ServicePort(
            name=port.name or "",
            port=port.port,
            protocol=port.protocol or PROTOCOL_TCP,
            target_port=_target_port(port.target_port, port.port)
        )
        for port in spec.ports or []
    ]

    ingress = []
    if obj.status and obj.status.load_balancer and obj.status.load_balancer.ingress:
        ingress = [
            LoadBalancerIngress(ip=item.ip, hostname=item.hostname)
            for item in obj.status.load_balancer.ingress
        ]

    return ExposureService(
        name=metadata.name,
        namespace=metadata.namespace,
        labels=dict(metadata.labels or {}),
        annotations=dict(metadata.annotations or {}),
        service_type=ServiceType(spec.type or ServiceType.CLUSTER_IP.value),
        selector=dict(spec.selector or {}),
        ports=ports,
        owner_references=[owner_reference_from_k8s(ref) for ref in metadata.owner_references or []],
        ingress=ingress,
        resource_version=metadata.resource_version
    )


def service_to_k8s(service: ExposureService) -> k8s.V1Service:
    """Build the API object for create and replace calls; status is server owned."""
    return k8s.V1Service(
        api_version="v1",
        kind="Service",
        metadata=k8s.V1ObjectMeta(
            name=service.name,
            namespace=service.namespace,
            labels=dict(service.labels) or None,
            annotations=dict(service.annotations) or None,
            owner_references=[owner_reference_to_k8s(ref) for ref in service.owner_references] or None,
            resource_version=service.resource_version
        ),
        spec=k8s.V1ServiceSpec(
            type=service.service_type.value,
            selector=dict(service.selector) or None,
            ports=[
                k8s.V1ServicePort(
                    name=port.name,
                    port=port.port,
                    protocol=port.protocol,
                    target_port=port.target_port
                )
                for port in service.ports
            ]
        )
    )


def pod_from_k8s(obj: k8s.V1Pod) -> GameServerPod:
    """Domain view of a watched pod, as passed to the plugin hooks."""
    metadata = obj.metadata or k8s.V1ObjectMeta()
    return GameServerPod(
        name=metadata.name,
        namespace=metadata.namespace,
        uid=metadata.uid or "",
        api_version=obj.api_version or "v1",
        kind=obj.kind or "Pod",
        labels=dict(metadata.labels or {}),
        annotations=dict(metadata.annotations or {}),
        pod_ip=obj.status.pod_ip if obj.status else None
    )
