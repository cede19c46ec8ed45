"""
Network status state machine.

A pod's network moves from having no recorded status, to NotReady, to Ready
once its exposure Service has an external endpoint. The state is recomputed
from the observed Service on every update; nothing here keeps state between
calls. Whether the Service is exposed at all (LoadBalancer or ClusterIP) is
tracked on the Service and is independent of these states.
"""

from typing import Optional

from ..models.network import NetworkAddress, NetworkPort, NetworkState, NetworkStatus
from ..models.resources import ExposureService, ServiceType


def desired_state(network_disabled: bool) -> NetworkState:
    """State the pod's owner asked for."""
    return NetworkState.NOT_READY if network_disabled else NetworkState.READY


def desired_service_type(network_disabled: bool, service: ExposureService) -> Optional[ServiceType]:
    """Service type to switch to, or None when the Service already agrees."""
    if network_disabled and service.service_type == ServiceType.LOAD_BALANCER:
        return ServiceType.CLUSTER_IP
    if not network_disabled and service.service_type == ServiceType.CLUSTER_IP:
        return ServiceType.LOAD_BALANCER
    return None


def not_ready_status(previous: Optional[NetworkStatus] = None) -> NetworkStatus:
    """NotReady status, keeping whatever else was recorded before."""
    status = previous.model_copy(deep=True) if previous else NetworkStatus()
    status.current_network_state = NetworkState.NOT_READY
    return status


def ready_status(previous: Optional[NetworkStatus], pod_ip: Optional[str],
                 service: ExposureService) -> NetworkStatus:
    """Ready status with one internal/external address pair per Service port.

    The caller guarantees the Service has an external endpoint.
    """
    external_ip = service.external_endpoint() or ""
    internal_addresses = []
    external_addresses = []
    for port in service.ports:
        name = str(port.target_port)
        internal_addresses.append(NetworkAddress(
            ip=pod_ip or "",
            ports=[NetworkPort(name=name, port=port.target_port, protocol=port.protocol)]
        ))
        external_addresses.append(NetworkAddress(
            ip=external_ip,
            ports=[NetworkPort(name=name, port=port.port, protocol=port.protocol)]
        ))

    status = previous.model_copy(deep=True) if previous else NetworkStatus()
    status.internal_addresses = internal_addresses
    status.external_addresses = external_addresses
    status.current_network_state = NetworkState.READY
    return status


def compute_network_status(previous: Optional[NetworkStatus], pod_ip: Optional[str],
                           service: ExposureService) -> NetworkStatus:
    """NotReady until the Service has an external endpoint, Ready after."""
    if service.external_endpoint() is None:
        return not_ready_status(previous)
    return ready_status(previous, pod_ip, service)
