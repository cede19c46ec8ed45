"""
Load balancer network plugin.

Each game server pod gets its own LoadBalancer Service bound to a shared,
pre-provisioned load balancer. The plugin hands out listener ports on that
load balancer from a fixed range, so pods sharing a balancer never collide,
and records the resulting addresses in the pod's network status.

Pods configure the plugin through their network config entries:

- ``SlbIds``: id of the load balancer to bind to
- ``PortProtocols``: ``port[/protocol]`` list, e.g. ``7777/UDP,8080``
- ``Fixed``: keep the allocated ports and the Service when the pod is
  replaced by its GameServerSet
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from ..config.settings import CloudProviderOptions
from ..exceptions import (
    ClusterAPIError,
    ClusterClientError,
    InternalError,
    PluginErrorType,
    ResourceNotFoundError,
    to_plugin_error,
)
from ..kube.client import ClusterClient
from ..models.network import NetworkConfParam, NetworkState, NetworkStatus
from ..models.resources import (
    PROTOCOL_TCP,
    ExposureService,
    GameServerPod,
    OwnerReference,
    ServicePort,
    ServiceType,
)
from ..networking import network_state
from ..networking.network_manager import OWNER_GSS_KEY, NetworkManager, parse_bool
from ..networking.port_allocator import PortAllocator
from ..utils.logging import LogContext, get_logger
from .base import NetworkPlugin

logger = get_logger(__name__)

SLB_NETWORK = "AlibabaCloud-SLB"
ALIAS_SLB = "LB-Network"

SLB_IDS_CONFIG_NAME = "SlbIds"
PORT_PROTOCOLS_CONFIG_NAME = "PortProtocols"
FIXED_CONFIG_NAME = "Fixed"

SLB_LISTENER_OVERRIDE_KEY = "service.beta.kubernetes.io/alibaba-cloud-loadbalancer-force-override-listeners"
SLB_ID_ANNOTATION_KEY = "service.beta.kubernetes.io/alibaba-cloud-loadbalancer-id"
SLB_ID_LABEL_KEY = "service.k8s.alibaba/loadbalancer-id"
SVC_SELECTOR_KEY = "statefulset.kubernetes.io/pod-name"
ALLOCATED_PORTS_KEY = f"game.kruise.io/{SLB_NETWORK}-ports-allocated"


@dataclass
class LbConfig:
    """Parsed network configuration of one pod."""
    lb_id: str = ""
    target_ports: List[int] = field(default_factory=list)
    protocols: List[str] = field(default_factory=list)
    is_fixed: bool = False


def parse_lb_config(conf: Iterable[NetworkConfParam]) -> LbConfig:
    """Parse network config entries, skipping malformed ports and booleans."""
    config = LbConfig()
    for param in conf:
        if param.name == SLB_IDS_CONFIG_NAME:
            config.lb_id = param.value
        elif param.name == PORT_PROTOCOLS_CONFIG_NAME:
            for entry in param.value.split(","):
                parts = entry.split("/")
                try:
                    port = int(parts[0].strip())
                except ValueError:
                    continue
                config.target_ports.append(port)
                if len(parts) != 2:
                    config.protocols.append(PROTOCOL_TCP)
                else:
                    config.protocols.append(parts[1].strip())
        elif param.name == FIXED_CONFIG_NAME:
            try:
                config.is_fixed = parse_bool(param.value)
            except ValueError:
                continue
    return config


def format_port_list(ports: Iterable[int]) -> str:
    return ",".join(str(port) for port in ports)


def parse_port_list(value: str) -> List[int]:
    """Parse a comma separated port list.

    Raises:
        ValueError: If any entry is not an integer
    """
    return [int(item.strip()) for item in value.split(",")]


def select_owner_reference(pod: GameServerPod, game_server_set: Optional[OwnerReference],
                           is_fixed: bool) -> OwnerReference:
    """Owner of the pod's Service.

    Under fixed identity the Service belongs to the GameServerSet so that it
    outlives the pod; otherwise it is garbage collected with the pod.
    """
    if is_fixed and game_server_set is not None:
        return game_server_set.model_copy(update={"controller": True, "block_owner_deletion": True})
    return pod.owner_reference()


def owned_by_pod(service: ExposureService, pod: GameServerPod) -> bool:
    """Whether the Service is garbage collected together with the pod."""
    return any(
        ref.kind == pod.kind and ref.name == pod.name
        for ref in service.owner_references
    )


def observed_allocations(services: Iterable[ExposureService]) -> List[Tuple[str, List[int]]]:
    """(lb id, ports) held by existing LoadBalancer Services bound to a balancer."""
    observed = []
    for service in services:
        lb_id = service.labels.get(SLB_ID_LABEL_KEY)
        if lb_id and service.service_type == ServiceType.LOAD_BALANCER:
            observed.append((lb_id, service.port_numbers()))
    return observed


class SlbPlugin(NetworkPlugin):
    """Exposes each game server through a listener on a shared load balancer."""

    def __init__(self):
        self._allocator: Optional[PortAllocator] = None

    @property
    def name(self) -> str:
        return SLB_NETWORK

    @property
    def alias(self) -> str:
        return ALIAS_SLB

    @property
    def initialized(self) -> bool:
        return self._allocator is not None

    @property
    def allocator(self) -> PortAllocator:
        if self._allocator is None:
            raise InternalError(f"Network plugin {self.name} used before init")
        return self._allocator

    async def init(self, client: ClusterClient, options: CloudProviderOptions) -> None:
        slb_options = options.alibabacloud.slb
        allocator = PortAllocator(slb_options.min_port, slb_options.max_port)

        try:
            services = await client.list_services()
        except ClusterClientError as e:
            raise to_plugin_error(e, PluginErrorType.API_CALL_ERROR) from e

        await allocator.bootstrap(observed_allocations(services))
        self._allocator = allocator
        logger.info(f"Network plugin {self.name} initialized from {len(services)} services")

    async def on_pod_added(self, client: ClusterClient, pod: GameServerPod) -> GameServerPod:
        with LogContext("on_pod_added", logger_name=__name__, plugin=self.name, pod=pod.key):
            await self._create_service(client, pod, NetworkManager(pod))
            return pod

    async def on_pod_updated(self, client: ClusterClient, pod: GameServerPod) -> GameServerPod:
        with LogContext("on_pod_updated", logger_name=__name__, plugin=self.name, pod=pod.key):
            network_manager = NetworkManager(pod)
            network_disabled = network_manager.get_network_disabled()

            status = network_manager.get_network_status()
            if status is None:
                return self._persist_status(network_manager, pod, NetworkStatus(
                    current_network_state=NetworkState.NOT_READY,
                    desired_network_state=network_state.desired_state(network_disabled)
                ))

            try:
                service = await client.get_service(pod.namespace, pod.name)
            except ResourceNotFoundError:
                logger.info(f"Service for pod {pod.key} is missing, recreating it")
                await self._create_service(client, pod, network_manager)
                return pod
            except ClusterClientError as e:
                raise to_plugin_error(e, PluginErrorType.API_CALL_ERROR) from e

            new_type = network_state.desired_service_type(network_disabled, service)
            if new_type is not None:
                service.service_type = new_type
                try:
                    await client.update_service(service)
                except ClusterClientError as e:
                    raise to_plugin_error(e, PluginErrorType.API_CALL_ERROR) from e
                logger.info(f"Switched service {service.key} to {new_type.value}")
                return pod

            status = network_state.compute_network_status(status, pod.pod_ip, service)
            status.desired_network_state = network_state.desired_state(network_disabled)
            return self._persist_status(network_manager, pod, status)

    async def on_pod_deleted(self, client: ClusterClient, pod: GameServerPod) -> None:
        with LogContext("on_pod_deleted", logger_name=__name__, plugin=self.name, pod=pod.key):
            try:
                service = await client.get_service(pod.namespace, pod.name)
            except ClusterClientError as e:
                # Without the Service the ports it held cannot be identified;
                # they stay allocated until the next init.
                logger.error(f"Cannot release ports of pod {pod.key}: {e}")
                raise to_plugin_error(e, PluginErrorType.API_CALL_ERROR) from e

            lb_id = service.annotations.get(SLB_ID_ANNOTATION_KEY, "")
            if not owned_by_pod(service, pod):
                logger.info(
                    f"Service {service.key} outlives pod {pod.key}, keeping ports "
                    f"{service.port_numbers()} on load balancer {lb_id}"
                )
                return

            for port in service.port_numbers():
                await self.allocator.deallocate(lb_id, port)
            logger.info(f"Released ports {service.port_numbers()} of pod {pod.key} on load balancer {lb_id}")

    # Private helper methods

    async def _create_service(self, client: ClusterClient, pod: GameServerPod,
                              network_manager: NetworkManager) -> None:
        config = parse_lb_config(network_manager.get_network_config())
        if not config.lb_id:
            raise InternalError(
                f"Pod {pod.key} has no {SLB_IDS_CONFIG_NAME} network config",
                details={"pod": pod.key}
            )
        if not config.target_ports:
            raise InternalError(
                f"Pod {pod.key} has no valid {PORT_PROTOCOLS_CONFIG_NAME} network config",
                details={"pod": pod.key}
            )

        ports, fresh = await self._ports_for(pod, config)
        game_server_set = await self._lookup_game_server_set(client, pod) if config.is_fixed else None

        service = ExposureService(
            name=pod.name,
            namespace=pod.namespace,
            annotations={
                SLB_LISTENER_OVERRIDE_KEY: "true",
                SLB_ID_ANNOTATION_KEY: config.lb_id,
            },
            service_type=ServiceType.LOAD_BALANCER,
            selector={SVC_SELECTOR_KEY: pod.name},
            ports=[
                ServicePort(
                    name=str(target_port),
                    port=port,
                    protocol=protocol,
                    target_port=target_port
                )
                for target_port, port, protocol in zip(config.target_ports, ports, config.protocols)
            ],
            owner_references=[select_owner_reference(pod, game_server_set, config.is_fixed)]
        )

        try:
            await client.create_service(service)
        except ClusterClientError as e:
            if not fresh and isinstance(e, ClusterAPIError) and e.status == 409:
                # Service kept by the GameServerSet from the pod's previous incarnation
                logger.info(f"Service {service.key} already exists, reusing ports {ports}")
                return
            if fresh:
                for port in ports:
                    await self.allocator.deallocate(config.lb_id, port)
                pod.annotations.pop(ALLOCATED_PORTS_KEY, None)
            raise to_plugin_error(e, PluginErrorType.API_CALL_ERROR) from e

        logger.info(f"Exposed pod {pod.key} on load balancer {config.lb_id} ports {ports}")

    async def _ports_for(self, pod: GameServerPod, config: LbConfig) -> Tuple[List[int], bool]:
        """Ports recorded on the pod by an earlier allocation, else fresh ones."""
        recorded = pod.annotations.get(ALLOCATED_PORTS_KEY)
        if recorded:
            try:
                ports = parse_port_list(recorded)
            except ValueError as e:
                raise InternalError(
                    f"Malformed {ALLOCATED_PORTS_KEY} annotation on pod {pod.key}: {recorded!r}",
                    details={"pod": pod.key, "annotation": ALLOCATED_PORTS_KEY},
                    cause=e
                )
            if len(ports) < len(config.target_ports):
                raise InternalError(
                    f"Pod {pod.key} records {len(ports)} allocated ports for "
                    f"{len(config.target_ports)} target ports",
                    details={"pod": pod.key, "annotation": ALLOCATED_PORTS_KEY}
                )
            await self.allocator.reserve(config.lb_id, ports)
            return ports, False

        ports = await self.allocator.allocate(config.lb_id, len(config.target_ports))
        pod.annotations[ALLOCATED_PORTS_KEY] = format_port_list(ports)
        return ports, True

    async def _lookup_game_server_set(self, client: ClusterClient,
                                      pod: GameServerPod) -> Optional[OwnerReference]:
        gss_name = pod.labels.get(OWNER_GSS_KEY)
        if not gss_name:
            logger.warning(f"Pod {pod.key} asks for fixed network but has no {OWNER_GSS_KEY} label")
            return None
        try:
            return await client.get_game_server_set(pod.namespace, gss_name)
        except ClusterClientError as e:
            logger.warning(f"GameServerSet {gss_name} of pod {pod.key} not available, owning service by pod: {e}")
            return None

    def _persist_status(self, network_manager: NetworkManager, pod: GameServerPod,
                        status: NetworkStatus) -> GameServerPod:
        try:
            return network_manager.update_network_status(status, pod)
        except ValueError as e:
            raise to_plugin_error(e, PluginErrorType.INTERNAL_ERROR) from e
