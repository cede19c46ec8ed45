"""
Orchestration platform client used by the network plugins.

Plugins depend on the small ``ClusterClient`` contract only; the
``KubernetesClusterClient`` implements it on top of ``kubernetes_asyncio``.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from kubernetes_asyncio import client as k8s
from kubernetes_asyncio import config as k8s_config
from kubernetes_asyncio.client.exceptions import ApiException

from ..config.settings import Settings
from ..exceptions import ClusterAPIError, ConfigurationError, ResourceNotFoundError
from ..models.resources import ExposureService, OwnerReference
from ..utils.logging import get_logger
from .conversions import owner_reference_from_object, service_from_k8s, service_to_k8s

logger = get_logger(__name__)

GAME_SERVER_SET_GROUP = "game.kruise.io"
GAME_SERVER_SET_VERSION = "v1alpha1"
GAME_SERVER_SET_PLURAL = "gameserversets"


class ClusterClient(ABC):
    """Abstract orchestration API used by network plugins.

    Implementations raise ``ResourceNotFoundError`` for missing objects and
    ``ClusterAPIError`` for every other failure.
    """

    @abstractmethod
    async def list_services(self) -> List[ExposureService]:
        """List Services across all namespaces."""
        pass

    @abstractmethod
    async def get_service(self, namespace: str, name: str) -> ExposureService:
        """Read one Service."""
        pass

    @abstractmethod
    async def create_service(self, service: ExposureService) -> ExposureService:
        """Create a Service and return the stored object."""
        pass

    @abstractmethod
    async def update_service(self, service: ExposureService) -> ExposureService:
        """Replace a Service and return the stored object."""
        pass

    @abstractmethod
    async def get_game_server_set(self, namespace: str, name: str) -> OwnerReference:
        """Controller reference of a GameServerSet."""
        pass


class KubernetesClusterClient(ClusterClient):
    """ClusterClient backed by the Kubernetes API."""

    def __init__(self, api_client: k8s.ApiClient):
        self.api_client = api_client
        self.core_v1 = k8s.CoreV1Api(api_client)
        self.custom_objects = k8s.CustomObjectsApi(api_client)

    async def close(self) -> None:
        await self.api_client.close()

    async def list_services(self) -> List[ExposureService]:
        try:
            result = await self.core_v1.list_service_for_all_namespaces()
        except ApiException as e:
            raise self._translate(e, "list_services")
        return [service_from_k8s(item) for item in result.items or []]

    async def get_service(self, namespace: str, name: str) -> ExposureService:
        try:
            result = await self.core_v1.read_namespaced_service(name, namespace)
        except ApiException as e:
            raise self._translate(e, "get_service", "Service", namespace, name)
        return service_from_k8s(result)

    async def create_service(self, service: ExposureService) -> ExposureService:
        try:
            result = await self.core_v1.create_namespaced_service(
                service.namespace, service_to_k8s(service)
            )
        except ApiException as e:
            raise self._translate(e, "create_service")
        logger.info(f"Created service {service.key}")
        return service_from_k8s(result)

    async def update_service(self, service: ExposureService) -> ExposureService:
        try:
            result = await self.core_v1.replace_namespaced_service(
                service.name, service.namespace, service_to_k8s(service)
            )
        except ApiException as e:
            raise self._translate(e, "update_service", "Service", service.namespace, service.name)
        logger.info(f"Updated service {service.key} to type {service.service_type.value}")
        return service_from_k8s(result)

    async def get_game_server_set(self, namespace: str, name: str) -> OwnerReference:
        try:
            result = await self.custom_objects.get_namespaced_custom_object(
                GAME_SERVER_SET_GROUP,
                GAME_SERVER_SET_VERSION,
                namespace,
                GAME_SERVER_SET_PLURAL,
                name
            )
        except ApiException as e:
            raise self._translate(e, "get_game_server_set", "GameServerSet", namespace, name)
        return owner_reference_from_object(result)

    @staticmethod
    def _translate(error: ApiException, operation: str, kind: Optional[str] = None,
                   namespace: Optional[str] = None, name: Optional[str] = None) -> Exception:
        if error.status == 404 and kind is not None:
            return ResourceNotFoundError(kind, namespace, name, cause=error)
        logger.error(f"Kubernetes API error during {operation}: {error.status} {error.reason}")
        return ClusterAPIError(operation, str(error.reason), status=error.status, cause=error)


async def create_kubernetes_client(settings: Settings) -> KubernetesClusterClient:
    """Load credentials as configured and build a client.

    Raises:
        ConfigurationError: If no usable credentials are found
    """
    kube = settings.kubernetes
    try:
        if kube.in_cluster:
            k8s_config.load_incluster_config()
        else:
            await k8s_config.load_kube_config(config_file=kube.kubeconfig, context=kube.context)
    except (k8s_config.ConfigException, OSError) as e:
        raise ConfigurationError(
            f"Failed to load Kubernetes credentials: {e}",
            details={"in_cluster": kube.in_cluster, "kubeconfig": kube.kubeconfig},
            cause=e
        )
    return KubernetesClusterClient(k8s.ApiClient())
