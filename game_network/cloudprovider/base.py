"""Base class for cloud provider network plugins."""

from abc import ABC, abstractmethod

from ..config.settings import CloudProviderOptions
from ..kube.client import ClusterClient
from ..models.resources import GameServerPod


class NetworkPlugin(ABC):
    """Abstract base class for network plugins.

    A network plugin makes game server pods reachable from outside the
    cluster. The host controller calls the lifecycle hooks concurrently for
    different pods and retries a hook by calling it again after it raised,
    so every hook must be safe to repeat.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique plugin name, referenced by the pod's network type."""
        pass

    @property
    @abstractmethod
    def alias(self) -> str:
        """Alternative name accepted wherever the name is."""
        pass

    @property
    def initialized(self) -> bool:
        return False

    @abstractmethod
    async def init(self, client: ClusterClient, options: CloudProviderOptions) -> None:
        """Prepare the plugin before any hook is called.

        Raises:
            ApiCallError: Existing resources could not be listed
        """
        pass

    @abstractmethod
    async def on_pod_added(self, client: ClusterClient, pod: GameServerPod) -> GameServerPod:
        """Expose a newly created pod.

        Returns:
            The pod, possibly with updated annotations for the caller to persist

        Raises:
            ApiCallError: Orchestration API failure
            InternalError: Local invariant violated
        """
        pass

    @abstractmethod
    async def on_pod_updated(self, client: ClusterClient, pod: GameServerPod) -> GameServerPod:
        """Reconcile the pod's exposure and recompute its network status.

        Returns:
            The pod carrying its new network status

        Raises:
            ApiCallError: Orchestration API failure
            InternalError: Local invariant violated
        """
        pass

    @abstractmethod
    async def on_pod_deleted(self, client: ClusterClient, pod: GameServerPod) -> None:
        """Release what the pod held.

        Raises:
            ApiCallError: Orchestration API failure
            InternalError: Local invariant violated
        """
        pass
