"""
Kubernetes access for the network plugins.

Hosts watching pods convert them with ``pod_from_k8s`` before handing them
to a plugin hook.
"""

from .client import ClusterClient, KubernetesClusterClient, create_kubernetes_client
from .conversions import pod_from_k8s, service_from_k8s, service_to_k8s

__all__ = [
    "ClusterClient",
    "KubernetesClusterClient",
    "create_kubernetes_client",
    "pod_from_k8s",
    "service_from_k8s",
    "service_to_k8s"
]
