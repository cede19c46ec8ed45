"""
Networking components: port allocation, pod network annotations and network state.
"""

from .port_allocator import PortAllocator, PortRange
from .network_manager import NetworkManager

__all__ = [
    "PortAllocator",
    "PortRange",
    "NetworkManager"
]
