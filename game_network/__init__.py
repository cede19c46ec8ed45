"""Load balancer port allocation and network status for game server pods."""

__version__ = "0.1.0"
