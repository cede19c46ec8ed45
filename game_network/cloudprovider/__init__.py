"""Cloud provider network plugins.

- SlbPlugin: per-pod listeners on a shared load balancer
"""

from .base import NetworkPlugin
from .registry import PluginRegistry, build_registry
from .slb import SlbPlugin

__all__ = ["NetworkPlugin", "PluginRegistry", "build_registry", "SlbPlugin"]
