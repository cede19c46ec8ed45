"""
Registry of the network plugins available to the controller.

The registry is built once at start-up and handed to whoever dispatches pod
events; plugins are added by explicit ``register`` calls.
"""

from typing import Dict, List, Optional

from ..config.settings import Settings
from ..exceptions import PluginAlreadyRegisteredError, PluginNotFoundError
from ..models.resources import GameServerPod
from ..networking.network_manager import NetworkManager
from ..utils.logging import get_logger
from .base import NetworkPlugin
from .slb import SlbPlugin

logger = get_logger(__name__)


class PluginRegistry:
    """Maps plugin names and aliases to plugin instances."""

    def __init__(self):
        self._plugins: Dict[str, NetworkPlugin] = {}
        self._aliases: Dict[str, str] = {}

    def register(self, plugin: NetworkPlugin) -> None:
        """Add a plugin under its name and alias.

        Raises:
            PluginAlreadyRegisteredError: If the name or alias is taken
        """
        for key in (plugin.name, plugin.alias):
            if key in self._plugins or key in self._aliases:
                raise PluginAlreadyRegisteredError(key)
        if plugin.name == plugin.alias:
            raise PluginAlreadyRegisteredError(plugin.alias)

        self._plugins[plugin.name] = plugin
        self._aliases[plugin.alias] = plugin.name
        logger.info(f"Registered network plugin {plugin.name} (alias {plugin.alias})")

    def find(self, name: str) -> Optional[NetworkPlugin]:
        """Plugin registered under a name or alias, or None."""
        if name in self._plugins:
            return self._plugins[name]
        canonical = self._aliases.get(name)
        return self._plugins.get(canonical) if canonical else None

    def get(self, name: str) -> NetworkPlugin:
        """Plugin registered under a name or alias.

        Raises:
            PluginNotFoundError: If nothing is registered under the name
        """
        plugin = self.find(name)
        if plugin is None:
            raise PluginNotFoundError(name, self.names())
        return plugin

    def find_for_pod(self, pod: GameServerPod) -> Optional[NetworkPlugin]:
        """Plugin selected by the pod's network type, or None if it has none."""
        network_type = NetworkManager(pod).get_network_type()
        if network_type is None:
            return None
        return self.get(network_type)

    def names(self) -> List[str]:
        return sorted(self._plugins)

    def plugins(self) -> List[NetworkPlugin]:
        return [self._plugins[name] for name in self.names()]

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    def __len__(self) -> int:
        return len(self._plugins)


def build_registry(settings: Settings) -> PluginRegistry:
    """Registry holding every plugin enabled in the settings."""
    registry = PluginRegistry()
    if settings.cloud_provider.alibabacloud.enable:
        registry.register(SlbPlugin())
    if not len(registry):
        logger.warning("No network plugin is enabled")
    return registry
