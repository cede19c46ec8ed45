"""
Read-only observer endpoints: health, registered plugins and port usage.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status

from ..cloudprovider.registry import PluginRegistry
from ..models.base import (
    HealthResponse,
    LoadBalancerPortUsage,
    PluginInfo,
    PluginListResponse,
    PortUsageResponse,
)
from ..networking.port_allocator import PortAllocator
from ..utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_registry(request: Request) -> PluginRegistry:
    """Registry attached to the application by ``create_app``."""
    return request.app.state.registry


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health(response: Response, registry: PluginRegistry = Depends(get_registry)):
    """Report ok once every registered plugin finished init."""
    plugins = {plugin.name: plugin.initialized for plugin in registry.plugins()}
    ready = all(plugins.values())
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return HealthResponse(status="ok" if ready else "initializing", plugins=plugins)


@router.get("/plugins", response_model=PluginListResponse, tags=["Plugins"])
async def list_plugins(registry: PluginRegistry = Depends(get_registry)):
    """List registered network plugins."""
    return PluginListResponse(plugins=[
        PluginInfo(name=plugin.name, alias=plugin.alias, initialized=plugin.initialized)
        for plugin in registry.plugins()
    ])


@router.get("/plugins/{name}/ports", response_model=PortUsageResponse, tags=["Plugins"])
async def get_port_usage(name: str, registry: PluginRegistry = Depends(get_registry)):
    """Listener port usage per load balancer for a port allocating plugin."""
    plugin = registry.get(name)
    if not plugin.initialized:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Network plugin {plugin.name} is not initialized"
        )

    allocator = getattr(plugin, "allocator", None)
    if not isinstance(allocator, PortAllocator):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Network plugin {plugin.name} does not allocate ports"
        )

    stats = await allocator.get_port_usage_stats()
    return PortUsageResponse(
        plugin=plugin.name,
        min_port=allocator.min_port,
        max_port=allocator.max_port,
        load_balancers=[
            LoadBalancerPortUsage(lb_id=lb_id, **usage)
            for lb_id, usage in stats.items()
        ]
    )
