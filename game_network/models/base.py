"""Base response models for the observer API."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BaseResponse(BaseModel):
    """Base response model with common fields."""
    timestamp: datetime = Field(default_factory=_utcnow)
    request_id: Optional[str] = None


class ErrorResponse(BaseResponse):
    """Standard error response format."""
    error: str = Field(..., description="Error code")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")


class HealthResponse(BaseResponse):
    """Liveness of the network subsystem."""
    status: str = Field(..., description="'ok' once every registered plugin is initialised")
    plugins: Dict[str, bool] = Field(default_factory=dict, description="Initialisation state per plugin")


class PluginInfo(BaseModel):
    """A registered network plugin."""
    name: str
    alias: str
    initialized: bool


class PluginListResponse(BaseResponse):
    """All registered network plugins."""
    plugins: List[PluginInfo] = Field(default_factory=list)


class LoadBalancerPortUsage(BaseModel):
    """Listener port usage of one load balancer."""
    lb_id: str
    total_ports: int
    allocated_ports: int
    available_ports: int
    allocation_percentage: float


class PortUsageResponse(BaseResponse):
    """Listener port usage of every load balancer known to a plugin."""
    plugin: str
    min_port: int
    max_port: int
    load_balancers: List[LoadBalancerPortUsage] = Field(default_factory=list)
