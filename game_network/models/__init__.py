"""Data models package for the game server network subsystem."""

# Response models
from .base import (
    BaseResponse,
    ErrorResponse,
    HealthResponse,
    PluginInfo,
    PluginListResponse,
    LoadBalancerPortUsage,
    PortUsageResponse,
)

# Network status models
from .network import (
    NetworkState,
    NetworkConfParam,
    NetworkPort,
    NetworkAddress,
    NetworkStatus,
)

# Orchestration resources
from .resources import (
    PROTOCOL_TCP,
    PROTOCOL_UDP,
    ServiceType,
    OwnerReference,
    GameServerPod,
    ServicePort,
    LoadBalancerIngress,
    ExposureService,
)

__all__ = [
    "BaseResponse",
    "ErrorResponse",
    "HealthResponse",
    "PluginInfo",
    "PluginListResponse",
    "LoadBalancerPortUsage",
    "PortUsageResponse",
    "NetworkState",
    "NetworkConfParam",
    "NetworkPort",
    "NetworkAddress",
    "NetworkStatus",
    "PROTOCOL_TCP",
    "PROTOCOL_UDP",
    "ServiceType",
    "OwnerReference",
    "GameServerPod",
    "ServicePort",
    "LoadBalancerIngress",
    "ExposureService",
]
