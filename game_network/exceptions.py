"""
Custom exception classes for the game server network subsystem.

This module defines a hierarchy of custom exceptions that provide structured
error handling throughout the application. Plugin hooks only ever surface two
kinds of failure to the host reconciler: ``ApiCallError`` when a call to the
orchestration platform failed, and ``InternalError`` when a local invariant
was violated.
"""

import logging
from typing import Optional, Dict, Any, List
from enum import Enum


logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Standard error codes for the application."""

    # General errors
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"

    # Orchestration platform errors
    CLUSTER_API_ERROR = "CLUSTER_API_ERROR"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Plugin errors
    PLUGIN_API_CALL_ERROR = "PLUGIN_API_CALL_ERROR"
    PLUGIN_INTERNAL_ERROR = "PLUGIN_INTERNAL_ERROR"
    PORT_ALLOCATION_FAILED = "PORT_ALLOCATION_FAILED"
    PLUGIN_NOT_FOUND = "PLUGIN_NOT_FOUND"
    PLUGIN_ALREADY_REGISTERED = "PLUGIN_ALREADY_REGISTERED"

    # Configuration errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"


class GameNetworkError(Exception):
    """Base exception class for all game network errors.

    This is the root exception class that all other custom exceptions inherit from.
    It provides structured error information including error codes, messages, and
    additional context details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None
    ):
        """Initialize the exception.

        Args:
            message: Human-readable error message
            error_code: Standardized error code
            details: Additional error context and details
            cause: The underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.cause = cause

        logger.debug(f"Exception created: {error_code.value} - {message}", exc_info=cause)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary format for API responses."""
        result = {
            "error": self.error_code.value,
            "message": self.message,
            "details": dict(self.details)
        }

        if self.cause:
            result["details"]["cause"] = str(self.cause)
            result["details"]["cause_type"] = type(self.cause).__name__

        return result


# Plugin Exceptions

class PluginErrorType(str, Enum):
    """The two failure kinds a network plugin reports to its caller."""
    API_CALL_ERROR = "ApiCallError"
    INTERNAL_ERROR = "InternalError"


class NetworkPluginError(GameNetworkError):
    """Base exception for errors raised from network plugin lifecycle hooks."""

    kind: PluginErrorType = PluginErrorType.INTERNAL_ERROR
    default_error_code: ErrorCode = ErrorCode.PLUGIN_INTERNAL_ERROR

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            message=message,
            error_code=self.default_error_code,
            details={"kind": self.kind.value, **(details or {})},
            cause=cause
        )

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.message}"


class ApiCallError(NetworkPluginError):
    """Raised when a call to the orchestration platform failed."""

    kind = PluginErrorType.API_CALL_ERROR
    default_error_code = ErrorCode.PLUGIN_API_CALL_ERROR


class InternalError(NetworkPluginError):
    """Raised when a local invariant of a plugin was violated."""

    kind = PluginErrorType.INTERNAL_ERROR
    default_error_code = ErrorCode.PLUGIN_INTERNAL_ERROR


class PortAllocationError(InternalError):
    """Raised when a load balancer has fewer free ports than requested."""

    default_error_code = ErrorCode.PORT_ALLOCATION_FAILED

    def __init__(self, lb_id: str, requested: int, available: int,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=(f"Load balancer '{lb_id}' has {available} free ports, "
                     f"{requested} requested"),
            details={
                "lb_id": lb_id,
                "requested": requested,
                "available": available,
                **(details or {})
            }
        )
        self.lb_id = lb_id
        self.requested = requested
        self.available = available


_PLUGIN_ERROR_TYPES = {
    PluginErrorType.API_CALL_ERROR: ApiCallError,
    PluginErrorType.INTERNAL_ERROR: InternalError,
}


def to_plugin_error(exc: Exception, kind: PluginErrorType) -> NetworkPluginError:
    """Wrap an arbitrary exception as a plugin error of the given kind.

    Plugin errors are returned unchanged so that a failure keeps the kind it
    was first classified with.
    """
    if isinstance(exc, NetworkPluginError):
        return exc
    message = exc.message if isinstance(exc, GameNetworkError) else str(exc)
    return _PLUGIN_ERROR_TYPES[kind](message or type(exc).__name__, cause=exc)


# Orchestration Client Exceptions

class ClusterClientError(GameNetworkError):
    """Base exception for orchestration platform client failures."""

    def __init__(self, message: str, error_code: ErrorCode = ErrorCode.CLUSTER_API_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, error_code, details, cause)


class ResourceNotFoundError(ClusterClientError):
    """Raised when a requested cluster resource does not exist."""

    def __init__(self, kind: str, namespace: str, name: str, cause: Optional[Exception] = None):
        super().__init__(
            message=f"{kind} '{namespace}/{name}' not found",
            error_code=ErrorCode.RESOURCE_NOT_FOUND,
            details={"kind": kind, "namespace": namespace, "name": name},
            cause=cause
        )
        self.kind = kind
        self.namespace = namespace
        self.name = name


class ClusterAPIError(ClusterClientError):
    """Raised when the orchestration API rejected or failed a request."""

    def __init__(self, operation: str, reason: str, status: Optional[int] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            message=f"Cluster API call '{operation}' failed: {reason}",
            error_code=ErrorCode.CLUSTER_API_ERROR,
            details={"operation": operation, "status": status},
            cause=cause
        )
        self.operation = operation
        self.status = status


# Registry Exceptions

class PluginNotFoundError(GameNetworkError):
    """Raised when no plugin is registered under a name or alias."""

    def __init__(self, name: str, available_plugins: Optional[List[str]] = None):
        message = f"Network plugin '{name}' not found"
        if available_plugins:
            message += f". Available plugins: {', '.join(available_plugins)}"
        super().__init__(
            message=message,
            error_code=ErrorCode.PLUGIN_NOT_FOUND,
            details={"name": name, "available_plugins": available_plugins or []}
        )
        self.name = name
        self.available_plugins = available_plugins or []


class PluginAlreadyRegisteredError(GameNetworkError):
    """Raised when a plugin name or alias is already taken."""

    def __init__(self, name: str):
        super().__init__(
            message=f"Network plugin name or alias '{name}' is already registered",
            error_code=ErrorCode.PLUGIN_ALREADY_REGISTERED,
            details={"name": name}
        )
        self.name = name


# Configuration Exceptions

class ConfigurationError(GameNetworkError):
    """Raised when configuration operations fail."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(
            message=message,
            error_code=ErrorCode.CONFIGURATION_ERROR,
            details=details or {},
            cause=cause
        )
