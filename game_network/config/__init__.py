"""
Configuration package for the game server network subsystem.

This package provides configuration management with environment variable support,
validation, and deployment environment handling.
"""

from .settings import (
    Settings,
    SLBOptions,
    AlibabaCloudOptions,
    CloudProviderOptions,
    KubernetesConfig,
    APIConfig,
    MonitoringConfig,
    Environment,
    LogLevel,
    settings,
    get_settings
)

from .utils import (
    load_config_from_file,
    create_settings_from_dict,
    load_settings,
    validate_configuration
)

__all__ = [
    # Settings classes
    "Settings",
    "SLBOptions",
    "AlibabaCloudOptions",
    "CloudProviderOptions",
    "KubernetesConfig",
    "APIConfig",
    "MonitoringConfig",

    # Enums
    "Environment",
    "LogLevel",

    # Settings instances and functions
    "settings",
    "get_settings",

    # Utility functions
    "load_config_from_file",
    "create_settings_from_dict",
    "load_settings",
    "validate_configuration"
]
