"""
Configuration utilities for the game server network subsystem.

This module provides helpers to load settings from YAML or JSON files and to
sanity check a settings object before plugins are initialised.
"""

import json
import yaml
from typing import Dict, Any, List, Optional, Union
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import ConfigurationError
from .settings import Settings


def load_config_from_file(file_path: Union[str, Path]) -> Dict[str, Any]:
    """
    Load configuration from a file (JSON or YAML).

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary containing configuration data

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file format is not supported or invalid
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {file_path}")

    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            if file_path.suffix.lower() in ['.json']:
                return json.load(f)
            elif file_path.suffix.lower() in ['.yml', '.yaml']:
                return yaml.safe_load(f) or {}
            else:
                raise ValueError(f"Unsupported file format: {file_path.suffix}")
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ValueError(f"Invalid configuration file format: {e}")


def create_settings_from_dict(config_dict: Dict[str, Any]) -> Settings:
    """
    Create Settings instance from configuration dictionary.

    Unknown top-level keys are ignored.

    Args:
        config_dict: Configuration dictionary

    Returns:
        Settings instance
    """
    known_fields = set(Settings.model_fields)
    settings_dict = {key: value for key, value in config_dict.items() if key in known_fields}
    return Settings(**settings_dict)


def load_settings(file_path: Optional[Union[str, Path]] = None) -> Settings:
    """
    Build settings from an optional config file layered over the environment.

    Args:
        file_path: Optional YAML or JSON file

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If the file cannot be read or fails validation
    """
    if file_path is None:
        return Settings()

    try:
        return create_settings_from_dict(load_config_from_file(file_path))
    except (FileNotFoundError, ValueError, PydanticValidationError) as e:
        raise ConfigurationError(
            f"Failed to load configuration from {file_path}: {e}",
            details={"file_path": str(file_path)},
            cause=e
        )


def validate_configuration(settings: Settings) -> List[str]:
    """
    Validate configuration for common issues.

    Args:
        settings: Settings instance to validate

    Returns:
        List of validation warnings/errors
    """
    issues = []

    provider = settings.cloud_provider.alibabacloud
    if not provider.enable:
        issues.append("No network plugin is enabled")
    else:
        slb = provider.slb
        if slb.max_port - slb.min_port < 2:
            issues.append(
                f"Load balancer port range [{slb.min_port}, {slb.max_port}) holds a single port"
            )
        if settings.api.port in range(slb.min_port, slb.max_port):
            issues.append(
                f"API port {settings.api.port} overlaps the load balancer port range"
            )

    if not settings.kubernetes.in_cluster and not settings.kubernetes.kubeconfig:
        issues.append("Out-of-cluster mode without a kubeconfig falls back to the default kubeconfig location")

    if settings.is_production() and settings.debug:
        issues.append("Debug mode should not be enabled in production")

    return issues
