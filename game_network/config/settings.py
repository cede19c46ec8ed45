"""
Configuration management for the game server network subsystem.

This module provides configuration classes for all service settings with
environment variable support, validation, and deployment environment handling.
"""

from typing import Dict, Any, Optional
from enum import Enum
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings


class Environment(str, Enum):
    """Supported deployment environments."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Supported logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SLBOptions(BaseModel):
    """Listener port range handed out on each load balancer."""

    min_port: int = Field(
        default=500,
        ge=1,
        le=65535,
        description="First port of the allocatable range (inclusive)"
    )
    max_port: int = Field(
        default=700,
        ge=2,
        le=65536,
        description="End of the allocatable range (exclusive)"
    )

    @model_validator(mode='after')
    def validate_port_range(self):
        """Validate that the range holds at least one port."""
        if self.min_port >= self.max_port:
            raise ValueError(
                f"Invalid port range: min_port {self.min_port} must be lower than max_port {self.max_port}"
            )
        return self


class AlibabaCloudOptions(BaseModel):
    """Options of the load balancer network provider."""

    enable: bool = Field(
        default=True,
        description="Register the load balancer network plugin"
    )
    slb: SLBOptions = Field(
        default_factory=SLBOptions,
        description="Load balancer listener port options"
    )


class CloudProviderOptions(BaseModel):
    """Options for every cloud provider network plugin."""

    alibabacloud: AlibabaCloudOptions = Field(
        default_factory=AlibabaCloudOptions,
        description="Load balancer network provider options"
    )


class KubernetesConfig(BaseModel):
    """Orchestration API connection settings."""

    in_cluster: bool = Field(
        default=True,
        description="Use the service account mounted into the pod"
    )
    kubeconfig: Optional[str] = Field(
        default=None,
        description="Path to a kubeconfig file when not running in-cluster"
    )
    context: Optional[str] = Field(
        default=None,
        description="kubeconfig context to use"
    )


class APIConfig(BaseModel):
    """HTTP observer API configuration."""

    host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    port: int = Field(
        default=8081,
        ge=1024,
        le=65535,
        description="API server port"
    )
    title: str = Field(
        default="Game Server Network",
        description="API title"
    )
    description: str = Field(
        default="Load balancer port allocation and network status for game servers",
        description="API description"
    )
    version: str = Field(
        default="0.1.0",
        description="API version"
    )


class MonitoringConfig(BaseModel):
    """Logging and observability configuration."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application log level"
    )
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    structured_logging: bool = Field(
        default=True,
        description="Emit JSON log lines"
    )


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    environment: Environment = Field(
        default=Environment.PRODUCTION,
        description="Deployment environment"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode"
    )

    cloud_provider: CloudProviderOptions = Field(
        default_factory=CloudProviderOptions,
        description="Cloud provider network plugin options"
    )
    kubernetes: KubernetesConfig = Field(
        default_factory=KubernetesConfig,
        description="Kubernetes API configuration"
    )
    api: APIConfig = Field(
        default_factory=APIConfig,
        description="Observer API configuration"
    )
    monitoring: MonitoringConfig = Field(
        default_factory=MonitoringConfig,
        description="Monitoring configuration"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_prefix": "GSN_",
        "extra": "ignore"
    }

    @model_validator(mode='after')
    def validate_environment_specific_settings(self):
        """Apply environment-specific configuration overrides."""
        if self.environment == Environment.DEVELOPMENT:
            self.monitoring.log_level = LogLevel.DEBUG
            self.monitoring.structured_logging = False
            self.debug = True
        elif self.environment == Environment.TESTING:
            self.monitoring.log_level = LogLevel.WARNING
            self.debug = False
        return self

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == Environment.TESTING

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return self.model_dump(mode="json")


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get the global settings instance."""
    return settings
