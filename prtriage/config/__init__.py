"""Configuration management.

Example usage:
    from prtriage.config import load_config

    config = load_config()
    ttl = config.cache.ttl_seconds
"""

from .exceptions import (
    ConfigurationError,
    ConfigurationFileError,
    ConfigurationValidationError,
)
from .loader import ConfigurationLoader, load_config
from .models import (
    AppConfig,
    AuthConfig,
    BaseConfigModel,
    CacheConfig,
    GitHubConfig,
    LogLevel,
    NotificationsConfig,
    RefreshConfig,
    SharingConfig,
    StorageConfig,
    SystemConfig,
)

__all__ = [
    "AppConfig",
    "AuthConfig",
    "BaseConfigModel",
    "CacheConfig",
    "ConfigurationError",
    "ConfigurationFileError",
    "ConfigurationLoader",
    "ConfigurationValidationError",
    "GitHubConfig",
    "LogLevel",
    "NotificationsConfig",
    "RefreshConfig",
    "SharingConfig",
    "StorageConfig",
    "SystemConfig",
    "load_config",
]
