"""Pydantic configuration models.

The configuration hierarchy:
- AppConfig: root, one attribute per section
- SystemConfig, GitHubConfig, CacheConfig, RefreshConfig, StorageConfig,
  AuthConfig, NotificationsConfig, SharingConfig

String values may reference environment variables as ${VAR_NAME} with an
optional default: ${VAR_NAME:default_value}
"""

import os
import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::([^}]*))?\}")


class LogLevel(str, Enum):
    """Supported logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def _substitute(value: Any) -> Any:
    if isinstance(value, str):

        def replacer(match: re.Match[str]) -> str:
            var_name, default_value = match.group(1), match.group(2)
            env_value = os.getenv(var_name)
            if env_value is not None:
                return env_value
            if default_value is not None:
                return default_value
            raise ValueError(f"Required environment variable '{var_name}' not found")

        return _ENV_PATTERN.sub(replacer, value)
    if isinstance(value, dict):
        return {k: _substitute(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute(item) for item in value]
    return value


class BaseConfigModel(BaseModel):
    """Base configuration model with environment variable substitution."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    @model_validator(mode="before")
    @classmethod
    def substitute_env_vars(cls, values: Any) -> Any:
        """Substitute ``${VAR}`` and ``${VAR:default}`` in string values.

        Raises:
            ValueError: If a referenced variable without default is unset
        """
        if isinstance(values, dict):
            return {key: _substitute(value) for key, value in values.items()}
        return values


class SystemConfig(BaseConfigModel):
    """Process-wide settings."""

    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")


class GitHubConfig(BaseConfigModel):
    """GraphQL endpoint and transport settings."""

    graphql_url: str = Field(
        default="https://api.github.com/graphql", description="GraphQL endpoint"
    )
    timeout: int = Field(default=30, ge=1, description="Request timeout in seconds")
    max_retries: int = Field(
        default=2, ge=0, description="Retries for failed queries (mutations never retry)"
    )
    retry_backoff_factor: float = Field(default=2.0, ge=0.0)
    max_concurrent_requests: int = Field(default=4, ge=1)
    search_limit: int = Field(default=100, ge=1, le=100, description="Results per search")

    @field_validator("graphql_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("graphql_url must be an http(s) URL")
        return v


class CacheConfig(BaseConfigModel):
    """Query cache settings."""

    ttl_seconds: int = Field(default=300, ge=0, description="Freshness window")


class RefreshConfig(BaseConfigModel):
    """Periodic refresh settings."""

    enabled: bool = Field(default=True)
    interval_seconds: int = Field(default=300, ge=1, description="Seconds between refreshes")


class StorageConfig(BaseConfigModel):
    """Local state file location."""

    path: str = Field(
        default="~/.config/prtriage/state.json", description="JSON settings file"
    )


class AuthConfig(BaseConfigModel):
    """Credential resolution settings."""

    use_gh_cli: bool = Field(default=True, description="Try `gh auth token` first")
    token_env_var: str = Field(default="GITHUB_TOKEN")
    token_file: str | None = Field(
        default="~/.config/prtriage/token", description="Token file, 0600 permissions"
    )


class NotificationsConfig(BaseConfigModel):
    """Which events produce notifications."""

    enabled: bool = Field(default=True)
    reviews: bool = Field(default=True, description="Notify about new human reviews")
    review_requests: bool = Field(default=True, description="Notify about new requests")


class SharingConfig(BaseConfigModel):
    """Share message settings."""

    ticket_url_template: str | None = Field(
        default=None,
        description="Ticket link template with a {ticket} placeholder",
    )

    @field_validator("ticket_url_template")
    @classmethod
    def validate_template(cls, v: str | None) -> str | None:
        if v and "{ticket}" not in v:
            raise ValueError("ticket_url_template must contain '{ticket}'")
        return v or None


class AppConfig(BaseConfigModel):
    """Root configuration."""

    system: SystemConfig = Field(default_factory=SystemConfig)
    github: GitHubConfig = Field(default_factory=GitHubConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    refresh: RefreshConfig = Field(default_factory=RefreshConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    notifications: NotificationsConfig = Field(default_factory=NotificationsConfig)
    sharing: SharingConfig = Field(default_factory=SharingConfig)
