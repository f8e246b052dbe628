from typing import Literal, Optional
from urllib.parse import urlparse

from pydantic import Field, ValidationError, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from agentmeta.exceptions import ConfigurationError

__all__ = [
    "BaseEnvSettings",
    "AppSettings",
    "app_settings",
    "AgentMetadataSettings",
    "metadata_settings",
    "load_settings",
]


class BaseEnvSettings(BaseSettings):
    """Base class for env settings."""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )


class AppSettings(BaseEnvSettings):
    """Application configuration settings."""

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        description="Logging level to use.",
        alias="LOG_LEVEL",
        default="INFO"
    )


class AgentMetadataSettings(BaseEnvSettings):
    """
    Connection and refresh settings for the agent metadata stream.

    The API host is the base URL of the deployment that serves the
    ``watch-metadata`` event stream. Intervals are expressed in seconds.
    """
    api_host: str = Field(
        default="http://localhost:3000",
        alias="AGENTMETA_API_HOST",
        description="Base URL of the API serving agent metadata streams"
    )

    session_token: Optional[str] = Field(
        default=None,
        alias="AGENTMETA_SESSION_TOKEN",
        description="Session token sent with every stream request"
    )

    refresh_interval: float = Field(
        default=1.0,
        gt=0,
        alias="AGENTMETA_REFRESH_INTERVAL",
        description="Seconds between staleness re-evaluations of the current view"
    )

    reconnect_delay: float = Field(
        default=5.0,
        ge=0,
        alias="AGENTMETA_RECONNECT_DELAY",
        description="Delay before the event stream reconnects after a failure"
    )

    request_timeout: float = Field(
        default=30.0,
        gt=0,
        alias="AGENTMETA_REQUEST_TIMEOUT",
        description="Connect timeout for the event stream request"
    )

    @field_validator("api_host")
    @classmethod
    def validate_api_host(cls, v):
        """Validate API host URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("API host must start with http:// or https://")
        return v.rstrip("/")

    @computed_field
    @property
    def scheme(self) -> str:
        """Get the URL scheme (http/https)."""
        return urlparse(self.api_host).scheme

    @computed_field
    @property
    def hostname(self) -> str:
        """Get the hostname from the API URL."""
        return urlparse(self.api_host).hostname

    def watch_metadata_url(self, agent_id: str) -> str:
        """Return the event stream URL for a single agent."""
        return f"{self.api_host}/api/v2/workspaceagents/{agent_id}/watch-metadata"


def load_settings(settings_cls, **overrides):
    """
    Build a settings instance, turning validation failures into ConfigurationError.

    Args:
        settings_cls: BaseEnvSettings subclass to instantiate
        **overrides: Field values taking precedence over the environment

    Returns:
        Settings instance
    """
    try:
        return settings_cls(**overrides)
    except ValidationError as ex:
        raise ConfigurationError(
            f"Invalid {settings_cls.__name__}",
            details=str(ex)
        ) from ex


# Initialize settings instances
app_settings = load_settings(AppSettings)
metadata_settings = load_settings(AgentMetadataSettings)
