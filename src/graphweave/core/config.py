"""
Configuration management for graphweave.
"""

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with validation."""

    model_config = SettingsConfigDict(
        env_prefix="GRAPHWEAVE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Environment
    environment: str = Field(default="development", description="Deployment environment")
    debug: bool = Field(default=False, description="Debug mode")

    # Application
    app_name: str = "graphweave"
    app_version: str = "0.1.0"

    # Gateway
    api_host: str = "0.0.0.0"
    api_port: int = Field(default=8000, ge=1, le=65535)
    graphql_path: str = Field(
        default="/graphql",
        description="Path the gateway serves the merged schema on"
    )
    remote_endpoints: str = Field(
        default="",
        description="Comma separated GraphQL endpoints merged into the gateway schema at startup"
    )

    # Delegation
    remote_timeout_seconds: float = Field(
        default=30.0,
        ge=1,
        le=300,
        description="Default timeout for remote subschema requests"
    )
    log_delegated_documents: bool = Field(
        default=False,
        description="Log every printed sub-request at debug level"
    )

    # Observability
    log_level: str = Field(default="INFO")

    @field_validator("environment")
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "staging", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"Log level must be one of {allowed}")
        return v_upper

    @field_validator("graphql_path")
    def validate_graphql_path(cls, v: str) -> str:
        """Validate the gateway path."""
        if not v.startswith("/"):
            raise ValueError("GraphQL path must start with '/'")
        return v.rstrip("/") or "/"

    @property
    def remote_endpoint_urls(self) -> List[str]:
        """Remote endpoints as a list of URLs."""
        return [url.strip() for url in self.remote_endpoints.split(",") if url.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.environment == "testing"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
