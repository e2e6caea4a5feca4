"""Application settings using Pydantic BaseSettings."""

import os
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_default_db_path() -> str:
    """Get absolute path to default SQLite database."""
    config_dir = os.path.dirname(os.path.abspath(__file__))
    package_dir = os.path.dirname(config_dir)
    db_path = os.path.join(package_dir, "data", "agentflow.db")
    return f"sqlite:///{db_path}"


def _split_csv(value: str) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server
    app_name: str = Field(default="agentflow-api")
    app_version: str = Field(default="0.1.0")
    environment: str = Field(default="development")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=5000)
    debug: bool = Field(default=False)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = Field(default=None)
    # Prefix for feature routes; health and metrics stay at the root
    global_prefix: str = Field(default="")
    swagger_path: str = Field(default="/swagger-api")
    cors_origins: str = Field(default="*")

    # Database
    database_url: str = Field(default_factory=_get_default_db_path)
    database_url_postgres: str = Field(default="")

    # Auth
    auth_dev_mode: bool = Field(default=False)
    auth_provider: str = Field(default="")
    keycloak_url: str = Field(default="")
    keycloak_realms: str = Field(default="")
    auth0_domain: str = Field(default="")
    auth0_audience: str = Field(default="")
    logto_endpoint: str = Field(default="")
    logto_audience: str = Field(default="")
    jwks_cache_ttl_seconds: int = Field(default=600)
    jwks_cooldown_seconds: int = Field(default=30)
    jwks_timeout_seconds: int = Field(default=10)

    # Error tracking
    sentry_dsn: Optional[str] = Field(default=None)

    # Metrics
    metrics_enabled: bool = Field(default=True)
    metrics_instance_interval_seconds: int = Field(default=60)
    prometheus_pushgateway_url: str = Field(default="")

    # Providers
    provider_default: str = Field(default="openai_compat")
    providers_enabled: str = Field(default="openai_compat")
    provider_timeout_seconds: int = Field(default=120)
    openai_compat_base_url: str = Field(default="https://api.openai.com/v1")
    openai_compat_api_key: str = Field(default="")

    # Graphs
    graph_restore_on_startup: bool = Field(default=True)

    @field_validator("global_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        value = (value or "").strip().strip("/")
        return f"/{value}" if value else ""

    @field_validator("auth_provider")
    @classmethod
    def _normalize_auth_provider(cls, value: str) -> str:
        value = (value or "").strip().lower()
        if value not in ("", "keycloak", "auth0", "logto"):
            raise ValueError(f"Unsupported auth provider: {value}")
        return value

    @property
    def effective_database_url(self) -> str:
        """Get the effective database URL (Postgres takes precedence if set)."""
        return self.database_url_postgres or self.database_url

    @property
    def is_production(self) -> bool:
        return self.environment.strip().lower() in ("production", "prod")

    @property
    def cors_origins_list(self) -> List[str]:
        return _split_csv(self.cors_origins)

    @property
    def keycloak_realms_list(self) -> List[str]:
        return _split_csv(self.keycloak_realms)

    @property
    def providers_enabled_list(self) -> List[str]:
        return _split_csv(self.providers_enabled)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
