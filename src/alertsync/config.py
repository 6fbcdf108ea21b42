"""
Application settings using Pydantic.

Provides environment-based configuration loading with ALERTSYNC_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # Database
    database_url: str = "postgresql+psycopg://localhost/alerting"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 1800

    # Debug
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = True

    # Ruler (Mimir/Cortex)
    ruler_url: str = "http://localhost:8080"
    ruler_namespace: str = "alerting"
    ruler_api_key: str | None = None
    ruler_username: str | None = None
    ruler_password: str | None = None

    # HTTP client settings
    http_timeout: float = 30.0
    http_verify_tls: bool = True

    # Tenancy: the internal default tenant is addressed as the system tenant
    # in the ruler, for deployments that predate multi-tenancy.
    default_tenant_id: str = "edgenode"
    system_tenant_id: str = "edgenode-system"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "ALERTSYNC_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
