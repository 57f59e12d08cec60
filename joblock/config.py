"""
Application configuration using Pydantic Settings.
Loads configuration from environment variables with sensible defaults.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Lock store
    lock_backend: str = "memory"  # memory or redis
    redis_url: str | None = None
    lock_key_prefix: str = ""

    # Lock behavior
    lock_ttl_seconds: int | None = None  # None keeps locks until released
    lock_owner_tokens: bool = False

    # Worker Configuration
    worker_id: str = "worker-1"

    # Observability
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_service_name: str = "joblock"
    log_level: str = "INFO"
    log_format: str = "json"  # json or console


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
