"""
Application settings loaded from environment variables.
Uses pydantic-settings for type-safe configuration.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with defaults for development."""

    # Environment
    environment: str = "development"
    debug: bool = True

    # Local persistence (key-value blobs, one key per collection)
    storage_backend: Literal["memory", "file", "redis"] = "file"
    data_dir: str = ".cooperativa"
    storage_key_prefix: str = "cooperativa"

    # Redis storage backend
    redis_url: str = "redis://localhost:6379/0"
    redis_socket_timeout: int = 5  # Seconds, for both connect and read/write

    # Sync mode: "local" keeps everything in storage, "remote" talks to the REST API
    # for harvests, inventory and losses (reminders stay local in both modes)
    sync_mode: Literal["local", "remote"] = "local"
    api_base_url: str = ""
    api_timeout_seconds: float = 10.0
    remote_max_workers: int = 2

    # Store behaviour
    seed_demo_data: bool = True
    critical_stock_threshold: int = 10
    upcoming_reminders_limit: int = 8

    # REST API (backend of the remote mode)
    database_url: str = "sqlite:///./cooperativa.db"
    rest_api_port: int = 8000
    allowed_origins: str = ""  # Comma-separated; empty uses the development defaults

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    def validate_runtime_config(self) -> list[str]:
        """
        Validate that the configuration is coherent.
        Returns a list of validation errors. Empty list means all checks pass.
        """
        errors = []

        if self.sync_mode == "remote" and not self.api_base_url:
            errors.append("API_BASE_URL must be set when SYNC_MODE=remote")

        if self.critical_stock_threshold < 0:
            errors.append("CRITICAL_STOCK_THRESHOLD must not be negative")

        if self.upcoming_reminders_limit < 1:
            errors.append("UPCOMING_REMINDERS_LIMIT must be at least 1")

        if self.environment == "production":
            if self.debug:
                errors.append("DEBUG must be False in production")

            if self.storage_backend == "memory":
                errors.append("STORAGE_BACKEND=memory loses all data on restart")

        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience exports
settings = get_settings()

DATABASE_URL = settings.database_url
REDIS_URL = settings.redis_url
