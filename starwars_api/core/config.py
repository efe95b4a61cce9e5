"""Application configuration using pydantic-settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App Info
    app_name: str = "Star Wars API Proxy"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 1

    # Database
    data_save_folder: str = "./data"
    db_file: str = "starwars_api.db"

    @property
    def database_url(self) -> str:
        """SQLite database URL."""
        db_path = Path(self.data_save_folder) / self.db_file
        return f"sqlite+aiosqlite:///{db_path}"

    # Upstream Star Wars API
    swapi_base_url: str = Field(
        default="https://www.swapi.tech/api",
        alias="SWAPI_BASE_URL",
    )
    swapi_timeout_seconds: float = 30.0
    swapi_resolve_references: bool = True

    # Statistics
    stats_interval_minutes: int = Field(default=5, ge=1)
    stats_run_on_startup: bool = True
    stats_cache_key: str = "star_wars_api_stats"
    stats_cache_backend: Literal["database", "memory"] = "database"
    # A run holding the lease longer than this is presumed dead
    stats_lease_seconds: int = Field(default=600, ge=1)

    # Set to False to run the API without the periodic stats job
    enable_scheduler: bool = Field(default=True, alias="ENABLE_SCHEDULER")

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    @field_validator("swapi_base_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slash so relative paths join cleanly."""
        return v.rstrip("/") if isinstance(v, str) else v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
