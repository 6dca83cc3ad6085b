"""
Configuration settings for ElurInfo using Pydantic Settings.

This module centralizes all configuration for the API server, the record
store, the upstream forecast providers and the per-category cache policy,
loading values from environment variables and an optional .env file.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Settings for the ElurInfo service.

    Uses Pydantic Settings to load and validate configuration from
    environment variables with proper type checking and defaults.
    """

    # Server
    elurinfo_host: str = Field(
        default="127.0.0.1",
        alias="ELURINFO_HOST",
        description="API server host"
    )
    elurinfo_port: int = Field(
        default=3000,
        alias="ELURINFO_PORT",
        description="API server port"
    )
    elurinfo_api_url: str = Field(
        default="http://localhost:3000",
        alias="ELURINFO_API_URL",
        description="Base URL used by the CLI to reach the API"
    )
    cors_origins: str = Field(
        default="http://localhost:5173",
        alias="CORS_ORIGIN",
        description="Comma separated list of allowed CORS origins"
    )
    log_config_path: Optional[str] = Field(
        default=None,
        alias="LOG_CONFIG_PATH",
        description="Path to the YAML logging configuration"
    )

    # Record store
    store_backend: str = Field(
        default="postgres",
        alias="STORE_BACKEND",
        description="Record store backend (postgres, memory)"
    )
    postgres_host: str = Field(default="localhost", alias="POSTGRES_HOST")
    postgres_port: int = Field(default=5432, alias="POSTGRES_PORT")
    postgres_database: str = Field(default="elurinfo", alias="POSTGRES_DATABASE")
    postgres_user: str = Field(default="elurinfo", alias="POSTGRES_USER")
    postgres_password: str = Field(default="elurinfo", alias="POSTGRES_PASSWORD")
    postgres_pool_max_overflow: int = Field(default=10, alias="POSTGRES_POOL_MAX_OVERFLOW")
    postgres_pool_max_size: int = Field(default=10, alias="POSTGRES_POOL_MAX_SIZE")

    # Upstream providers
    forecast_provider: str = Field(
        default="stub",
        alias="FORECAST_PROVIDER",
        description="Upstream forecast provider (stub, aemet)"
    )
    aemet_api_key: Optional[str] = Field(
        default=None,
        alias="AEMET_API_KEY",
        description="AEMET OpenData API key (required when using the aemet provider)"
    )
    aemet_base_url: str = Field(
        default="https://opendata.aemet.es/opendata/api",
        alias="AEMET_BASE_URL",
        description="AEMET OpenData base URL"
    )
    upstream_timeout_seconds: float = Field(
        default=10.0,
        alias="UPSTREAM_TIMEOUT_SECONDS",
        description="Timeout for the AEMET descriptor request"
    )
    upstream_data_timeout_seconds: float = Field(
        default=15.0,
        alias="UPSTREAM_DATA_TIMEOUT_SECONDS",
        description="Timeout for the AEMET data request"
    )

    # Freshness windows (hours)
    cache_avalanche_hours: float = Field(default=24, alias="CACHE_AVALANCHE_HOURS")
    cache_mountain_hours: float = Field(default=1, alias="CACHE_MOUNTAIN_HOURS")
    cache_municipal_hours: float = Field(default=1, alias="CACHE_MUNICIPAL_HOURS")
    cache_snow_science_hours: float = Field(default=12, alias="CACHE_SNOW_SCIENCE_HOURS")
    cache_snow_science_front_hours: float = Field(default=6, alias="CACHE_SNOW_SCIENCE_FRONT_HOURS")
    cache_api_response_hours: float = Field(default=1, alias="CACHE_API_RESPONSE_HOURS")

    # Retention windows (days)
    retention_avalanche_days: int = Field(default=30, alias="RETENTION_AVALANCHE_DAYS")
    retention_mountain_days: int = Field(default=7, alias="RETENTION_MOUNTAIN_DAYS")
    retention_municipal_days: int = Field(default=7, alias="RETENTION_MUNICIPAL_DAYS")
    retention_snow_science_days: int = Field(default=30, alias="RETENTION_SNOW_SCIENCE_DAYS")

    # Maintenance
    sweep_interval_hours: float = Field(
        default=1,
        alias="SWEEP_INTERVAL_HOURS",
        description="Interval between background sweeps"
    )
    sweep_initial_delay_seconds: float = Field(
        default=60,
        alias="SWEEP_INITIAL_DELAY_SECONDS",
        description="Delay before the first sweep after startup"
    )
    sweep_enabled: bool = Field(default=True, alias="SWEEP_ENABLED")

    local_timezone: str = Field(
        default="Europe/Madrid",
        alias="LOCAL_TIMEZONE",
        description="Timezone used to decide which calendar day is 'today'"
    )

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "env_prefix": "",
        "extra": "ignore",
        "populate_by_name": True,
    }

    @property
    def database_url(self) -> str:
        """Build the async database URL."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_database}"
        )

    def get_cors_origins(self) -> List[str]:
        """Split the configured CORS origins."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def validate_provider_config(self) -> bool:
        """Check that the selected provider has what it needs."""
        if self.forecast_provider.lower() == "aemet":
            return bool(self.aemet_api_key)
        return True

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, hiding secrets."""
        data = self.model_dump()
        for secret in ("aemet_api_key", "postgres_password"):
            if data.get(secret):
                data[secret] = "***"
        return data


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Validated Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset global settings (useful for testing)."""
    global _settings
    _settings = None
