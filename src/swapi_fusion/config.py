"""Application configuration using Pydantic Settings.

This module provides centralized configuration management with environment
variable validation, type coercion, and default values. Secrets have no
compiled-in defaults and must come from the environment or a .env file.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LogLevel(str, Enum):
    """Log level options."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log format options."""

    JSON = "json"
    CONSOLE = "console"


class Settings(BaseSettings):
    """Application settings with environment variable validation.

    All settings can be overridden via environment variables.
    Sensitive values should be provided via environment variables or .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Application
    # ========================================
    app_env: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    app_name: str = Field(
        default="SWAPI Fusion",
        description="Application name",
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version, echoed in every response envelope",
    )
    api_prefix: str = Field(
        default="",
        description="Path prefix for the API routes (empty mounts at root)",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_format: LogFormat = Field(
        default=LogFormat.CONSOLE,
        description="Log output format (json for production, console for dev)",
    )

    # ========================================
    # Server
    # ========================================
    host: str = Field(
        default="0.0.0.0",
        description="Server host",
    )
    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Server port",
    )

    # ========================================
    # Database (history store)
    # ========================================
    database_url: str = Field(
        default="sqlite+aiosqlite:///./swapi_fusion.db",
        description="Database URL with async driver",
    )
    database_pool_min: int = Field(
        default=2,
        ge=1,
        description="Minimum database connection pool size",
    )
    database_pool_max: int = Field(
        default=10,
        ge=1,
        description="Maximum database connection pool size",
    )
    database_create_tables: bool = Field(
        default=True,
        description="Create missing tables at startup (use Alembic in production)",
    )

    # ========================================
    # Redis (cache store)
    # ========================================
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL",
    )

    # ========================================
    # External APIs
    # ========================================
    swapi_base_url: str = Field(
        default="https://swapi.dev/api",
        description="Star Wars API base URL",
    )
    openweather_base_url: str = Field(
        default="https://api.openweathermap.org/data/2.5",
        description="OpenWeatherMap API base URL",
    )
    openweather_api_key: SecretStr | None = Field(
        default=None,
        description="OpenWeatherMap API key (simulated weather is used when absent)",
    )
    http_timeout: float = Field(
        default=10.0,
        gt=0,
        description="Timeout in seconds for every upstream HTTP call",
    )
    fallback_weather_seed: int | None = Field(
        default=None,
        description="Seed for simulated weather (random when unset)",
    )

    # ========================================
    # Cache & History
    # ========================================
    cache_ttl_seconds: int = Field(
        default=1800,
        ge=1,
        description="TTL of cached fusion results (30 minutes)",
    )
    history_fusion_ttl_seconds: int = Field(
        default=1800,
        ge=0,
        description="Expiry of fusion history records in seconds (0 = keep forever)",
    )
    history_default_page_size: int = Field(
        default=10,
        ge=1,
        description="Default number of history items per page",
    )
    history_max_page_size: int = Field(
        default=100,
        ge=1,
        description="Upper bound for the history page size",
    )
    max_custom_data_length: int = Field(
        default=1000,
        ge=1,
        description="Maximum serialized length of a custom /store payload",
    )

    # ========================================
    # Rate Limiting
    # ========================================
    rate_limit_requests: int = Field(
        default=100,
        ge=1,
        description="Maximum requests per client, method and path per window",
    )
    rate_limit_window_minutes: int = Field(
        default=60,
        ge=1,
        description="Fixed rate limit window in minutes",
    )

    # ========================================
    # Derived Properties
    # ========================================
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == Environment.PRODUCTION

    @property
    def use_json_logs(self) -> bool:
        """Check if JSON logging should be used."""
        return self.log_format == LogFormat.JSON or self.is_production

    @property
    def has_weather_credentials(self) -> bool:
        """Check if an OpenWeatherMap API key is configured."""
        return bool(
            self.openweather_api_key and self.openweather_api_key.get_secret_value()
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    This function is cached to avoid re-reading environment variables
    on every access. Use dependency injection in FastAPI routes.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
