"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, PostgresDsn, RedisDsn, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_VERSION = "0.1.0"

# PBKDF2 work factor floor for visitor IP hashing
MIN_IP_HASH_ITERATIONS = 10_000


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: PostgresDsn = Field(
        default=...,
        description="PostgreSQL connection URL with asyncpg driver",
    )

    # Redis (retention job queue, capture rate limits)
    redis_url: RedisDsn = Field(
        default=...,
        description="Redis connection URL",
    )

    # Visitor IP hashing
    ip_hash_salt: SecretStr = Field(
        default=...,
        min_length=16,
        description="Salt for PBKDF2 hashing of visitor IP addresses",
    )
    ip_hash_iterations: int = Field(
        default=MIN_IP_HASH_ITERATIONS,
        ge=MIN_IP_HASH_ITERATIONS,
        description="PBKDF2 iteration count for visitor IP hashing",
    )

    # Consent retention
    retention_purge_batch_size: int = Field(
        default=1000,
        gt=0,
        description="Maximum consents deleted per purge transaction",
    )
    retention_purge_interval_hours: int = Field(
        default=24,
        gt=0,
        description="Hours between scheduled retention purges",
    )

    # Application
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="development",
        description="Application environment",
    )
    app_debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )
    app_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )

    # CORS
    cors_origins: str = Field(
        default="*",
        description="Comma-separated list of allowed CORS origins",
    )

    # Rate limits
    capture_rate_limit_per_hour: int = Field(
        default=10000,
        description="Consent capture rate limit per hour per website",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins into a list."""
        if self.cors_origins == "*":
            return ["*"]
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance (singleton pattern)."""
    return Settings()
