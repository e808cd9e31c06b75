"""Application configuration via pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import List, Literal, Optional

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "StoreAway"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    workers: int = 4

    # Database
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "storeaway"
    postgres_password: str = Field(default="storeaway_secret")
    postgres_db: str = "storeaway"
    db_pool_size: int = 10
    db_max_overflow: int = 10

    @computed_field
    @property
    def database_url(self) -> str:
        """Async PostgreSQL connection URL."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @computed_field
    @property
    def sync_database_url(self) -> str:
        """Sync PostgreSQL connection URL for Alembic."""
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # Redis (change feed, rate limiting, Celery broker)
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    redis_db: int = 0

    @computed_field
    @property
    def redis_url(self) -> str:
        """Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # Identity provider (tokens are issued externally, verified here)
    jwt_secret_key: str = Field(default="your-identity-provider-jwt-secret")
    jwt_algorithm: str = "HS256"
    jwt_audience: str = "authenticated"
    access_token_expire_minutes: int = 60

    # Payments
    payment_gateway: Literal["stripe", "sandbox"] = "sandbox"
    stripe_secret_key: Optional[str] = None
    payment_timeout_seconds: float = 20.0
    default_currency: str = "usd"

    # Object storage (S3 / MinIO)
    aws_access_key_id: Optional[str] = None
    aws_secret_access_key: Optional[str] = None
    aws_region: str = "us-east-1"
    s3_bucket_name: str = "storeaway-media"
    s3_endpoint_url: Optional[str] = None  # For MinIO in dev

    # Change feed
    change_feed_channel_prefix: str = "storeaway"

    # Rate limiting
    booking_rate_limit_per_minute: int = 10

    # CORS
    cors_origins: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Availability sync (Celery beat)
    availability_sync_enabled: bool = True
    availability_sync_hour: int = 0  # UTC


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
