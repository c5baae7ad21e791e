from typing import Any
from urllib.parse import quote_plus

from pydantic import Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables and `.env`.
    """

    # API Configuration
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Storefront Discount Engine"
    PROJECT_DESCRIPTION: str = "Back-office API for storefront discount rules"
    VERSION: str = "0.1.0"

    # Application Settings
    DEBUG: bool = Field(False, description="Debug mode")
    ENVIRONMENT: str = Field("production", description="Runtime environment")
    LOG_LEVEL: str = Field("INFO", description="Root log level")
    LOG_JSON: bool = Field(False, description="Emit structured JSON logs")

    # PostgreSQL Database Settings
    DB_HOST: str = Field("localhost", description="PostgreSQL host")
    DB_PORT: int = Field(5432, description="PostgreSQL port")
    DB_NAME: str = Field("storefront", description="Database name")
    DB_USER: str = Field("postgres", description="Database user")
    DB_PASSWORD: str | None = Field(None, description="Database password")
    DB_ECHO: bool = Field(False, description="Log SQL queries (debug only)")

    # Database connection pool settings
    DB_POOL_SIZE: int = Field(20, description="Connection pool size")
    DB_MAX_OVERFLOW: int = Field(30, description="Maximum pool overflow")
    DB_POOL_RECYCLE: int = Field(3600, description="Recycle connections every X seconds")
    DB_POOL_TIMEOUT: int = Field(30, description="Timeout to obtain a pooled connection")

    # Redis Settings
    REDIS_HOST: str = Field("localhost", description="Redis host")
    REDIS_PORT: int = Field(6379, description="Redis port")
    REDIS_DB: int = Field(0, description="Redis database")
    REDIS_PASSWORD: str | None = Field(None, description="Redis password")

    # Discount engine
    DISCOUNT_BULK_CHUNK_SIZE: int = Field(500, description="Product ids per bulk UPDATE statement")
    DISCOUNT_RECOMPUTE_MAX_ATTEMPTS: int = Field(
        3, description="Recompute passes allowed when the rule set changes mid-flight"
    )
    CHANGE_LOG_READ_LIMIT: int = Field(500, description="Maximum change log entries returned per read")

    # Change feed (pricing change notifications)
    CHANGE_FEED_BACKEND: str = Field("memory", description="'memory' (single process) or 'redis'")
    CHANGE_FEED_CHANNEL: str = Field("storefront:pricing-changes", description="Redis pub/sub channel")
    CHANGE_FEED_SUBSCRIBER_QUEUE_SIZE: int = Field(
        1000, description="Pending events kept per subscriber before dropping"
    )

    # Promotional banner
    DISCOUNT_BANNER_LIMIT: int = Field(10, description="Discounted products shown by the banner")
    DISCOUNT_BANNER_CACHE_TTL_SECONDS: float = Field(30.0, description="Banner cache TTL in seconds")

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    def __init__(self, **data: Any):
        super().__init__(**data)

    @field_validator("DB_POOL_SIZE")
    @classmethod
    def validate_pool_size(cls, v):
        if v < 1:
            raise ValueError("DB_POOL_SIZE must be at least 1")
        if v > 100:
            raise ValueError("DB_POOL_SIZE should not exceed 100")
        return v

    @field_validator("DB_MAX_OVERFLOW")
    @classmethod
    def validate_max_overflow(cls, v):
        if v < 0:
            raise ValueError("DB_MAX_OVERFLOW must be 0 or greater")
        if v > 200:
            raise ValueError("DB_MAX_OVERFLOW should not exceed 200")
        return v

    @field_validator("DISCOUNT_BULK_CHUNK_SIZE", "DISCOUNT_RECOMPUTE_MAX_ATTEMPTS", "CHANGE_LOG_READ_LIMIT")
    @classmethod
    def validate_positive(cls, v, info):
        if v < 1:
            raise ValueError(f"{info.field_name} must be at least 1")
        return v

    @field_validator("CHANGE_FEED_BACKEND")
    @classmethod
    def validate_change_feed_backend(cls, v):
        v = v.lower()
        if v not in ("memory", "redis"):
            raise ValueError("CHANGE_FEED_BACKEND must be 'memory' or 'redis'")
        return v

    @computed_field
    @property
    def database_url(self) -> str:
        """Sync PostgreSQL URL (used by alembic)."""
        user = quote_plus(self.DB_USER)
        if self.DB_PASSWORD:
            return f"postgresql://{user}:{quote_plus(self.DB_PASSWORD)}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        return f"postgresql://{user}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @computed_field
    @property
    def async_database_url(self) -> str:
        """Async PostgreSQL URL for SQLAlchemy with asyncpg."""
        return self.database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    @computed_field
    @property
    def redis_url(self) -> str:
        """Redis connection URL."""
        if self.REDIS_PASSWORD:
            return f"redis://:{self.REDIS_PASSWORD}@{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"
        return f"redis://{self.REDIS_HOST}:{self.REDIS_PORT}/{self.REDIS_DB}"

    @computed_field
    @property
    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT.lower() in ["development", "dev", "local"]


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """
    Return the cached settings instance.
    Avoids re-reading environment variables on every call.
    """
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
