"""Library configuration using pydantic-settings."""

from functools import lru_cache

from pydantic import RedisDsn, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from rolegate.core.constants import DEFAULT_CACHE_PREFIX, DEFAULT_CACHE_TAG, DEFAULT_GUARD


class Settings(BaseSettings):
    """Settings loaded from ROLEGATE_* environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="ROLEGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    environment: str = "development"  # development, staging, production

    # Authorization
    guard: str = DEFAULT_GUARD

    # Database
    database_url: str = "sqlite:///./rolegate.db"
    database_echo: bool = False

    # Cache
    redis_url: RedisDsn = RedisDsn("redis://localhost:6379")
    redis_max_connections: int = 50
    cache_prefix: str = DEFAULT_CACHE_PREFIX
    cache_tag: str = DEFAULT_CACHE_TAG

    # Migrators
    migrator_batch_size: int = 500

    # Observability
    log_level: str = "INFO"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
