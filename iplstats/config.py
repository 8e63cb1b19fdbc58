"""Application configuration using Pydantic Settings."""

from functools import lru_cache
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = "sqlite:///./iplstats.db"

    # Fixture set (teams/, squads/, matches/, scorecards/, standings/)
    DATA_PATH: str = "./data/Indian_Premier_League_2022-03-26"
    SEED_ON_STARTUP: bool = False  # Run the ingestion pipeline inside lifespan

    # API
    API_TITLE: str = "IPL Data Platform API"
    API_VERSION: str = "1.0.0"
    MAX_PAGE_LIMIT: int = 100
    RATE_LIMIT_PER_MINUTE: str = "120/minute"
    CORS_ORIGINS: str = "*"  # Comma-separated list

    # Logging
    LOG_LEVEL: str = "INFO"

    # Keep-alive: periodic SELECT 1 so hosted databases don't go to sleep
    KEEP_ALIVE_ENABLED: bool = False
    KEEP_ALIVE_INTERVAL_MINUTES: int = 5

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
