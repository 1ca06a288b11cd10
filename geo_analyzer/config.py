"""
Application configuration using Pydantic Settings.
All environment variables are loaded and validated here.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Redis / Celery
    redis_url: str = "redis://localhost:6379/0"

    # Worker Config
    log_level: str = "INFO"
    max_concurrent_jobs: int = 3
    page_concurrency_limit: int = 3

    # HTTP Config
    user_agent: str = "Mozilla/5.0 (compatible; GEO-Analyzer/1.0; +https://example.com/bot)"
    http_timeout_seconds: float = 15.0

    # Crawler Config
    crawler_headless: bool = True
    crawler_timeout_ms: int = 30000
    network_idle_timeout_ms: int = 5000
    max_observed_responses: int = 80
    big_image_bytes: int = 500 * 1024

    # Discovery Config
    sitemap_max_urls: int = 500

    @property
    def celery_broker_url(self) -> str:
        return self.redis_url

    @property
    def celery_result_backend(self) -> str:
        return self.redis_url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience export
settings = get_settings()
