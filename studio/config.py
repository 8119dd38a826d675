"""Application configuration via Pydantic Settings and ENV."""
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# localStorage-sized budget for the key-value tier.
DEFAULT_KV_BUDGET_BYTES = 5 * 1024 * 1024


class Settings(BaseSettings):
    """App settings loaded from environment and .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    app_env: str = Field(default="local", alias="APP_ENV")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Reel proxy server. API_KEY is the provider credential; without it the proxy refuses to start.
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8080, alias="PORT")
    api_key: Optional[str] = Field(default=None, alias="API_KEY")

    veo_model: str = Field(default="veo-3.1-fast-generate-preview", alias="VEO_MODEL")
    veo_api_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        alias="VEO_API_BASE_URL",
    )
    veo_poll_interval_seconds: float = Field(default=5.0, alias="VEO_POLL_INTERVAL_SECONDS")
    # 120 x 5s = 10 minutes before a job is declared failed.
    veo_max_poll_attempts: int = Field(default=120, ge=1, alias="VEO_MAX_POLL_ATTEMPTS")
    veo_http_timeout_seconds: float = Field(default=60.0, alias="VEO_HTTP_TIMEOUT_SECONDS")
    veo_download_timeout_seconds: float = Field(default=300.0, alias="VEO_DOWNLOAD_TIMEOUT_SECONDS")

    # Rate limit on the proxy: requests per minute per client. Needs REDIS_URL.
    redis_url: Optional[str] = Field(default=None, alias="REDIS_URL")
    rate_limit_per_min: int = Field(default=10, alias="RATE_LIMIT_PER_MIN")

    # Client-tier storage.
    document_database_url: str = Field(
        default="sqlite+aiosqlite:///./studio_documents.db",
        alias="DOCUMENT_DATABASE_URL",
    )
    kv_database_url: str = Field(default="sqlite:///./studio_kv.db", alias="KV_DATABASE_URL")
    kv_budget_bytes: int = Field(default=DEFAULT_KV_BUDGET_BYTES, ge=1, alias="KV_BUDGET_BYTES")
    session_ttl_hours: float = Field(default=24.0, alias="SESSION_TTL_HOURS")


@lru_cache
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
