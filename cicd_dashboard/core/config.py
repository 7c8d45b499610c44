from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "CI/CD Build Dashboard"
    debug: bool = False

    # UI shell origin allowed by CORS
    frontend_url: str = "http://localhost:4200"

    # Build-tracking API
    build_api_url: str = "http://localhost:8080/api"
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    # Refresh pipeline
    refresh_interval_seconds: float = Field(default=30.0, gt=0)
    sync_settle_delay_seconds: float = Field(default=2.0, ge=0)
    auto_refresh_enabled: bool = True  # AUTO_REFRESH_ENABLED=false starts paused


@lru_cache
def get_settings() -> Settings:
    return Settings()
