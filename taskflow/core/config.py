"""Application configuration using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Application
    app_name: str = "TaskFlow"
    environment: Literal["development", "test", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    api_prefix: str = "/api"
    app_host: str = "127.0.0.1"
    app_port: int = 8000

    # Database
    database_url: str = "sqlite+aiosqlite:///./taskflow.db"

    # Security
    secret_key: str = "change-me-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60

    # Frontend origin, used for CORS and links in emails
    frontend_url: str = "http://localhost:5173"
    cors_origins: list[str] | None = None

    # Outbound mail
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_user: str | None = None
    smtp_password: str | None = None
    smtp_from: str | None = None
    smtp_start_tls: bool = True

    # External identity provider
    firebase_project_id: str | None = None

    # User provisioning
    temp_password_length: int = 12

    # Rate Limiting
    rate_limit_enabled: bool = True
    auth_rate_limit: str = "10/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp_user and self.smtp_password)

    @property
    def allowed_origins(self) -> list[str]:
        return self.cors_origins or [self.frontend_url]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
