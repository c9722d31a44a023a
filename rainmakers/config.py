"""Application configuration using pydantic-settings."""
from functools import lru_cache
from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Use PostgreSQL in production, SQLite locally
    database_url: str = Field(default="sqlite:///./rainmakers.db", validation_alias="DATABASE_URL")

    # Shared with the identity provider; signs user and admin session tokens
    auth_secret: str = Field(default="change-me-in-production", validation_alias="AUTH_SECRET")

    # Admin access - comma-separated allow-list (stored as string, parsed via property)
    admin_emails_str: str = Field(default="", validation_alias="ADMIN_EMAILS")
    admin_password: str = Field(default="", validation_alias="ADMIN_PASSWORD")
    admin_session_hours: int = Field(default=24, validation_alias="ADMIN_SESSION_HOURS")

    # Magic links for "manage my data"
    edit_token_hours: int = Field(default=24, validation_alias="EDIT_TOKEN_HOURS")
    app_url: str = Field(default="http://localhost:3000", validation_alias="APP_URL")

    cors_origins_str: str = Field(default="http://localhost:3000", validation_alias="CORS_ORIGINS")

    # Outbound email; sending is skipped when host or sender is missing
    smtp_host: str = Field(default="", validation_alias="SMTP_HOST")
    smtp_port: int = Field(default=587, validation_alias="SMTP_PORT")
    smtp_user: str = Field(default="", validation_alias="SMTP_USER")
    smtp_password: str = Field(default="", validation_alias="SMTP_PASSWORD")
    smtp_from: str = Field(default="", validation_alias="SMTP_FROM")
    smtp_use_tls: bool = Field(default=True, validation_alias="SMTP_USE_TLS")

    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    @property
    def admin_emails(self) -> List[str]:
        """Parse the allow-list into lower-cased addresses."""
        return [e.strip().lower() for e in self.admin_emails_str.split(",") if e.strip()]

    @property
    def cors_origins(self) -> List[str]:
        """Parse comma-separated CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]

    @property
    def smtp_configured(self) -> bool:
        return bool(self.smtp_host and self.smtp_from)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
