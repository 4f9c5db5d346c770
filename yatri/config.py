"""Application configuration management."""
from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralised application settings derived from environment variables."""

    database_url: str = Field(
        default="sqlite:///./yatri_data.db",
        description="SQLAlchemy-compatible database URL.",
    )
    app_host: str = Field(default="0.0.0.0")
    app_port: int = Field(default=3000, ge=1, le=65535)

    debug: bool = Field(default=False)

    admin_accounts: dict[str, str] = Field(
        default_factory=dict,
        description="Admin id -> password pairs allowed to use the admin dashboard.",
    )
    password_salt_rounds: int = Field(default=10, ge=4, le=31)

    # Mail relay account; leaving either blank disables email for the process.
    email_user: str | None = Field(default=None)
    email_pass: str | None = Field(default=None)
    email_from_name: str = Field(default="YATRI Training Portal")
    smtp_host: str = Field(default="smtp.gmail.com")
    smtp_port: int = Field(default=465, ge=1, le=65535)

    email_verify_timeout: float = Field(default=30.0, gt=0)
    email_send_timeout: float = Field(default=60.0, gt=0)
    email_queue_timeout: float = Field(
        default=120.0,
        gt=0,
        description="Longest a send waits for a connection slot and the rate window.",
    )
    email_max_connections: int = Field(default=1, ge=1)
    email_max_messages: int = Field(
        default=100,
        ge=1,
        description="Messages sent over one SMTP session before it is replaced.",
    )
    email_rate_limit: int = Field(default=14, ge=1)
    email_rate_window: float = Field(default=60.0, gt=0)
    broadcast_workers: int = Field(default=5, ge=1)

    log_level: str = Field(default="INFO")
    log_dir: Path = Field(default=Path("logs"))

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("email_user", "email_pass")
    @classmethod
    def blank_as_missing(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        valid = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
        upper = value.upper()
        if upper not in valid:
            raise ValueError(f"LOG_LEVEL must be one of {', '.join(sorted(valid))}")
        return upper

    @property
    def email_configured(self) -> bool:
        """True when both mail account settings are present."""

        return bool(self.email_user and self.email_pass)


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance so it can be reused across the app."""

    settings = Settings()
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    return settings
