"""Application configuration using Pydantic Settings."""
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # MongoDB
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "life_updates"

    # API
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = "INFO"

    # CORS
    cors_origins: str = "http://localhost:3000,http://localhost:8000"

    # Trash
    trash_retention_days: int = 30

    # Reminders
    reminder_spacing_minutes: int = 5
    wizard_reminder_limit: int = 3

    # Language model endpoint (OpenAI-compatible chat completions)
    inference_url: Optional[str] = None
    inference_api_key: Optional[str] = None
    inference_model: str = "gpt-4o-mini"
    inference_timeout_seconds: float = 8.0
    inference_min_confidence: float = 0.3
    suggestion_limit: int = 3

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins.split(",")]


settings = Settings()
