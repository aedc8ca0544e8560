"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

import logging
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # OpenAI
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1-mini"
    openai_max_tokens: int = 4096
    openai_temperature: float = 0.1

    # AWS Secrets Manager (used when openai_api_key is not set directly)
    openai_api_key_secret: str | None = None
    aws_region: str | None = None

    # Receipt processing: call the model here, or forward to another service
    processing_mode: Literal["direct", "forward"] = "direct"
    forward_url: str | None = None
    forward_timeout_seconds: float = 30.0

    # Images larger than this (longest side, px) are downscaled before upload
    max_image_dimension: int = 2048

    cors_origins: list[str] = [
        "http://localhost:4200",  # Angular development server
        "http://127.0.0.1:4200",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Enables DEBUG-level logging
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the backend directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )

    @property
    def log_level(self) -> int:
        return logging.DEBUG if self.debug else logging.INFO


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
