"""Configuration management for colloquy."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # State Configuration
    home: Path = Field(default=Path.home() / ".colloquy", description="Directory for file-backed state")
    storage: Literal["memory", "file"] = Field(default="memory", description="Storage backend for dialog state")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: Literal["default", "chat"] = Field(default="default", description="Log output profile")

    class Config:
        """Pydantic configuration."""

        env_prefix = "COLLOQUY_"
        case_sensitive = False
        env_file = ".env"
        env_file_encoding = "utf-8"


def get_settings(**overrides: object) -> Settings:
    """Get application settings.

    Values come from ``COLLOQUY_*`` environment variables and the ``.env``
    file; keyword overrides win over both.
    """
    return Settings(**overrides)
