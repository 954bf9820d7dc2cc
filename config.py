"""Configuration management from environment variables."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

# Look for .env next to this file (project root)
env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)


class Config:
    """Application configuration."""

    # Supabase
    SUPABASE_URL: str | None = os.getenv("SUPABASE_URL")
    SUPABASE_KEY: str | None = os.getenv("SUPABASE_KEY")

    # Access gate
    ALWAYS_ACTIVE_EMAILS: str = os.getenv("ALWAYS_ACTIVE_EMAILS", "")
    ACCESS_CHECK_MAX_ATTEMPTS: int = int(os.getenv("ACCESS_CHECK_MAX_ATTEMPTS", "3"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def validate(cls) -> None:
        """Validate required configuration."""
        errors = []
        if not cls.SUPABASE_URL:
            errors.append(
                "SUPABASE_URL is required. Set SUPABASE_URL to your Supabase project URL."
            )
        if not cls.SUPABASE_KEY:
            errors.append(
                "SUPABASE_KEY is required. Set SUPABASE_KEY to your Supabase API key."
            )
        if errors:
            raise RuntimeError(f"Configuration errors: {', '.join(errors)}")


config = Config()

__all__ = ["Config", "config"]
