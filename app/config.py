"""Configuration settings for Idea Saver."""

import os
import secrets
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()

PLACEHOLDER_MARKERS = ("your-project", "your-api-url", "example.invalid")


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./idea_saver.db")

    # JWT
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", secrets.token_urlsafe(32))
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_MINUTES: int = int(os.getenv("JWT_EXPIRE_MINUTES", "480"))

    # Profiles
    DEFAULT_CREDITS: int = int(os.getenv("DEFAULT_CREDITS", "25"))

    # Whisper
    WHISPER_MODEL_SIZE: str = os.getenv("WHISPER_MODEL_SIZE", "base")
    MAX_AUDIO_SIZE_MB: int = int(os.getenv("MAX_AUDIO_SIZE_MB", "25"))

    # Title generation
    ANTHROPIC_API_KEY: str = os.getenv("ANTHROPIC_API_KEY", "")
    TITLE_MODEL: str = os.getenv("TITLE_MODEL", "claude-3-5-haiku-latest")

    # Client
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:8000")
    CLIENT_TIMEOUT_SECONDS: float = float(os.getenv("CLIENT_TIMEOUT_SECONDS", "60"))
    CLIENT_RETRY_ATTEMPTS: int = int(os.getenv("CLIENT_RETRY_ATTEMPTS", "1"))
    LOCAL_STORAGE_DIR: str = os.getenv("LOCAL_STORAGE_DIR", os.path.expanduser("~/.idea_saver"))

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"

    def is_backend_configured(self) -> bool:
        """Check that the client has a usable backend URL."""
        url = self.API_BASE_URL.strip()
        if not url:
            return False
        return not any(marker in url for marker in PLACEHOLDER_MARKERS)

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not os.getenv("JWT_SECRET_KEY"):
            errors.append("JWT_SECRET_KEY is not set - using auto-generated key (not persistent across restarts)")
        if not self.ANTHROPIC_API_KEY:
            errors.append("ANTHROPIC_API_KEY is not set - title generation will fall back to 'Untitled Note'")
        if self.CLIENT_RETRY_ATTEMPTS < 1:
            errors.append("CLIENT_RETRY_ATTEMPTS must be at least 1")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
