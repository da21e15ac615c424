"""Configuration settings for Voxmail."""

import os
from functools import lru_cache

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Application settings loaded from environment variables."""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./voxmail.db")

    # Audio policy
    MAX_FILE_SIZE_MB: int = int(os.getenv("MAX_FILE_SIZE_MB", "15"))
    ASSUMED_BITRATE_KBPS: int = int(os.getenv("ASSUMED_BITRATE_KBPS", "64"))

    # Timeouts (seconds)
    PROCESSING_TIMEOUT_SEC: float = float(os.getenv("PROCESSING_TIMEOUT_SEC", "60"))
    DOWNLOAD_TIMEOUT_SEC: float = float(os.getenv("DOWNLOAD_TIMEOUT_SEC", "10"))
    TRANSCRIPTION_TIMEOUT_SEC: float = float(os.getenv("TRANSCRIPTION_TIMEOUT_SEC", "40"))
    EMAIL_TIMEOUT_SEC: float = float(os.getenv("EMAIL_TIMEOUT_SEC", "10"))
    BACKGROUND_TIMEOUT_SEC: float = float(os.getenv("BACKGROUND_TIMEOUT_SEC", "300"))
    ENHANCEMENT_TIMEOUT_SEC: float = float(os.getenv("ENHANCEMENT_TIMEOUT_SEC", "120"))
    BACKGROUND_DISPATCH_TIMEOUT_SEC: float = float(os.getenv("BACKGROUND_DISPATCH_TIMEOUT_SEC", "3"))

    # OpenAI (Whisper + chat completions)
    OPENAI_API_KEY: str = os.getenv("OPENAI_API_KEY", "")
    OPENAI_BASE_URL: str | None = os.getenv("OPENAI_BASE_URL") or None
    WHISPER_MODEL: str = os.getenv("WHISPER_MODEL", "whisper-1")
    TRANSCRIPTION_LANGUAGE: str = os.getenv("TRANSCRIPTION_LANGUAGE", "en")
    LLM_MODEL: str = os.getenv("LLM_MODEL", "gpt-4.1-nano")

    # Mailgun
    MAILGUN_API_KEY: str = os.getenv("MAILGUN_API_KEY", "")
    MAILGUN_DOMAIN: str = os.getenv("MAILGUN_DOMAIN", "")
    MAILGUN_API_URL: str = os.getenv("MAILGUN_API_URL", "https://api.mailgun.net/v3")
    MAILGUN_EMAIL: str = os.getenv("MAILGUN_EMAIL", "")
    MAILGUN_WEBHOOK_SIGNING_KEY: str = os.getenv("MAILGUN_WEBHOOK_SIGNING_KEY", "")

    # Background dispatch
    APP_SECRET: str = os.getenv("APP_SECRET", "")
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "http://localhost:8000")

    # Rate limiting
    RATE_LIMIT_STORAGE_URI: str = os.getenv("RATE_LIMIT_STORAGE_URI", "memory://")
    API_RATE_LIMIT: str = os.getenv("API_RATE_LIMIT", "5/minute")

    # Application
    APP_ENV: str = os.getenv("APP_ENV", "development")
    DEBUG: bool = os.getenv("DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def max_file_size_bytes(self) -> int:
        return self.MAX_FILE_SIZE_MB * 1024 * 1024

    def validate(self) -> list[str]:
        """Validate settings and return list of warnings."""
        errors = []
        if not self.OPENAI_API_KEY:
            errors.append("OPENAI_API_KEY is not set - transcription and enhancements will fail")
        if not self.MAILGUN_API_KEY or not self.MAILGUN_DOMAIN:
            errors.append("MAILGUN_API_KEY/MAILGUN_DOMAIN not set - outcome emails cannot be sent")
        if not self.MAILGUN_WEBHOOK_SIGNING_KEY:
            errors.append("MAILGUN_WEBHOOK_SIGNING_KEY is not set - every inbound webhook will be rejected")
        if not self.APP_SECRET:
            errors.append("APP_SECRET is not set - background enhancement requests will be rejected")
        if self.TRANSCRIPTION_TIMEOUT_SEC >= self.PROCESSING_TIMEOUT_SEC:
            errors.append("TRANSCRIPTION_TIMEOUT_SEC should be below PROCESSING_TIMEOUT_SEC to leave room for email")
        return errors


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
