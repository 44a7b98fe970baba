"""Application configuration via environment variables."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from .env or environment."""

    DATABASE_URL: str = "sqlite:///./group_reminders.db"
    CORS_ORIGINS: str = "http://localhost:5173"
    LOG_LEVEL: str = "INFO"
    DEFAULT_TIMEZONE: str = "UTC"  # IANA tz
    DEFAULT_REMINDER_TIME: str = "09:00"
    DEFAULT_REMINDER_REPEAT: str = "daily"
    ACCOUNT_SEARCH_MIN_CHARS: int = 3
    ACCOUNT_SEARCH_LIMIT: int = 5
    SESSION_CACHE_SIZE: int = 256

    class Config:
        env_file = ".env"


settings = Settings()
