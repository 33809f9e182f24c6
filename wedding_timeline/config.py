"""
Configuration management for the Wedding Timeline engine
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Wedding Timeline Engine"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./wedding_timeline.db"
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Claude API
    ANTHROPIC_API_KEY: str = ""
    CLAUDE_MODEL: str = "claude-sonnet-4-20250514"
    CLAUDE_MAX_TOKENS: int = 2048

    # Email (SendGrid)
    SENDGRID_API_KEY: str = ""
    NOTIFICATION_FROM_EMAIL: str = "timeline@weddings.example.com"
    NOTIFICATION_FROM_NAME: str = "Wedding Timeline"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Timeline rules
    DEFAULT_TASK_DURATION_HOURS: float = 8.0
    UPCOMING_WINDOW_DAYS: int = 7
    URGENT_WINDOW_DAYS: int = 3

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
