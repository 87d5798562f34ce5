"""Configuration settings for the child-health chat engine"""
import os
from typing import Optional
from pydantic_settings import BaseSettings


def detect_environment() -> str:
    """
    Detect current environment from the ENVIRONMENT variable.
    Returns: 'dev', 'staging', or 'prod'
    """
    explicit_env = os.getenv("ENVIRONMENT", "").lower()
    if explicit_env in ("production", "prod"):
        return "prod"
    if explicit_env == "staging":
        return "staging"
    return "dev"


class Settings(BaseSettings):
    """Application settings using Pydantic for validation and environment variable loading"""

    # Profile store / doctor directory (PostgreSQL). In-memory stores are used when unset.
    DATABASE_URL: Optional[str] = None
    DB_POOL_MIN: int = 1
    DB_POOL_MAX: int = 10

    # Completion service (OpenAI-compatible chat completions)
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_API_URL: str = "https://api.openai.com/v1/chat/completions"
    OPENAI_MODEL: str = "gpt-4o-mini"
    COMPLETION_TEMPERATURE: float = 0.7
    COMPLETION_MAX_TOKENS: int = 500
    COMPLETION_TIMEOUT_SECONDS: float = 15.0

    # Conversation behaviour
    HISTORY_WINDOW: int = 10
    MAX_RECOMMENDED_DOCTORS: int = 3

    # Application settings
    ENVIRONMENT: str = detect_environment()
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment"""
        return self.ENVIRONMENT == "prod"

    @property
    def completion_enabled(self) -> bool:
        """A credential is present, so the external completion service may be tried"""
        return bool(self.OPENAI_API_KEY and self.OPENAI_API_KEY.strip())

    class Config:
        # Load from .env file
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


# Global settings instance
settings = Settings()
