"""
Configuration management for the AI Chatbot activity backend.

Centralizes all configuration using Pydantic settings with environment variable support.
"""

from typing import Dict, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

SUPPORTED_PROVIDERS = ("openai", "anthropic")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Database Configuration
    database_url: str = Field(
        default="sqlite:///./chatbot.db",
        description="SQLAlchemy connection URL (SQLite or PostgreSQL; postgresql:// uses psycopg 3)"
    )
    db_pool_size: int = Field(
        default=5,
        description="Database connection pool size (ignored for SQLite)"
    )
    db_max_overflow: int = Field(
        default=10,
        description="Maximum overflow connections (ignored for SQLite)"
    )
    db_pool_timeout: int = Field(
        default=30,
        description="Connection pool timeout in seconds"
    )

    # API Configuration
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )

    # AI Provider Configuration
    ai_provider: str = Field(
        default="openai",
        description="Active AI provider: openai or anthropic"
    )
    openai_api_key: str = Field(
        default="",
        description="OpenAI API key"
    )
    anthropic_api_key: str = Field(
        default="",
        description="Anthropic API key"
    )
    ai_channels: str = Field(
        default="default=gpt-4o-mini",
        description="Available channels as comma separated name=model pairs"
    )
    ai_timeout: int = Field(
        default=60,
        description="Timeout in seconds for a single provider call"
    )
    ai_max_retries: int = Field(
        default=1,
        description="Provider attempts per request (1 = no retry)"
    )

    # Activity limits (site-wide maximums)
    max_attempts: int = Field(
        default=5,
        description="Maximum number of attempts an activity may allow"
    )
    max_interactions: int = Field(
        default=10,
        description="Maximum number of interactions per attempt an activity may allow"
    )

    # Session / identity
    session_secret: str = Field(
        default="change-me",
        description="HS256 secret used to verify host session tokens"
    )

    # Application Settings
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )
    environment: str = Field(
        default="development",
        description="Environment: development, staging, production"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    def get_channels(self) -> Dict[str, str]:
        """Parse ai_channels into an ordered {channel_name: model_id} mapping."""
        channels: Dict[str, str] = {}
        for entry in self.ai_channels.split(","):
            entry = entry.strip()
            if not entry:
                continue
            name, _, model = entry.partition("=")
            name = name.strip()
            channels[name] = model.strip() or name
        return channels


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings: Application settings
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings():
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None


def validate_required_settings():
    """
    Validate that all required settings are present at runtime.

    Raises ValueError if required settings are missing or inconsistent.
    """
    settings = get_settings()

    if settings.ai_provider not in SUPPORTED_PROVIDERS:
        raise ValueError(
            f"AI_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)}, got '{settings.ai_provider}'"
        )

    if settings.environment == "production":
        if settings.ai_provider == "openai" and not settings.openai_api_key:
            raise ValueError("OPENAI_API_KEY environment variable is required but not set.")
        if settings.ai_provider == "anthropic" and not settings.anthropic_api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable is required but not set.")
        if settings.session_secret == "change-me":
            raise ValueError("SESSION_SECRET must be set in production")

    if not settings.database_url:
        raise ValueError("DATABASE_URL is required but not set")

    if not settings.get_channels():
        raise ValueError("AI_CHANNELS must define at least one channel")

    return True
