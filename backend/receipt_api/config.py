"""
Configuration settings for the Receipt API.

Loads environment variables from .env file and provides typed configuration.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # API Configuration
    PROJECT_NAME: str = "Receipt API"
    ENVIRONMENT: str = Field(
        default="production",
        description="Deployment environment: 'development', 'test' or 'production'",
    )
    CORS_ORIGINS: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins",
    )

    # Security Configuration
    JWT_SECRET: Optional[str] = Field(
        default=None,
        description="Shared secret for signing access tokens (required outside development)",
    )
    ACCESS_TOKEN_EXPIRE_DAYS: int = Field(
        default=7, description="Access token lifetime in days"
    )
    BCRYPT_ROUNDS: int = Field(
        default=12, ge=4, le=31, description="bcrypt cost factor for passwords and API keys"
    )
    API_KEY_PREFIX: str = Field(
        default="ak_live_", description="Prefix of generated API keys"
    )

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = Field(default=True)
    LOGIN_RATE_LIMIT: str = Field(
        default="5/minute", description="slowapi limit applied to the login endpoint"
    )

    # Database Configuration
    DATABASE_URL: str = Field(
        default="sqlite:///./data/receipts.db", description="SQLAlchemy database URL"
    )
    DATABASE_ECHO: bool = Field(
        default=False, description="Echo SQL queries (for debugging)"
    )

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"


# Global settings instance
settings = Settings()
