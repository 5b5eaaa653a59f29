"""
Base settings loaded from the environment (pydantic-settings).

Example:
    from common.config import BaseAppSettings

    class Settings(BaseAppSettings):
        DEFAULT_CIRCLE_CAPACITY: int = 10

    settings = Settings()
"""

from typing import List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseAppSettings(BaseSettings):
    """Database, auth, server and CORS settings shared by every app."""

    # ==========================================================================
    # Database
    # ==========================================================================
    MONGODB_URI: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "mentorhub"

    # ==========================================================================
    # Bearer tokens
    # ==========================================================================
    JWT_SECRET: Optional[str] = None
    JWT_ALGORITHM: str = "HS256"
    JWT_ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # ==========================================================================
    # Server
    # ==========================================================================
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    ENVIRONMENT: str = "development"  # development, staging, production
    LOG_LEVEL: str = "INFO"

    # Comma-separated origins or "*"
    CORS_ORIGINS: str = "*"
    CORS_ALLOW_CREDENTIALS: bool = True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
        case_sensitive=True,
    )

    def get_cors_origins(self) -> List[str]:
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    def validate_required(self) -> None:
        """
        Fail fast on settings the API cannot start without.

        Raises:
            ValueError: Listing every problem found
        """
        errors = []

        if not self.JWT_SECRET:
            errors.append("JWT_SECRET is required for bearer token authentication")

        if self.is_production() and self.CORS_ORIGINS == "*":
            errors.append("CORS_ORIGINS must be restricted in production")

        if errors:
            raise ValueError("Configuration errors:\n- " + "\n- ".join(errors))
