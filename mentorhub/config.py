"""
MentorHub application settings.

Extends the base settings with circle-specific configuration.
"""

from typing import Optional

from common.config import BaseAppSettings


class Settings(BaseAppSettings):
    """MentorHub-specific settings."""

    # ==========================================================================
    # Circle Settings
    # ==========================================================================
    # Capacity used when a circle or pitch does not specify one
    DEFAULT_CIRCLE_CAPACITY: int = 10

    # Program length used when a circle does not specify one
    DEFAULT_DURATION_WEEKS: int = 8

    # ==========================================================================
    # Frontend cache revalidation
    # ==========================================================================
    FRONTEND_URL: str = "http://localhost:3000"
    REVALIDATE_PATH: str = "/api/revalidate"
    REVALIDATE_ENABLED: bool = False
    REVALIDATE_SECRET: Optional[str] = None

    def get_revalidate_url(self) -> str:
        """Full URL of the frontend revalidation endpoint."""
        return self.FRONTEND_URL.rstrip("/") + self.REVALIDATE_PATH


# Global settings instance
settings = Settings()
