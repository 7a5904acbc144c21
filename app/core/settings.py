"""
Core settings and environment variables for the Klingo Cleanup API.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Klingo Cleanup API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - comma separated origins. The mobile client talks to the API directly,
    # so "*" is the default for development builds.
    CORS_ORIGINS: str = "*"

    # Firebase/Firestore
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON

    # In-memory document store for local development and tests
    USE_MOCK_DB: bool = False

    # Auth
    JWT_SECRET: str = "change-me-in-production"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRE_DAYS: int = 7
    RESET_TOKEN_EXPIRY_MINUTES: int = 60
    ADMIN_EMAILS: str = ""  # Comma separated, compared case-insensitively

    # Cleanup request lifecycle
    # When true, assigning a completed/cancelled request reopens it as in-progress.
    ALLOW_REASSIGN_FROM_TERMINAL: bool = True

    # Transport client
    API_BASE_URL: str = "http://localhost:8000"
    CLIENT_TIMEOUT_SECONDS: float = 10.0

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]

    @property
    def admin_emails(self) -> List[str]:
        return [email.strip().lower() for email in self.ADMIN_EMAILS.split(",") if email.strip()]


# Global settings instance
settings = Settings()
