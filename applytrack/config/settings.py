"""
Centralized configuration management for ApplyTrack.
All environment variables, API keys, and configuration settings are managed here.
"""
import secrets
from typing import Optional, List
from pydantic import validator
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings with validation and type hints."""

    # =============================================================================
    # APPLICATION SETTINGS
    # =============================================================================
    app_name: str = "ApplyTrack Pro"
    app_version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False
    testing: bool = False

    # =============================================================================
    # SECURITY SETTINGS
    # =============================================================================
    # Required in production. Elsewhere a per-process key is generated when unset.
    secret_key: str = ""
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 7 * 24 * 60  # 7 days
    auth_cookie_name: str = "token"
    password_min_length: int = 8

    @validator('secret_key', always=True)
    def default_secret_key(cls, v, values):
        if v or str(values.get('environment', '')).lower() == "production":
            return v
        return secrets.token_urlsafe(32)

    @validator('algorithm')
    def validate_algorithm(cls, v):
        if v not in ("HS256", "HS384", "HS512"):
            raise ValueError('Only HMAC signing algorithms are supported')
        return v

    # =============================================================================
    # DATABASE SETTINGS
    # =============================================================================
    database_url: str = "sqlite:///./applytrack.db"
    database_echo: bool = False

    # =============================================================================
    # LOGGING SETTINGS
    # =============================================================================
    log_level: str = "INFO"
    log_file: Optional[str] = None

    # =============================================================================
    # RESUME UPLOAD SETTINGS
    # =============================================================================
    upload_directory: str = "uploads/resumes"
    max_resume_size: int = 5 * 1024 * 1024  # 5 MB
    allowed_resume_mime_types: List[str] = [
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ]

    # =============================================================================
    # EXTERNAL API SETTINGS
    # =============================================================================
    # Google Gemini API (for AI tools)
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash"

    # =============================================================================
    # DEVELOPMENT SETTINGS
    # =============================================================================
    api_docs_enabled: bool = True
    cors_enabled: bool = True
    cors_origins: List[str] = ["http://localhost:5173"]

    # =============================================================================
    # CONFIGURATION LOADING
    # =============================================================================
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
        "extra": "ignore",
    }

    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment.lower() == "development"

    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.testing or self.environment.lower() == "testing"

    def get_database_url(self) -> str:
        """Get database URL with appropriate settings for environment."""
        if self.is_testing():
            return "sqlite:///:memory:"
        return self.database_url

    def validate_required_settings(self) -> List[str]:
        """Validate that all required settings are properly configured."""
        missing = []

        if self.is_production():
            if not self.secret_key:
                missing.append("SECRET_KEY is required in production")
            elif len(self.secret_key) < 32:
                missing.append("SECRET_KEY must be at least 32 characters in production")

            if self.debug:
                missing.append("DEBUG must be False in production")

        if self.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            missing.append(f"Invalid LOG_LEVEL: {self.log_level}")

        if self.max_resume_size <= 0:
            missing.append("MAX_RESUME_SIZE must be positive")

        return missing


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).
    This function is cached to avoid recreating the settings object multiple times.
    """
    return Settings()
