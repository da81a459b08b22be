"""
skillbridge/config/settings.py
Runtime Settings

Centralized configuration for the backend.
All settings are loaded from environment variables (see .env.example).
"""
import os
from typing import List


def get_bool_env(key: str, default: bool = False) -> bool:
    """Get a boolean value from environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ('true', '1', 'yes', 'on', 'enabled')


def get_int_env(key: str, default: int) -> int:
    """Get an integer value from environment variable, falling back on bad input."""
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        return default


def get_list_env(key: str) -> List[str]:
    """Get a comma separated list from environment variable."""
    return [item.strip() for item in os.getenv(key, "").split(",") if item.strip()]


class Settings:
    """
    Application settings.

    Values are read when the class body is evaluated, so main.py loads
    the .env file before importing anything that reads settings.
    """

    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")
    DEBUG: bool = get_bool_env("DEBUG", False)

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./skillbridge.db")

    # CORS
    ALLOWED_ORIGINS: List[str] = get_list_env("ALLOWED_ORIGINS")

    # Bearer credentials are issued by the identity provider; we only verify them
    JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "dev-secret-key-change-in-production")
    JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")

    # Simulation grading: "local" (deterministic) or "remote" (Gemini)
    GRADER_BACKEND: str = os.getenv("GRADER_BACKEND", "local").lower()
    GEMINI_API_KEY: str = os.getenv("GEMINI_API_KEY", "")
    GEMINI_MODEL: str = os.getenv("GEMINI_MODEL", "gemini-1.5-flash")
    GRADER_TIMEOUT_SECONDS: int = get_int_env("GRADER_TIMEOUT_SECONDS", 20)

    # Rate limits (slowapi syntax)
    SIMULATION_RATE_LIMIT: str = os.getenv("SIMULATION_RATE_LIMIT", "30/minute")

    # Profile store
    PROFILE_UPDATE_MAX_RETRIES: int = get_int_env("PROFILE_UPDATE_MAX_RETRIES", 3)

    LEADERBOARD_LIMIT: int = get_int_env("LEADERBOARD_LIMIT", 20)

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENVIRONMENT == "development"

    @classmethod
    def as_dict(cls) -> dict:
        """Non-secret settings, for the health endpoint."""
        return {
            "environment": cls.ENVIRONMENT,
            "grader_backend": cls.GRADER_BACKEND,
            "gemini_configured": bool(cls.GEMINI_API_KEY),
            "simulation_rate_limit": cls.SIMULATION_RATE_LIMIT,
        }


# Singleton instance for easy importing
settings = Settings()
