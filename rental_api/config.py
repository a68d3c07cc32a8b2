"""
Configuration for the Vehicle Rental API.
Values come from the environment; a local `.env` file is loaded first.
"""

import os
from datetime import timedelta

from dotenv import load_dotenv

from rental_api.models.store import DEFAULT_DATABASE_URL

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Application settings loaded from environment variables."""

    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    DEBUG = _env_bool("DEBUG")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL

    # Tokens
    JWT_SECRET_KEY = os.getenv("JWT_SECRET", "dev-jwt-secret-change-me-to-32-bytes!")
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=int(os.getenv("JWT_EXPIRES_HOURS", "24")))

    # Bookings
    BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "UTC")
    SWEEP_RELEASES_VEHICLES = _env_bool("SWEEP_RELEASES_VEHICLES")

    # Bootstrap admin, created on start when both email and password are set
    ADMIN_NAME = os.getenv("ADMIN_NAME", "Administrator")
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")
    ADMIN_PHONE = os.getenv("ADMIN_PHONE", "0000000000")


class TestConfig(Config):
    TESTING = True
    DEBUG = False
    LOG_LEVEL = "WARNING"
    DATABASE_URL = "sqlite:///:memory:"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-bytes"
    BUSINESS_TIMEZONE = "UTC"
    SWEEP_RELEASES_VEHICLES = False
    ADMIN_EMAIL = None
    ADMIN_PASSWORD = None
