"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts without any configuration; in a production deployment
override at least ``SECRET_KEY``, ``DATABASE_URL`` and
``GOOGLE_API_KEY``.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Places API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    # Optional path of a log file; console logging is always enabled.
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))

    # Path or connection string for the SQLite database.  A relative
    # path is resolved against the project root by ``core.db``.
    database_url: str = os.getenv("DATABASE_URL", "places.db")

    # Uploaded images are written here and served under /uploads/images.
    upload_dir: str = os.getenv("UPLOAD_DIR", "uploads/images")
    max_image_bytes: int = int(os.getenv("MAX_IMAGE_BYTES", "500000"))

    # Google Geocoding API.  Without a key every address lookup fails.
    google_api_key: str = os.getenv("GOOGLE_API_KEY", "")
    geocoding_url: str = os.getenv(
        "GEOCODING_URL", "https://maps.googleapis.com/maps/api/geocode/json"
    )
    geocoding_timeout: float = float(os.getenv("GEOCODING_TIMEOUT", "5"))

    # Comma‑separated list of allowed CORS origins.
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# must be set before this module is imported.
settings = Settings()
