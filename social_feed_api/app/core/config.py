"""
Simple configuration management.

The ``Settings`` dataclass reads configuration directly from
environment variables.  Defaults are provided for all fields so the
service starts with a local SQLite file and an unconfigured image
store.  In a production deployment you should override these via
environment variables.
"""

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    project_name: str = os.getenv("PROJECT_NAME", "Social Feed API")
    api_version: str = os.getenv("API_VERSION", "1.0.0")
    debug: bool = os.getenv("DEBUG", "false").lower() in {"1", "true", "yes"}
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    log_file: str = os.getenv("LOG_FILE", "")
    secret_key: str = os.getenv("SECRET_KEY", "change_me")
    access_token_expire_minutes: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 15)))
    algorithm: str = os.getenv("ALGORITHM", "HS256")

    # The session cookie must be marked ``secure`` whenever the API is
    # served over HTTPS.
    cookie_secure: bool = os.getenv("COOKIE_SECURE", "false").lower() in {"1", "true", "yes"}

    # Path or connection string for the SQLite database.  If a relative
    # path is provided, it will be resolved relative to the project root
    # by the ``db`` module.
    database_url: str = os.getenv("DATABASE_URL", "social_feed.db")

    # Cloudinary account.  Uploads fail with a 500 error until the cloud
    # name and credentials are configured.
    image_store_cloud_name: str = os.getenv("IMAGE_STORE_CLOUD_NAME", "")
    image_store_api_key: str = os.getenv("IMAGE_STORE_API_KEY", "")
    image_store_api_secret: str = os.getenv("IMAGE_STORE_API_SECRET", "")
    image_store_timeout: float = float(os.getenv("IMAGE_STORE_TIMEOUT", "15"))

    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "5000"))


# Instantiate settings once so other modules can import it without
# repeatedly reading environment variables.  Environment variables
# should be set before importing this module.
settings = Settings()
