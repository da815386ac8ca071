# download_gateway/meta_config.py
"""
Configuration management for the download gateway.

This module provides centralized configuration loaded from environment variables.
Required values are only checked by `ensure_required_config()`, which the
application lifespan calls once before serving the first request.
"""
import os

from download_gateway.models.exceptions import ConfigurationError

VERSION: str = "1.0.0"

# --- Upstream Stores ---
FIREBASE_PROJECT_ID: str | None = os.environ.get("FIREBASE_PROJECT_ID") or None
FIREBASE_STORAGE_BUCKET: str | None = os.environ.get("FIREBASE_STORAGE_BUCKET") or None
FIREBASE_API_KEY: str | None = os.environ.get("FIREBASE_API_KEY") or None
FIREBASE_ACCESS_TOKEN: str | None = os.environ.get("FIREBASE_ACCESS_TOKEN") or None

FILES_COLLECTION: str = os.environ.get("FILES_COLLECTION", "files")
FIRESTORE_BASE_URL: str = os.environ.get("FIRESTORE_BASE_URL", "https://firestore.googleapis.com/v1")
STORAGE_BASE_URL: str = os.environ.get("STORAGE_BASE_URL", "https://firebasestorage.googleapis.com/v0")

# --- Retry Policy ---
# 1 initial attempt + 3 retries, waiting 1s, 2s, 4s between them
DOWNLOAD_MAX_ATTEMPTS: int = int(os.environ.get("DOWNLOAD_MAX_ATTEMPTS", 4))
DOWNLOAD_INITIAL_DELAY: float = float(os.environ.get("DOWNLOAD_INITIAL_DELAY", 1.0))  # seconds
DOWNLOAD_BACKOFF_MULTIPLIER: float = float(os.environ.get("DOWNLOAD_BACKOFF_MULTIPLIER", 2.0))

# --- Timeout Configuration ---
METADATA_TIMEOUT: float = float(os.environ.get("METADATA_TIMEOUT", 10.0))  # 10 secs
DOWNLOAD_TIMEOUT: float = float(os.environ.get("DOWNLOAD_TIMEOUT", 60.0))  # per attempt
DISCONNECT_POLL_INTERVAL: float = float(os.environ.get("DISCONNECT_POLL_INTERVAL", 0.5))

# --- Logging ---
LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()

# --- Security ---
# Share links are public, so CORS defaults to '*'. Restrict with a comma separated list.
_cors_origins_str: str = os.environ.get('CORS_ALLOWED_ORIGINS', '*')
CORS_ALLOWED_ORIGINS: list[str] = (
    ['*'] if _cors_origins_str == '*'
    else [origin.strip() for origin in _cors_origins_str.split(',') if origin.strip()]
)

_REQUIRED_SETTINGS: tuple[str, ...] = ("FIREBASE_PROJECT_ID", "FIREBASE_STORAGE_BUCKET")


def ensure_required_config() -> None:
    """Fails fast when a required setting is absent from the environment."""
    missing = [name for name in _REQUIRED_SETTINGS if not globals().get(name)]
    if missing:
        raise ConfigurationError(missing)
