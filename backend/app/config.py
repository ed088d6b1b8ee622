"""Configuration — reads all settings from environment variables."""

import os
from pathlib import Path


def _env_csv(name: str) -> list[str]:
    raw = os.getenv(name, "")
    if not raw:
        return []
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_secret(name: str) -> str:
    """Read *name*, falling back to the Docker secret file named by ``<name>_FILE``."""
    value = os.getenv(name, "").strip()
    if value:
        return value
    secret_path = os.getenv(f"{name}_FILE", "").strip()
    if not secret_path:
        return ""
    try:
        return Path(secret_path).read_text(encoding="utf-8").strip()
    except OSError:
        return ""


ARTIFACT_DIR: str = os.getenv("ARTIFACT_DIR", "/tmp/workout-pdfs")
ARTIFACT_PREFIX: str = "workout_"
DOWNLOAD_PATH: str = os.getenv("DOWNLOAD_PATH", "/api/download")
DEFAULT_CLEANUP_DELAY_MS: int = int(os.getenv("DEFAULT_CLEANUP_DELAY_MS", "300000"))
CLEANUP_MAX_AGE_SECONDS: float = float(os.getenv("CLEANUP_MAX_AGE_SECONDS", str(24 * 60 * 60)))
CLEANUP_INTERVAL_SECONDS: float = float(os.getenv("CLEANUP_INTERVAL_SECONDS", "3600"))
CLEANUP_TOKEN: str = _env_secret("CLEANUP_TOKEN")
MEMORY_CACHE_TTL_SECONDS: float = float(os.getenv("MEMORY_CACHE_TTL_SECONDS", "900"))
MEMORY_CACHE_MAX_ITEMS: int = int(os.getenv("MEMORY_CACHE_MAX_ITEMS", "64"))
CORS_ORIGINS: list[str] = _env_csv("CORS_ORIGINS")
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
