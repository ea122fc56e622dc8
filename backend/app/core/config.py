from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv


# Load backend/.env if it exists so local environment variables (e.g. DATABASE_URL)
# are available without needing to export them manually.
BASE_DIR = Path(__file__).resolve().parents[2]
env_path = BASE_DIR / ".env"
if env_path.exists():
    load_dotenv(env_path)


def _int_env(key: str, default: int) -> int:
    try:
        return int(os.getenv(key, str(default)))
    except ValueError:
        return default


def _bool_env(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings:
    PROJECT_NAME = "LeanLia API"
    API_V1_STR = "/api"

    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./leanlia.db")

    SESSION_EXPIRE_MINUTES = _int_env("SESSION_EXPIRE_MINUTES", 60 * 24)
    SESSION_SWEEP_ENABLED = _bool_env("SESSION_SWEEP_ENABLED", True)
    SESSION_SWEEP_INTERVAL_SECONDS = _int_env("SESSION_SWEEP_INTERVAL_SECONDS", 60 * 60 * 24)

    CONTACT_PREVIEW_LENGTH = _int_env("CONTACT_PREVIEW_LENGTH", 100)

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    _cors_origins = os.getenv("CORS_ORIGINS", "*")

    # If wildcard is present, treat as allow-all for local development
    if "*" in _cors_origins:
        CORS_ORIGINS = ["*"]
    else:
        CORS_ORIGINS = [o.strip() for o in _cors_origins.split(",") if o.strip()]


settings = Settings()
