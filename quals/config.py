from __future__ import annotations

import os

from dotenv import load_dotenv

from quals.errors import ConfigError

load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Storage
DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./quals.db")

# Derived-value cache
SIGNUP_CACHE_TTL_HOURS: float = float(os.getenv("SIGNUP_CACHE_TTL_HOURS", "6"))

# Training record store
TRAINING_CACHE_MAX_AGE_HOURS: float = float(os.getenv("TRAINING_CACHE_MAX_AGE_HOURS", "24"))
TRAINING_API_TIMEOUT: int = int(os.getenv("TRAINING_API_TIMEOUT", "10"))

# Evaluation
EVALUATION_MAX_WORKERS: int = int(os.getenv("EVALUATION_MAX_WORKERS", "8"))
ENFORCE_SOLO_EXPIRY: bool = _flag("ENFORCE_SOLO_EXPIRY", "true")

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


def require_env(name: str) -> str:
    """Read a setting that has no sensible default (provider URLs, tokens)."""
    value = os.getenv(name)
    if not value:
        raise ConfigError(f"Missing env {name}")
    return value
