# backend/order_tracker/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    try:
        return int(raw) if raw else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Hosted Postgres in production, local SQLite by default.
    # DATABASE_URL="" leaves the data gateway unconfigured (empty dashboard + setup prompt).
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///order_tracker.sqlite3",
    )
    if SQLALCHEMY_DATABASE_URI.startswith("postgres://"):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
    }

    # Workflow labels with fixed meaning inside the editable status vocabulary
    SETTLED_STATUS = os.environ.get("SETTLED_STATUS", "Settled")
    RETURNED_STATUS = os.environ.get("RETURNED_STATUS", "Returned")

    # Transient store failures: attempts total, first backoff in seconds (doubles)
    GATEWAY_RETRY_ATTEMPTS = _env_int("GATEWAY_RETRY_ATTEMPTS", 3)
    GATEWAY_RETRY_BACKOFF = _env_float("GATEWAY_RETRY_BACKOFF", 0.5)

    # AI narrative service (optional)
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY", "")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
    GEMINI_TIMEOUT = _env_float("GEMINI_TIMEOUT", 20.0)

    CORS_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ).split(",")
        if origin.strip()
    }
