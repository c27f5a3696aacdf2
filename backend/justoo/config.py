# backend/justoo/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return int(raw)


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/justoo.sqlite3 unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///justoo.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Authentication
    BCRYPT_ROUNDS = _env_int("BCRYPT_ROUNDS", 12)
    SESSION_ABSOLUTE_HOURS = _env_int("SESSION_ABSOLUTE_HOURS", 24 * 7)
    SESSION_IDLE_HOURS = _env_int("SESSION_IDLE_HOURS", 24)
    AUTH_COOKIE_NAME = os.environ.get("AUTH_COOKIE_NAME", "justoo_token")
    AUTH_COOKIE_SECURE = _env_bool("AUTH_COOKIE_SECURE", False)

    # Order pricing (all money in paise)
    DELIVERY_FEE_CENTS = _env_int("DELIVERY_FEE_CENTS", 4000)
    FREE_DELIVERY_THRESHOLD_CENTS = _env_int("FREE_DELIVERY_THRESHOLD_CENTS", 10000)
    TAX_RATE_BPS = _env_int("TAX_RATE_BPS", 500)
    ESTIMATED_DELIVERY_MINUTES = _env_int("ESTIMATED_DELIVERY_MINUTES", 15)

    # Cart store bounds
    CART_MAX_LINES = _env_int("CART_MAX_LINES", 50)
    CART_MAX_QUANTITY = _env_int("CART_MAX_QUANTITY", 99)
    CART_TTL_HOURS = _env_int("CART_TTL_HOURS", 72)

    DEFAULT_PAGE_SIZE = _env_int("DEFAULT_PAGE_SIZE", 20)
    MAX_PAGE_SIZE = _env_int("MAX_PAGE_SIZE", 100)

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://localhost:3001,http://localhost:3002,http://localhost:3003",
        ).split(",")
        if origin.strip()
    }
