# backend/partshop/config.py
from __future__ import annotations
import os


def _split_origins(raw: str) -> set[str]:
    return {o.strip() for o in raw.split(",") if o.strip()}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/partshop.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location (Postgres in deployment)
        "sqlite:///partshop.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    CORS_ALLOWED_ORIGINS = _split_origins(os.environ.get(
        "CORS_ALLOWED_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000",
    ))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Role assigned on self-registration; 0 means "look it up by title"
    DEFAULT_CUSTOMER_ROLE_ID = int(os.environ.get("DEFAULT_CUSTOMER_ROLE_ID", "0"))

    CART_MAX_ITEMS = int(os.environ.get("CART_MAX_ITEMS", "30"))
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_BYTES * 5

    # Pause before the single retry after a dropped DB connection
    DB_RETRY_DELAY_SECONDS = float(os.environ.get("DB_RETRY_DELAY_SECONDS", "0.25"))


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    DB_RETRY_DELAY_SECONDS = 0.0
