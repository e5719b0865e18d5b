# backend/storepos/config.py
from __future__ import annotations
import os


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/storepos.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///storepos.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Checkout behaviour
    POS_ALLOW_UNDERPAYMENT = _env_bool("POS_ALLOW_UNDERPAYMENT", False)
    POS_TRANSACTION_PREFIX = os.environ.get("POS_TRANSACTION_PREFIX", "TXN")
    POS_SALES_LIST_LIMIT = int(os.environ.get("POS_SALES_LIST_LIMIT", "50"))

    # Password hashing cost
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "12"))

    # Browser clients allowed to call the API (comma-separated)
    CORS_ORIGINS = [
        o.strip()
        for o in os.environ.get(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
        ).split(",")
        if o.strip()
    ]
