# backend/cashier/config.py
from __future__ import annotations
import os


def _float_env(name: str, default: float | None) -> float | None:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    value = float(raw)
    # 0 disables the checkout deadline
    return value if value > 0 else None


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/cashier.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location, e.g. postgresql+psycopg://...
        "sqlite:///cashier.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" uses SQLALCHEMY_DATABASE_URI, "memory" keeps everything in-process
    STORAGE_BACKEND = os.environ.get("CASHIER_STORAGE", "sql").strip().lower()

    # Upper bound for one checkout unit of work (seconds), None = no deadline
    CHECKOUT_TIMEOUT_SECONDS = _float_env("CHECKOUT_TIMEOUT_SECONDS", 10.0)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    API_VERSION = "1.0.0"
