# backend/jms/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///jms.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Seconds a transaction waits on a locked store before failing
    DB_TIMEOUT_SECONDS = float(os.environ.get("DB_TIMEOUT_SECONDS", "15"))

    # Allowed drift between client-sent totals and server-recomputed totals
    SALE_TOTAL_TOLERANCE = os.environ.get("SALE_TOTAL_TOLERANCE", "0.01")

    DEFAULT_CUSTOMER_NAME = os.environ.get("DEFAULT_CUSTOMER_NAME", "Walk-in Customer")

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
        ).split(",")
        if origin.strip()
    ]
