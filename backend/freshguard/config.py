# backend/freshguard/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///freshguard.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Seeded by `flask system init`
    ADMIN_EMAIL = os.environ.get("ADMIN_EMAIL", "admin@freshguard.local")
    ADMIN_PASSWORD = os.environ.get("ADMIN_PASSWORD", "Admin123!ChangeMe")

    BINDING_CODE_TTL_HOURS = int(os.environ.get("BINDING_CODE_TTL_HOURS", "24"))
    REMINDER_THRESHOLD_DAYS = int(os.environ.get("REMINDER_THRESHOLD_DAYS", "1"))

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:4000,http://127.0.0.1:4000",
        ).split(",")
        if origin.strip()
    }
