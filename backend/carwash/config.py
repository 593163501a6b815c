# backend/carwash/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/carwash.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",  # optional alternative location
        "sqlite:///carwash.sqlite3",  # default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Availability check outcome when the conflict query itself fails:
    # "allow" keeps the booking flow open, "deny" treats the slot as taken.
    BOOKING_ON_CHECK_ERROR = os.environ.get("BOOKING_ON_CHECK_ERROR", "allow")

    # Appointment dates/times are entered in shop-local time.
    BUSINESS_TIMEZONE = os.environ.get("BUSINESS_TIMEZONE", "America/Argentina/Buenos_Aires")

    # Image storage (local disk stand-in for the public bucket)
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", "uploads")
    PUBLIC_STORAGE_URL = os.environ.get("PUBLIC_STORAGE_URL", "/uploads")
    MAX_IMAGE_BYTES = int(os.environ.get("MAX_IMAGE_BYTES", 5 * 1024 * 1024))

    # Role given to self-registered customers
    DEFAULT_CUSTOMER_ROLE = os.environ.get("DEFAULT_CUSTOMER_ROLE", "cliente")

    CORS_ALLOWED_ORIGINS = {
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    }
