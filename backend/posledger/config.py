from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Snapshot table lives in backend/instance/posledger.sqlite3 by default
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///posledger.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Percent, tax-inclusive basis
    DEFAULT_TAX_RATE = float(os.environ.get("DEFAULT_TAX_RATE", "15"))

    # Description polishing is disabled unless an endpoint is configured
    POLISH_API_URL = os.environ.get("POLISH_API_URL", "")
    POLISH_API_KEY = os.environ.get("POLISH_API_KEY", "")
    POLISH_TIMEOUT_SECONDS = float(os.environ.get("POLISH_TIMEOUT_SECONDS", "8"))
