# backend/portal/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/portal.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///portal.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # One engine (and pool) per process, shared by every request
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": int(os.environ.get("DB_POOL_RECYCLE", "1800")),
    }

    # Reporting
    REPORT_DEFAULT_WINDOW_DAYS = int(os.environ.get("REPORT_DEFAULT_WINDOW_DAYS", "30"))
    REPORT_TOP_PRODUCTS_LIMIT = int(os.environ.get("REPORT_TOP_PRODUCTS_LIMIT", "10"))
    REPORT_AUDIT_ROW_LIMIT = int(os.environ.get("REPORT_AUDIT_ROW_LIMIT", "1000"))
    # "rfc4180" doubles embedded quotes, "backslash" keeps the legacy \" escape
    REPORT_CSV_QUOTE_STYLE = os.environ.get("REPORT_CSV_QUOTE_STYLE", "rfc4180")
    REPORT_SLOW_THRESHOLD_MS = int(os.environ.get("REPORT_SLOW_THRESHOLD_MS", "2000"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "8"))
