# report-tracker/config.py

"""
Central configuration for the Report Tracker.
-- Bonus tiers, sync schedule and integration settings --
"""
import os

from dotenv import load_dotenv

load_dotenv()

# --- Bonus Tiers ---
# Evaluated from the highest threshold down, first match wins.
# Rates are per reported customer (VND).
BONUS_TIERS = {
    "high": {"threshold": 70, "rate": 400000, "label": "Cao"},
    "medium-high": {"threshold": 50, "rate": 300000, "label": "Khá"},
    "medium": {"threshold": 30, "rate": 200000, "label": "Trung bình"},
}

# --- Payment Status ---
# Stored value -> label used by the original spreadsheet / UI.
PAYMENT_STATUS_LABELS = {
    "unpaid": "chưa pay",
    "paid": "đã pay",
}

# --- Database / Broker ---
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./report_tracker.db")
REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")

# --- Scheduler ---
BUSINESS_TIMEZONE = os.getenv("BUSINESS_TIMEZONE", "America/New_York")
DAILY_SYNC_HOUR = int(os.getenv("DAILY_SYNC_HOUR", "6"))
DAILY_SYNC_MINUTE = int(os.getenv("DAILY_SYNC_MINUTE", "0"))
PAYMENT_CHECK_HOUR = int(os.getenv("PAYMENT_CHECK_HOUR", "23"))
PAYMENT_CHECK_MINUTE = int(os.getenv("PAYMENT_CHECK_MINUTE", "30"))
RECONCILE_INTERVAL_SECONDS = float(os.getenv("RECONCILE_INTERVAL_SECONDS", "15"))

# --- Integrations ---
# Keys in the `settings` table. Env values are only a fallback.
SETTING_KEYS = {
    "calendly_token": "calendly_token",
    "stripe_secret_key": "stripe_secret_key",
}
CALENDLY_API_TOKEN = os.getenv("CALENDLY_API_TOKEN")
CALENDLY_USER_URI = os.getenv("CALENDLY_USER_URI")
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# --- Customer Import ---
# Invitee names that are never imported (compared case-insensitively).
IGNORED_CUSTOMER_NAMES = {"", "unknown"}
# Name of the person hosting the appointments, stripped from "X and <host>" titles.
HOST_NAME = os.getenv("HOST_NAME", "Tuong")

# --- App ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
