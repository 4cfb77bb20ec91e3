"""Pytest configuration.

The service modules live in `report-tracker/` and import each other as
top-level modules, so that directory goes on sys.path before collection.
"""

import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent
SERVICE_DIR = str(REPO_ROOT / "report-tracker")

if SERVICE_DIR not in sys.path:
    sys.path.insert(0, SERVICE_DIR)

# Keep test runs off any real database, broker or API credentials from a local .env.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["CALENDLY_API_TOKEN"] = ""
os.environ["STRIPE_SECRET_KEY"] = ""
