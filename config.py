# config.py
# Role: Environment-driven settings for the expense manager.
#       Loads an optional .env file and exposes plain module-level constants
#       that the database, logging and summary code read at import time.

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

# Base directory of the project (where this module lives)
BASE_DIR = os.path.dirname(os.path.abspath(__file__))


def _env_truthy(name: str, default: str = "0") -> bool:
    v = os.getenv(name, default)
    return str(v).strip().lower() in ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _default_database_url() -> str:
    # SQLite file under <project_root>/database/, created on first use
    db_dir = os.path.join(BASE_DIR, "database")
    os.makedirs(db_dir, exist_ok=True)
    return f"sqlite:///{os.path.join(db_dir, 'finance.db')}"


# -------------------------------------------------------------------
# Settings
# -------------------------------------------------------------------

DATABASE_URL = os.getenv("DATABASE_URL") or _default_database_url()

SQL_ECHO = _env_truthy("SQL_ECHO", "0")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Window used by budget summaries when the caller gives no "from" bound
SUMMARY_DEFAULT_DAYS = _env_int("SUMMARY_DEFAULT_DAYS", 30)

DEFAULT_CURRENCY = os.getenv("DEFAULT_CURRENCY", "EUR")
