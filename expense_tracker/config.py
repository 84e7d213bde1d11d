"""Configuration management for the expense tracker.

This module centralizes all configuration values including paths,
formatting defaults, and environment variable overrides.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in expense_tracker/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

# Data directories
DATA_DIR = Path(os.getenv("EXPENSE_TRACKER_DATA_DIR", _PROJECT_ROOT / "data"))

# Database
DB_PATH = Path(
    os.getenv("EXPENSE_TRACKER_DB_PATH", DATA_DIR / "expenses.db")
).resolve()

# Per-user budget settings
SETTINGS_PATH = Path(
    os.getenv("EXPENSE_TRACKER_SETTINGS_PATH", DATA_DIR / "settings.json")
).resolve()

# Currency formatting
LOCALE = os.getenv("EXPENSE_TRACKER_LOCALE", "es-AR")
CURRENCY = os.getenv("EXPENSE_TRACKER_CURRENCY", "ARS")

LOG_LEVEL = os.getenv("EXPENSE_TRACKER_LOG_LEVEL", "INFO")


def ensure_data_directories() -> None:
    """Create all required data directories if they don't exist."""
    for directory in [DATA_DIR, DB_PATH.parent, SETTINGS_PATH.parent]:
        directory.mkdir(parents=True, exist_ok=True)
