"""Configuration constants for fintrans, read from the environment."""
from __future__ import annotations

import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

SESSION_SECRET = os.environ.get("FINTRANS_SESSION_SECRET", "change-this-session-secret")
SQLITE_FILE_NAME = os.environ.get("FINTRANS_SQLITE", "fintrans.db")
# Empty means the processor runs in-process instead of over HTTP.
PROCESSOR_URL = os.environ.get("FINTRANS_PROCESSOR_URL", "")
PROCESSOR_DELAY_SECONDS = float(os.environ.get("FINTRANS_PROCESSOR_DELAY", "0.9"))
PROCESSOR_TIMEOUT_SECONDS = float(os.environ.get("FINTRANS_PROCESSOR_TIMEOUT", "30"))
STARTING_BALANCE = Decimal(os.environ.get("FINTRANS_STARTING_BALANCE", "1000"))
LOG_FILE = os.environ.get("FINTRANS_LOG_FILE", "")

FAILURE_THRESHOLD = Decimal("5000")
PROFILE_KEY = "fta_user"
HISTORY_KEY_PREFIX = "fta_history_"

__all__ = [
    "SESSION_SECRET",
    "SQLITE_FILE_NAME",
    "PROCESSOR_URL",
    "PROCESSOR_DELAY_SECONDS",
    "PROCESSOR_TIMEOUT_SECONDS",
    "STARTING_BALANCE",
    "LOG_FILE",
    "FAILURE_THRESHOLD",
    "PROFILE_KEY",
    "HISTORY_KEY_PREFIX",
]
