"""Global configuration constants for NAV Tracker.

These values are intentionally free of any UI / Tkinter concerns so they
can be reused by services, scripts, and the desktop application.
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory for data files (defaults to project root)
BASE_DIR = Path(os.environ.get("NAV_TRACKER_HOME") or Path(__file__).resolve().parents[3])

# --- File paths ---
SETTINGS_FILE = str(BASE_DIR / "settings.json")

# OANDA v3 REST endpoints
OANDA_PRACTICE_URL = "https://api-fxpractice.oanda.com/v3"
OANDA_LIVE_URL = "https://api-fxtrade.oanda.com/v3"
OANDA_ENVIRONMENTS = ("practice", "live")
REQUEST_TIMEOUT_SECONDS = 10

# Account id prefixes that pin the environment (001 = live, 101 = practice)
LIVE_ACCOUNT_PREFIX = "001"
PRACTICE_ACCOUNT_PREFIX = "101"

# Funding history: how far back to look and which ledger types to request
FUNDING_LOOKBACK_DAYS = 5 * 365
FUND_TRANSACTION_TYPES = [
    "TRANSFER_FUNDS",
    "TRANSFER_FUNDS_REJECT",
    "FUNDING",
    "RESET_RESETTABLE_PL",
]
CREATE_TRANSACTION_TYPES = {"CREATE", "ACCOUNT_CREATE"}
TRADE_HISTORY_PAGE_SIZE = 500

# Closed trades are everything except OPEN
TRADE_STATUS_OPEN = "OPEN"

# Event labels shown in chart tooltips
LABEL_TRADE = "Trade P&L"
LABEL_CREATE = "Account Opened"
LABEL_DEPOSIT = "Deposit"
LABEL_WITHDRAWAL = "Withdrawal"
LABEL_NOW = "Current"
LABEL_START = "Start"

# With no events the chart gets a synthetic start point one day back
DAY_MS = 24 * 60 * 60 * 1000

# Margin usage thresholds (percent of NAV)
MARGIN_ELEVATED_PCT = 50.0
MARGIN_CRITICAL_PCT = 80.0

# Display defaults
DEFAULT_CURRENCY = "USD"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"
