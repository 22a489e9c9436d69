"""Settings persistence: OANDA connection and display preferences in a JSON file."""

from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, Optional

from nav_tracker.config.constants import (
    DEFAULT_CURRENCY,
    DEFAULT_DATE_FORMAT,
    LIVE_ACCOUNT_PREFIX,
    OANDA_ENVIRONMENTS,
    PRACTICE_ACCOUNT_PREFIX,
    SETTINGS_FILE,
)

logger = logging.getLogger(__name__)


def get_default_settings() -> Dict[str, Any]:
    """Return a fresh default settings structure (no file I/O)."""
    return {
        "oanda_api_key": "",
        "oanda_account_id": "",
        "oanda_env": "practice",
        "currency": DEFAULT_CURRENCY,
        "date_format": DEFAULT_DATE_FORMAT,
    }


def infer_environment(account_id: str, env: str) -> str:
    """
    Pick the OANDA environment for an account id.

    Live account ids start with 001 and practice ids with 101; any other id
    keeps the given env (falling back to practice if env is unknown).
    """
    account_id = (account_id or "").strip()
    if account_id.startswith(LIVE_ACCOUNT_PREFIX):
        return "live"
    if account_id.startswith(PRACTICE_ACCOUNT_PREFIX):
        return "practice"
    return env if env in OANDA_ENVIRONMENTS else "practice"


def has_credentials(settings: Dict[str, Any]) -> bool:
    return bool(settings.get("oanda_api_key")) and bool(settings.get("oanda_account_id"))


def load_settings(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load settings from JSON, filling in defaults for missing keys.

    A missing file yields the defaults. Raises on unreadable or invalid JSON
    (caller may show UI message).
    """
    path = path or SETTINGS_FILE
    settings = get_default_settings()
    if not os.path.exists(path):
        return settings
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        settings.update({k: v for k, v in data.items() if v is not None})
    settings["oanda_env"] = infer_environment(settings["oanda_account_id"], settings["oanda_env"])
    return settings


def save_settings(settings: Dict[str, Any], path: Optional[str] = None) -> Dict[str, Any]:
    """
    Save settings to JSON after normalizing the environment. Raises on I/O error.

    Returns:
        The settings as written.
    """
    path = path or SETTINGS_FILE
    data = get_default_settings()
    data.update(settings)
    data["oanda_account_id"] = str(data.get("oanda_account_id") or "").strip()
    data["oanda_api_key"] = str(data.get("oanda_api_key") or "").strip()
    env = infer_environment(data["oanda_account_id"], data.get("oanda_env", "practice"))
    if env != data.get("oanda_env"):
        logger.info("Account %s implies %s environment; switching", data["oanda_account_id"], env)
    data["oanda_env"] = env
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4)
    return data
