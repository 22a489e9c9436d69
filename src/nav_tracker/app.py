"""Application bootstrap and core API entrypoints for NAV Tracker.

Provides a small core API (load_account_overview) for use by the desktop
account page or scripts. The GUI is launched via main().
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

from nav_tracker.config.constants import DEFAULT_CURRENCY, DEFAULT_DATE_FORMAT
from nav_tracker.models.core import AccountOverview
from nav_tracker.services import ledger, metrics, oanda, reconstruction, storage

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single stream handler on the root logger (level from NAV_TRACKER_LOG_LEVEL)."""
    level_name = (level or os.environ.get("NAV_TRACKER_LOG_LEVEL") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT,
                        datefmt="%Y-%m-%d %H:%M:%S")


def load_account_overview(settings: Dict[str, Any]) -> AccountOverview:
    """Fetch account data from OANDA and derive everything the account page shows.

    Account details and closed trades are required; funding history is
    best-effort. Raises ValueError when credentials are missing and
    oanda.OandaError when a required request fails, in which case the caller
    shows an error instead of a partial overview.

    Args:
        settings: Result of storage.load_settings().

    Returns:
        AccountOverview with account, key_metrics, margin, points, ledger,
        transactions and trades.
    """
    if not storage.has_credentials(settings):
        raise ValueError("OANDA API key and account id are required")
    account_id = settings["oanda_account_id"]
    api_key = settings["oanda_api_key"]
    env = settings.get("oanda_env", "practice")
    currency = settings.get("currency") or DEFAULT_CURRENCY

    account = oanda.fetch_account_details(account_id, api_key, env)
    transactions = oanda.fetch_fund_transactions(account_id, api_key, env)
    trades = oanda.fetch_trade_history(account_id, api_key, env)

    points = reconstruction.reconstruct(trades, transactions, account.get("NAV"))
    logger.info("Reconstructed %d NAV points for account %s", len(points), account_id)
    return {
        "account": account,
        "key_metrics": metrics.compute_key_metrics(account),
        "margin": metrics.compute_margin_health(account),
        "points": points,
        "ledger": ledger.build_ledger_rows(
            transactions, currency, settings.get("date_format") or DEFAULT_DATE_FORMAT
        ),
        "transactions": transactions,
        "trades": trades,
    }


def main() -> None:
    """Launch the NAV Tracker account window."""
    configure_logging()
    from nav_tracker.ui.account_window import AccountWindow  # Deferred so core API is usable without GUI deps

    AccountWindow().mainloop()
