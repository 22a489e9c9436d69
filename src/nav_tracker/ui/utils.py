"""Shared UI utilities: value colors, currency and date formatting, background tasks (no GUI deps)."""

from __future__ import annotations

import logging
import threading
from datetime import timezone, tzinfo
from typing import Any, Callable, Optional

from nav_tracker.config.constants import DEFAULT_CURRENCY, DEFAULT_DATE_FORMAT
from nav_tracker.services.events import ms_to_datetime, parse_time_ms
from nav_tracker.services.oanda import OandaError
from nav_tracker.theming.style import (
    APPLE_COLOR_LOSS,
    APPLE_COLOR_PROFIT,
    SUMMARY_DESC_COLOR,
)

logger = logging.getLogger(__name__)

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "JPY": "¥",
    "AUD": "A$",
    "CAD": "CA$",
    "NZD": "NZ$",
    "HKD": "HK$",
    "SGD": "SGD ",
    "CHF": "CHF ",
}


def color_for_value(value: Optional[float]) -> str:
    """
    Return foreground color for a numeric value (P&L, amount, etc.).
    Use only on the value widget, never on descriptors or whole rows.

    Args:
        value: Numeric value (e.g. unrealized P&L or a fund transfer amount).

    Returns:
        APPLE_COLOR_PROFIT if value > 0, APPLE_COLOR_LOSS if value < 0,
        SUMMARY_DESC_COLOR if value is None or exactly zero (neutral).
    """
    if value is None:
        return SUMMARY_DESC_COLOR
    try:
        v = float(value)
    except (TypeError, ValueError):
        return SUMMARY_DESC_COLOR
    if abs(v) < 1e-9:
        return SUMMARY_DESC_COLOR
    return APPLE_COLOR_PROFIT if v > 0 else APPLE_COLOR_LOSS


def format_currency(amount: Any, currency: str = DEFAULT_CURRENCY, signed: bool = False) -> str:
    """
    Format an amount like "$1,234.5" (thousands separators, at most 2 decimals).

    Unknown currency codes are used as a prefix ("XAU 12"). signed=True adds
    a leading "+" for positive amounts.
    """
    try:
        v = float(amount)
    except (TypeError, ValueError):
        v = 0.0
    code = (currency or DEFAULT_CURRENCY).upper()
    symbol = CURRENCY_SYMBOLS.get(code, f"{code} ")
    digits = f"{abs(v):,.2f}".rstrip("0").rstrip(".")
    if v < 0 and digits != "0":
        return f"-{symbol}{digits}"
    prefix = "+" if signed and v > 0 else ""
    return f"{prefix}{symbol}{digits}"


def format_date(value: Any, fmt: str = DEFAULT_DATE_FORMAT, tz: tzinfo = timezone.utc) -> str:
    """
    Format a timestamp for display.

    Numbers below 1e11 are epoch seconds, larger numbers milliseconds; strings
    are ISO-8601. Returns "-" for empty or unparseable input.
    """
    if value is None or value == "":
        return "-"
    dt = ms_to_datetime(parse_time_ms(value), tz)
    if dt is None:
        return "-"
    return dt.strftime(fmt)


def run_in_background(
    widget: Any,
    work: Callable[[], Any],
    on_done: Callable[[Any, Optional[Exception]], None],
) -> threading.Thread:
    """
    Run work() on a daemon thread and hand its outcome to on_done on the Tk thread.

    on_done is scheduled with widget.after as (result, None) on success or
    (None, error) when work raises, so callers always leave their busy state.
    """
    def _worker() -> None:
        try:
            result = work()
        except Exception as e:
            logger.exception("Background task failed")
            widget.after(0, on_done, None, e)
            return
        widget.after(0, on_done, result, None)

    thread = threading.Thread(target=_worker, daemon=True)
    thread.start()
    return thread


def load_error_message(error: Exception) -> str:
    """Banner text for a failed account load; unexpected failures read as no data."""
    if isinstance(error, (OandaError, ValueError)) and str(error):
        return str(error)
    return "No data available: OANDA returned an unexpected response."
