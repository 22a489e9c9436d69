"""Account key metrics and margin health computation (pure functions)."""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from nav_tracker.config.constants import MARGIN_CRITICAL_PCT, MARGIN_ELEVATED_PCT
from nav_tracker.models.core import KeyMetrics, MarginHealth


def to_float(value: Any) -> float:
    """Parse a numeric field from the account summary; anything unparseable is 0.0."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    return v if math.isfinite(v) else 0.0


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def compute_key_metrics(account: Optional[Mapping[str, Any]]) -> KeyMetrics:
    """
    Headline numbers for the account page: NAV, balance, unrealized P&L, margin available.

    A missing account (not loaded yet) yields all zeros.
    """
    if not account:
        return {"nav": 0.0, "balance": 0.0, "unrealized_pl": 0.0, "margin_available": 0.0}
    return {
        "nav": to_float(account.get("NAV")),
        "balance": to_float(account.get("balance")),
        "unrealized_pl": to_float(account.get("unrealizedPL")),
        "margin_available": to_float(account.get("marginAvailable")),
    }


def margin_percent(margin_used: float, nav: float) -> float:
    """Margin used as a percentage of NAV (0 when NAV is 0)."""
    if nav == 0:
        return 0.0
    return margin_used / nav * 100.0


def margin_status(percent: float) -> str:
    """Bucket margin usage: critical above 80%, elevated above 50%, otherwise healthy."""
    if percent > MARGIN_CRITICAL_PCT:
        return "critical"
    if percent > MARGIN_ELEVATED_PCT:
        return "elevated"
    return "healthy"


def compute_margin_health(account: Optional[Mapping[str, Any]]) -> Optional[MarginHealth]:
    """
    Margin usage and account stats for the margin health panel.

    Returns:
        MarginHealth dict, or None when no account is loaded.
    """
    if not account:
        return None
    margin_used = to_float(account.get("marginUsed"))
    margin_rate = to_float(account.get("marginRate"))
    nav = to_float(account.get("NAV"))
    pct = margin_percent(margin_used, nav)
    return {
        "margin_used": margin_used,
        "margin_rate": margin_rate,
        "leverage": (1.0 / margin_rate) if margin_rate > 0 else None,
        "position_value": to_float(account.get("positionValue")),
        "nav": nav,
        "margin_percent": pct,
        "bar_percent": max(0.0, min(pct, 100.0)),
        "status": margin_status(pct),
        "open_trade_count": _to_int(account.get("openTradeCount")),
        "pending_order_count": _to_int(account.get("pendingOrderCount")),
    }
