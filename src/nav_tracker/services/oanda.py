"""OANDA v3 REST client: account summary, funding transactions and trade history."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

import requests

from nav_tracker.config.constants import (
    FUND_TRANSACTION_TYPES,
    FUNDING_LOOKBACK_DAYS,
    LIVE_ACCOUNT_PREFIX,
    OANDA_LIVE_URL,
    OANDA_PRACTICE_URL,
    REQUEST_TIMEOUT_SECONDS,
    TRADE_HISTORY_PAGE_SIZE,
)
from nav_tracker.models.core import AccountSnapshot, TradeRecord
from nav_tracker.services.events import is_create_type, ms_to_datetime, parse_time_ms, to_decimal
from nav_tracker.services.metrics import to_float

logger = logging.getLogger(__name__)


class OandaError(RuntimeError):
    """Raised when a required OANDA request fails (HTTP error or network failure)."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def get_base_url(env: str) -> str:
    """Live API for env == "live", practice API for anything else."""
    return OANDA_LIVE_URL if env == "live" else OANDA_PRACTICE_URL


def clean_symbol(instrument: Optional[str]) -> str:
    """Strip separators for comparison, e.g. "USD_JPY" -> "USDJPY"."""
    return re.sub(r"[^a-zA-Z0-9]", "", str(instrument or "")).upper()


def _headers(api_key: str) -> Dict[str, str]:
    return {"Content-Type": "application/json", "Authorization": f"Bearer {api_key}"}


def _get(url: str, api_key: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
    try:
        return requests.get(url, headers=_headers(api_key), params=params, timeout=REQUEST_TIMEOUT_SECONDS)
    except requests.RequestException as e:
        raise OandaError(f"Network error contacting OANDA: {e}") from e


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return ""
    if isinstance(body, dict):
        return str(body.get("errorMessage") or "")
    return ""


def _json_body(response: requests.Response, what: str) -> Dict[str, Any]:
    """Decode a JSON object body; anything else (no JSON, a list, a string) is an OandaError."""
    try:
        body = response.json()
    except ValueError as e:
        raise OandaError(f"Malformed {what} response from OANDA", response.status_code) from e
    if not isinstance(body, dict):
        raise OandaError(f"Malformed {what} response from OANDA", response.status_code)
    return body


def _records(body: Dict[str, Any], key: str) -> List[Dict[str, Any]]:
    """Dict items of a list field; a missing or non-list field yields []."""
    items = body.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _iso_utc(dt: datetime) -> str:
    return dt.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def fetch_account_details(account_id: str, api_key: str, env: str) -> AccountSnapshot:
    """
    Fetch the account summary (NAV, balance, margin fields, counts).

    Raises:
        OandaError: on a non-2xx response, a malformed body or network failure.
    """
    url = f"{get_base_url(env)}/accounts/{account_id}/summary"
    response = _get(url, api_key)
    if not response.ok:
        message = _error_message(response) or f"Failed to fetch account details ({response.status_code})"
        logger.error("Error fetching account details: %s", message)
        raise OandaError(message, response.status_code)
    account = _json_body(response, "account details").get("account")
    if not isinstance(account, dict):
        raise OandaError("Malformed account details response from OANDA", response.status_code)
    return account


def _fetch_transaction_pages(account_id: str, api_key: str, env: str, params: Dict[str, Any]) -> List[Dict[str, Any]]:
    url = f"{get_base_url(env)}/accounts/{account_id}/transactions"
    response = _get(url, api_key, params=params)
    if not response.ok:
        logger.warning("Failed to fetch fund transactions list (%s)", response.status_code)
        return []
    data = _json_body(response, "transactions")
    transactions = _records(data, "transactions")
    # The list endpoint answers with page URLs; each page holds the transactions.
    pages = data.get("pages")
    for page_url in pages if isinstance(pages, list) else []:
        try:
            page = _get(str(page_url), api_key)
            if not page.ok:
                logger.warning("Failed to fetch transaction page %s (%s)", page_url, page.status_code)
                continue
            transactions.extend(_records(_json_body(page, "transaction page"), "transactions"))
        except OandaError as e:
            logger.warning("Skipping transaction page %s: %s", page_url, e)
    return transactions


def _transaction_sort_key(txn: Dict[str, Any]) -> int:
    try:
        return int(txn.get("id"))
    except (TypeError, ValueError):
        return 0


def fetch_fund_transactions(
    account_id: str,
    api_key: str,
    env: str,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """
    Fetch the account's funding history: the creation transaction plus
    transfers, rejected transfers, funding and resets over the last five years.

    Best-effort: failures are logged and the transactions fetched so far are
    returned. Duplicates (by id) are dropped.

    Returns:
        Transaction dicts sorted by id, newest first.
    """
    now = now or datetime.now(timezone.utc)
    base_url = get_base_url(env)
    logger.info("Starting funding history fetch for account %s", account_id)
    collected: List[Dict[str, Any]] = []

    try:
        first = _get(f"{base_url}/accounts/{account_id}/transactions/1", api_key)
        if first.ok:
            txn = _json_body(first, "transaction").get("transaction")
            if isinstance(txn, dict) and is_create_type(txn.get("type")):
                collected.append(txn)
        else:
            logger.warning("Failed to fetch transaction 1 (status %s)", first.status_code)
    except OandaError as e:
        logger.warning("Failed to fetch first transaction: %s", e)

    params = {
        "from": _iso_utc(now - timedelta(days=FUNDING_LOOKBACK_DAYS)),
        "to": _iso_utc(now),
        "type": ",".join(FUND_TRANSACTION_TYPES),
    }
    try:
        collected.extend(_fetch_transaction_pages(account_id, api_key, env, params))
    except OandaError as e:
        logger.warning("Error fetching fund transactions: %s", e)

    seen = set()
    unique: List[Dict[str, Any]] = []
    for txn in collected:
        txn_id = str(txn.get("id"))
        if txn_id in seen:
            continue
        seen.add(txn_id)
        unique.append(txn)
    unique.sort(key=_transaction_sort_key, reverse=True)
    logger.info("Fetched %d funding transactions", len(unique))
    return unique


def _utc_date(ms: Optional[int]) -> Optional[str]:
    if ms is None:
        return None
    dt = ms_to_datetime(ms)
    return dt.strftime("%Y-%m-%d") if dt is not None else None


def _order_price(order: Any) -> float:
    if isinstance(order, dict):
        return to_float(order.get("price"))
    return 0.0


def map_oanda_trade(raw: Dict[str, Any], state: str) -> TradeRecord:
    """
    Map an OANDA trade object to a TradeRecord.

    Closed trades get WIN / LOSS / BREAK_EVEN from realizedPL and exit fields
    from closeTime / averageClosePrice; open trades carry unrealizedPL as pnl.
    Timestamps are epoch seconds.
    """
    units = to_float(raw.get("initialUnits"))
    entry_ms = parse_time_ms(raw.get("openTime"))
    trade: TradeRecord = {
        "id": str(raw.get("id") or ""),
        "symbol": clean_symbol(raw.get("instrument")),
        "type": "LONG" if units > 0 else "SHORT",
        "quantity": abs(units),
        "entry_price": to_float(raw.get("price")),
        "entry_timestamp": entry_ms // 1000 if entry_ms is not None else None,
        "entry_date": _utc_date(entry_ms) or "",
        "exit_price": None,
        "exit_timestamp": None,
        "exit_date": None,
        "stop_loss": _order_price(raw.get("stopLossOrder")),
        "take_profit": _order_price(raw.get("takeProfitOrder")),
    }
    if state == "CLOSED":
        pnl = to_decimal(raw.get("realizedPL"))
        trade["pnl"] = pnl
        trade["status"] = "WIN" if pnl > 0 else "LOSS" if pnl < 0 else "BREAK_EVEN"
        exit_ms = parse_time_ms(raw.get("closeTime"))
        if exit_ms is not None:
            trade["exit_timestamp"] = exit_ms // 1000
            trade["exit_date"] = _utc_date(exit_ms)
        if raw.get("averageClosePrice") is not None:
            trade["exit_price"] = to_float(raw.get("averageClosePrice"))
    else:
        trade["pnl"] = to_decimal(raw.get("unrealizedPL"))
        trade["status"] = "OPEN"
    return trade


def fetch_trade_history(account_id: str, api_key: str, env: str) -> List[TradeRecord]:
    """
    Fetch closed trades (required) and open trades (best-effort).

    Raises:
        OandaError: when the closed-trades request fails; 401 and 403 get
            explicit token / environment messages.

    Returns:
        TradeRecords sorted by entry timestamp, newest first.
    """
    base_url = get_base_url(env)
    url = f"{base_url}/accounts/{account_id}/trades"
    trades: List[TradeRecord] = []

    closed = _get(url, api_key, params={"state": "CLOSED", "count": TRADE_HISTORY_PAGE_SIZE})
    if not closed.ok:
        message = _error_message(closed) or closed.reason or ""
        logger.error("Failed to fetch closed trades: %s", message)
        if closed.status_code == 401:
            raise OandaError("Unauthorized. Please check your API Token.", 401)
        if closed.status_code == 403:
            kind = "LIVE" if account_id.startswith(LIVE_ACCOUNT_PREFIX) else "PRACTICE"
            raise OandaError(
                f"Insufficient authorization. You are trying to access a {kind} account on the "
                f"{env.upper()} server. Please check your environment settings.",
                403,
            )
        raise OandaError(message or f"Failed to fetch closed trades ({closed.status_code})", closed.status_code)
    trades.extend(map_oanda_trade(t, "CLOSED") for t in _records(_json_body(closed, "closed trades"), "trades"))

    try:
        opened = _get(url, api_key, params={"state": "OPEN", "count": TRADE_HISTORY_PAGE_SIZE})
        if opened.ok:
            trades.extend(map_oanda_trade(t, "OPEN") for t in _records(_json_body(opened, "open trades"), "trades"))
        else:
            logger.warning("Failed to fetch open trades: %s", _error_message(opened) or opened.reason)
    except OandaError as e:
        logger.warning("Failed to fetch open trades: %s", e)

    trades.sort(key=lambda t: t.get("entry_timestamp") or 0, reverse=True)
    return trades


def verify_connection(api_key: str, account_id: Optional[str] = None, env: str = "practice") -> Tuple[bool, str]:
    """
    Check an API key (and optionally that the account id belongs to it).

    Never raises; returns (success, message) for display in the settings dialog.
    """
    try:
        response = _get(f"{get_base_url(env)}/accounts", api_key)
    except OandaError as e:
        return False, str(e)
    if not response.ok:
        if response.status_code == 401:
            return False, "Invalid API Key or Wrong Environment."
        return False, f"Connection failed: {response.reason}"
    try:
        accounts = _records(_json_body(response, "accounts"), "accounts")
    except OandaError as e:
        return False, str(e)
    if account_id:
        if not any(acc.get("id") == account_id for acc in accounts):
            return False, (
                "API Key is valid, but Account ID not found in this account list. "
                "Check environment (Live/Practice)."
            )
        return True, f"Verified! Account {account_id} is reachable."
    return True, "Connection Verified! API Key is valid."
