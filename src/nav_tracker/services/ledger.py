"""Funding history rows: labels, amounts and badges for fund transactions."""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping

from nav_tracker.config.constants import DEFAULT_CURRENCY, DEFAULT_DATE_FORMAT
from nav_tracker.models.core import LedgerRow
from nav_tracker.services.events import is_create_type, to_decimal
from nav_tracker.ui.utils import format_currency, format_date


def fund_event_amount(txn: Mapping[str, Any]) -> float:
    """Signed amount of a fund transaction; absent or non-numeric amounts are 0."""
    return float(to_decimal(txn.get("amount")))


def is_rejected(txn: Mapping[str, Any]) -> bool:
    return "REJECT" in str(txn.get("type") or "")


def fund_event_label(txn: Mapping[str, Any]) -> str:
    """Human label for the funding history table."""
    txn_type = str(txn.get("type") or "")
    if txn_type == "TRANSFER_FUNDS":
        return "Deposit" if fund_event_amount(txn) > 0 else "Withdrawal"
    if txn_type == "TRANSFER_FUNDS_REJECT":
        return "Transfer Rejected"
    if txn_type == "FUNDING":
        return "Funding"
    if txn_type == "RESET_RESETTABLE_PL":
        return "Account Reset"
    if is_create_type(txn_type):
        return "Account Opened"
    return txn_type.replace("_", " ")


def ledger_badge(txn: Mapping[str, Any]) -> str:
    """Badge style key: rejected, reset, create, positive or negative (first match wins)."""
    if is_rejected(txn):
        return "rejected"
    if txn.get("type") == "RESET_RESETTABLE_PL":
        return "reset"
    if is_create_type(txn.get("type")):
        return "create"
    return "positive" if fund_event_amount(txn) >= 0 else "negative"


def build_ledger_rows(
    transactions: Iterable[Mapping[str, Any]],
    currency: str = DEFAULT_CURRENCY,
    date_format: str = DEFAULT_DATE_FORMAT,
) -> List[LedgerRow]:
    """
    Build table rows for the funding history, keeping the input order.

    Zero and missing amounts both display as "-".
    """
    rows: List[LedgerRow] = []
    for txn in transactions:
        amount = fund_event_amount(txn)
        rows.append({
            "id": str(txn.get("id") or ""),
            "date": format_date(txn.get("time"), date_format),
            "event": fund_event_label(txn),
            "amount": amount,
            "amount_text": format_currency(amount, currency) if amount != 0 else "-",
            "badge": ledger_badge(txn),
        })
    return rows
