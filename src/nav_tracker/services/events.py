"""Normalize closed trades and fund transactions into canonical events (pure functions)."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional

from nav_tracker.config.constants import (
    CREATE_TRANSACTION_TYPES,
    LABEL_CREATE,
    LABEL_DEPOSIT,
    LABEL_TRADE,
    LABEL_WITHDRAWAL,
    TRADE_STATUS_OPEN,
)
from nav_tracker.models.core import CanonicalEvent, EventCategory

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
# Epoch numbers below this are seconds, at or above it milliseconds
_SECONDS_CUTOFF = Decimal(100_000_000_000)
_ISO_FRACTION = re.compile(r"^(?P<head>[^.]+T\d{2}:\d{2}:\d{2})\.(?P<frac>\d+)(?P<tail>.*)$")


def coerce_decimal(value: Any) -> Optional[Decimal]:
    """Return value as a finite Decimal, or None when it is absent or not numeric.

    Floats go through their shortest repr so 0.1 becomes Decimal("0.1"),
    not the binary expansion.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, int):
        number = Decimal(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
    if not number.is_finite():
        return None
    return number


def to_decimal(value: Any) -> Decimal:
    """Coerce an amount to Decimal; absent or non-numeric values become 0."""
    number = coerce_decimal(value)
    return number if number is not None else Decimal(0)


def _datetime_to_ms(dt: datetime) -> int:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def ms_to_datetime(ms: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Epoch milliseconds as an aware datetime, or None outside the range datetime can hold."""
    try:
        return (_EPOCH + timedelta(milliseconds=int(ms))).astimezone(tz)
    except (TypeError, ValueError, OverflowError):
        return None


def _epoch_to_ms(number: Decimal) -> int:
    if abs(number) < _SECONDS_CUTOFF:
        number = number * 1000
    return int(number)


def _parse_iso(text: str) -> Optional[datetime]:
    # RFC3339 from the broker carries nanoseconds; datetime keeps microseconds.
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    match = _ISO_FRACTION.match(text)
    if match:
        frac = (match.group("frac") + "000000")[:6]
        text = f"{match.group('head')}.{frac}{match.group('tail')}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_time_ms(value: Any) -> Optional[int]:
    """
    Parse a transaction time into epoch milliseconds.

    Accepts datetime objects, RFC3339 / ISO-8601 strings (any fraction length,
    "Z" or numeric offsets) and epoch numbers or numeric strings. Epoch values
    below 1e11 are taken as seconds, larger ones as milliseconds.

    Returns:
        Milliseconds since epoch, or None when the value cannot be parsed or
        falls outside the years datetime supports.
    """
    if isinstance(value, datetime):
        return _datetime_to_ms(value)
    number = coerce_decimal(value)
    if number is not None:
        ms = _epoch_to_ms(number)
        return ms if ms_to_datetime(ms) is not None else None
    if not isinstance(value, str) or not value.strip():
        return None
    dt = _parse_iso(value.strip())
    if dt is None:
        return None
    return _datetime_to_ms(dt)


def is_create_type(txn_type: Any) -> bool:
    """True when a transaction type denotes account creation."""
    return str(txn_type or "") in CREATE_TRANSACTION_TYPES


def collect_trade_events(trades: Iterable[Mapping[str, Any]]) -> List[CanonicalEvent]:
    """
    Build TRADE events from closed trades.

    Open trades and trades without a numeric exit timestamp are skipped.
    The exit timestamp is in seconds; missing or non-numeric P&L counts as 0.
    """
    events: List[CanonicalEvent] = []
    for trade in trades:
        if not isinstance(trade, Mapping):
            continue
        if trade.get("status") == TRADE_STATUS_OPEN:
            continue
        exit_seconds = coerce_decimal(trade.get("exit_timestamp"))
        if exit_seconds is None:
            logger.debug("Skipping trade %s without exit timestamp", trade.get("id"))
            continue
        events.append(
            CanonicalEvent(
                timestamp_ms=int(round(exit_seconds * 1000)),
                amount=to_decimal(trade.get("pnl")),
                category=EventCategory.TRADE,
                label=LABEL_TRADE,
            )
        )
    return events


def collect_fund_events(transactions: Iterable[Mapping[str, Any]]) -> List[CanonicalEvent]:
    """
    Build DEPOSIT / WITHDRAWAL / CREATE events from fund transactions.

    Creation types are always CREATE; everything else is split by the sign of
    the amount (zero counts as a deposit). Records whose time cannot be parsed
    are skipped.
    """
    events: List[CanonicalEvent] = []
    for txn in transactions:
        if not isinstance(txn, Mapping):
            continue
        timestamp_ms = parse_time_ms(txn.get("time"))
        if timestamp_ms is None:
            logger.debug("Skipping transaction %s with unparseable time %r", txn.get("id"), txn.get("time"))
            continue
        amount = to_decimal(txn.get("amount"))
        if is_create_type(txn.get("type")):
            category, label = EventCategory.CREATE, LABEL_CREATE
        elif amount >= 0:
            category, label = EventCategory.DEPOSIT, LABEL_DEPOSIT
        else:
            category, label = EventCategory.WITHDRAWAL, LABEL_WITHDRAWAL
        events.append(CanonicalEvent(timestamp_ms=timestamp_ms, amount=amount, category=category, label=label))
    return events


def merge_events(
    trade_events: Iterable[CanonicalEvent],
    fund_events: Iterable[CanonicalEvent],
) -> List[CanonicalEvent]:
    """Concatenate trade then fund events and sort oldest first (stable for ties)."""
    return sorted([*trade_events, *fund_events], key=lambda e: e.timestamp_ms)
