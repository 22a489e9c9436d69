"""Tests for event collection, time parsing and merging."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from nav_tracker.models.core import CanonicalEvent, EventCategory
from nav_tracker.services.events import (
    coerce_decimal,
    collect_fund_events,
    collect_trade_events,
    merge_events,
    ms_to_datetime,
    parse_time_ms,
    to_decimal,
)


def test_to_decimal_coerces_bad_values_to_zero() -> None:
    """Absent, non-numeric and non-finite amounts are 0; floats keep their short form."""
    assert to_decimal(None) == Decimal(0)
    assert to_decimal("") == Decimal(0)
    assert to_decimal("abc") == Decimal(0)
    assert to_decimal(float("nan")) == Decimal(0)
    assert to_decimal(True) == Decimal(0)
    assert to_decimal(0.1) == Decimal("0.1")
    assert to_decimal("-125.50") == Decimal("-125.50")
    assert to_decimal(7) == Decimal(7)


def test_coerce_decimal_distinguishes_missing() -> None:
    """coerce_decimal returns None for missing input, a Decimal otherwise."""
    assert coerce_decimal(None) is None
    assert coerce_decimal("inf") is None
    assert coerce_decimal("0") == Decimal(0)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("1970-01-01T00:00:02.000Z", 2000),
        ("1970-01-01T00:00:02.123456789Z", 2123),
        ("1970-01-01T01:00:00+01:00", 0),
        ("1970-01-01T00:00:01", 1000),
        (1_700_000_000, 1_700_000_000_000),
        (1_700_000_000_123, 1_700_000_000_123),
        ("1700000000.5", 1_700_000_000_500),
        (datetime(1970, 1, 1, 0, 0, 3, tzinfo=timezone.utc), 3000),
    ],
)
def test_parse_time_ms(value, expected) -> None:
    """ISO strings, epoch seconds/milliseconds and datetimes all land on epoch ms."""
    assert parse_time_ms(value) == expected


@pytest.mark.parametrize("value", [None, "", "yesterday", {}, float("nan")])
def test_parse_time_ms_rejects_garbage(value) -> None:
    """Unparseable times return None instead of raising."""
    assert parse_time_ms(value) is None


def test_collect_trade_events_filters_and_converts() -> None:
    """Only closed trades with an exit timestamp contribute; seconds become ms."""
    trades = [
        {"status": "WIN", "exit_timestamp": 1000, "pnl": 50},
        {"status": "OPEN", "exit_timestamp": 1001, "pnl": 5},
        {"status": "LOSS", "exit_timestamp": None, "pnl": -5},
        {"status": "BREAK_EVEN", "exit_timestamp": 1002},
    ]
    events = collect_trade_events(trades)
    assert events == [
        CanonicalEvent(1_000_000, Decimal(50), EventCategory.TRADE, "Trade P&L"),
        CanonicalEvent(1_002_000, Decimal(0), EventCategory.TRADE, "Trade P&L"),
    ]


def test_fund_event_categories() -> None:
    """CREATE ignores sign; transfers split into deposit / withdrawal by sign."""
    funds = [
        {"time": "2024-01-01T00:00:00Z", "amount": "-10", "type": "CREATE"},
        {"time": "2024-01-02T00:00:00Z", "amount": "500", "type": "ACCOUNT_CREATE"},
        {"time": "2024-01-03T00:00:00Z", "amount": -50, "type": "TRANSFER_FUNDS"},
        {"time": "2024-01-04T00:00:00Z", "amount": 50, "type": "TRANSFER_FUNDS"},
        {"time": "2024-01-05T00:00:00Z", "type": "RESET_RESETTABLE_PL"},
    ]
    events = collect_fund_events(funds)
    assert [(e.category, e.label) for e in events] == [
        (EventCategory.CREATE, "Account Opened"),
        (EventCategory.CREATE, "Account Opened"),
        (EventCategory.WITHDRAWAL, "Withdrawal"),
        (EventCategory.DEPOSIT, "Deposit"),
        (EventCategory.DEPOSIT, "Deposit"),
    ]
    assert events[2].amount == Decimal(-50)
    assert events[4].amount == Decimal(0)


def test_fund_events_skip_unparseable_time() -> None:
    """A fund record without a usable time does not contribute an event."""
    events = collect_fund_events([{"amount": 5, "type": "TRANSFER_FUNDS"}, {"time": "?", "amount": 1}])
    assert events == []


def test_merge_events_is_stable() -> None:
    """Trade events precede fund events at the same millisecond."""
    trade = CanonicalEvent(10, Decimal(1), EventCategory.TRADE, "Trade P&L")
    late = CanonicalEvent(20, Decimal(1), EventCategory.TRADE, "Trade P&L")
    fund = CanonicalEvent(10, Decimal(2), EventCategory.DEPOSIT, "Deposit")
    early = CanonicalEvent(5, Decimal(3), EventCategory.CREATE, "Account Opened")
    assert merge_events([late, trade], [fund, early]) == [early, trade, fund, late]


def test_canonical_event_rejects_marker_category() -> None:
    """NOW and START are not valid canonical event categories."""
    with pytest.raises(ValueError):
        CanonicalEvent(0, Decimal(0), EventCategory.NOW, "Current")


def test_trade_exit_seconds_round_to_nearest_ms() -> None:
    """Fractional exit seconds round to the nearest millisecond."""
    events = collect_trade_events([
        {"status": "WIN", "exit_timestamp": 0.0017, "pnl": 1},
        {"status": "WIN", "exit_timestamp": "1700000000.1234", "pnl": 1},
    ])
    assert [e.timestamp_ms for e in events] == [2, 1_700_000_000_123]


@pytest.mark.parametrize("value", ["1e20", -1e20, 10**18])
def test_parse_time_ms_rejects_out_of_range_epoch(value) -> None:
    """Epoch numbers beyond the years datetime supports are treated as unparseable."""
    assert parse_time_ms(value) is None


def test_fund_events_skip_out_of_range_time() -> None:
    """An absurd epoch time drops only that record."""
    events = collect_fund_events([
        {"time": "1e20", "amount": 5, "type": "TRANSFER_FUNDS"},
        {"time": "2024-01-01T00:00:00Z", "amount": 7, "type": "TRANSFER_FUNDS"},
    ])
    assert [e.amount for e in events] == [Decimal(7)]


def test_ms_to_datetime() -> None:
    """Milliseconds map to aware UTC datetimes; out-of-range or junk gives None."""
    assert ms_to_datetime(1_700_000_000_500) == datetime(2023, 11, 14, 22, 13, 20, 500_000, tzinfo=timezone.utc)
    assert ms_to_datetime(10**20) is None
    assert ms_to_datetime(None) is None
