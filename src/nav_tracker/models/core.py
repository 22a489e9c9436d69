"""Typed structures for account data, canonical events and reconstructed points."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict


class EventCategory(str, Enum):
    """Category tag carried by canonical events and reconstructed points.

    TRADE, DEPOSIT, WITHDRAWAL and CREATE are the canonical event categories.
    NOW and START are markers emitted only by the reconstructor to anchor the
    edges of the series; they never carry an amount worth displaying.
    """

    TRADE = "TRADE"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    CREATE = "CREATE"
    NOW = "NOW"
    START = "START"

    @property
    def is_marker(self) -> bool:
        return self in (EventCategory.NOW, EventCategory.START)


@dataclass(frozen=True)
class CanonicalEvent:
    timestamp_ms: int
    amount: Decimal
    category: EventCategory
    label: str

    def __post_init__(self) -> None:
        if self.category.is_marker:
            raise ValueError(f"{self.category.value} is not a canonical event category")


@dataclass(frozen=True)
class ReconstructedPoint:
    timestamp_ms: int
    nav_after_event: Decimal
    event_amount: Decimal
    category: EventCategory
    label: str


class TradeRecord(TypedDict, total=False):
    """A trade as mapped from the brokerage (closed or open)."""

    id: str
    symbol: str
    type: str
    status: str
    entry_price: float
    exit_price: Optional[float]
    quantity: float
    stop_loss: float
    take_profit: float
    pnl: Decimal
    entry_date: str
    entry_timestamp: Optional[int]
    exit_date: Optional[str]
    exit_timestamp: Optional[int]


class AccountSnapshot(TypedDict, total=False):
    """Subset of the OANDA account summary used by the account page."""

    id: str
    currency: str
    NAV: str
    balance: str
    unrealizedPL: str
    marginUsed: str
    marginAvailable: str
    marginRate: str
    positionValue: str
    openTradeCount: int
    pendingOrderCount: int
    lastTransactionID: str


class KeyMetrics(TypedDict):
    nav: float
    balance: float
    unrealized_pl: float
    margin_available: float


class MarginHealth(TypedDict):
    margin_used: float
    margin_rate: float
    leverage: Optional[float]
    position_value: float
    nav: float
    margin_percent: float
    bar_percent: float
    status: str
    open_trade_count: int
    pending_order_count: int


class LedgerRow(TypedDict):
    """One row of the funding history table."""

    id: str
    date: str
    event: str
    amount: float
    amount_text: str
    badge: str


class ChartSeries(TypedDict):
    """Parallel series consumed by the NAV growth chart.

    The overlay lists are sparse: None wherever the point's category does
    not match the overlay.
    """

    dates: List[datetime]
    nav: List[float]
    deposits: List[Optional[float]]
    withdrawals: List[Optional[float]]
    creates: List[Optional[float]]


class AccountOverview(TypedDict):
    """Everything the account page renders, as returned by load_account_overview."""

    account: AccountSnapshot
    key_metrics: KeyMetrics
    margin: Optional[MarginHealth]
    points: List[ReconstructedPoint]
    ledger: List[LedgerRow]
    transactions: List[Dict[str, Any]]
    trades: List[TradeRecord]
