"""Tests for app core API (load_account_overview) with the OANDA client stubbed."""

from decimal import Decimal

import pytest

from conftest import FakeResponse
from nav_tracker import app
from nav_tracker.models.core import EventCategory
from nav_tracker.services import oanda
from nav_tracker.services.storage import get_default_settings

SETTINGS = {
    **get_default_settings(),
    "oanda_api_key": "token",
    "oanda_account_id": "101-004-1-001",
}


@pytest.fixture
def stub_oanda(monkeypatch):
    """Replace the three OANDA fetches with canned data."""
    account = {"NAV": "1300.00", "balance": "1290", "unrealizedPL": "10", "marginUsed": "130",
               "marginRate": "0.05", "openTradeCount": 1, "pendingOrderCount": 0, "currency": "USD"}
    transactions = [
        {"id": "5", "time": "2024-02-01T00:00:00Z", "type": "TRANSFER_FUNDS", "amount": "300"},
        {"id": "1", "time": "2024-01-01T00:00:00Z", "type": "CREATE"},
    ]
    trades = [
        {"id": "9", "status": "OPEN", "pnl": Decimal("10"), "exit_timestamp": None},
        {"id": "8", "status": "WIN", "pnl": Decimal("-0"), "exit_timestamp": 1_706_000_000},
        {"id": "7", "status": "LOSS", "pnl": Decimal("-50"), "exit_timestamp": 1_704_500_000},
    ]
    monkeypatch.setattr(oanda, "fetch_account_details", lambda *a: account)
    monkeypatch.setattr(oanda, "fetch_fund_transactions", lambda *a: transactions)
    monkeypatch.setattr(oanda, "fetch_trade_history", lambda *a: trades)
    return account, transactions, trades


def test_load_account_overview(stub_oanda) -> None:
    """The overview ties metrics, margin, ledger and the reconstructed series together."""
    overview = app.load_account_overview(SETTINGS)
    assert overview["key_metrics"]["nav"] == pytest.approx(1300.0)
    assert overview["margin"]["margin_percent"] == pytest.approx(10.0)
    assert [row["event"] for row in overview["ledger"]] == ["Deposit", "Account Opened"]

    points = overview["points"]
    assert points[-1].category is EventCategory.NOW
    assert points[-1].nav_after_event == Decimal("1300.00")
    assert [p.category for p in points[:-1]] == [
        EventCategory.CREATE, EventCategory.TRADE, EventCategory.TRADE, EventCategory.DEPOSIT,
    ]
    # CREATE carries no amount, so the account started from the balance before the first loss
    assert points[0].nav_after_event == Decimal("1050.00")


def test_load_account_overview_requires_credentials() -> None:
    """Missing key or account id is rejected before any request."""
    with pytest.raises(ValueError):
        app.load_account_overview(get_default_settings())


def test_load_account_overview_propagates_fetch_errors(monkeypatch) -> None:
    """A failed account fetch surfaces as OandaError, not a partial overview."""
    def _fail(*args):
        raise oanda.OandaError("Unauthorized. Please check your API Token.", 401)

    monkeypatch.setattr(oanda, "fetch_account_details", _fail)
    with pytest.raises(oanda.OandaError):
        app.load_account_overview(SETTINGS)


def test_load_account_overview_malformed_summary(fake_get) -> None:
    """A summary body that is not an object surfaces as OandaError."""
    routes, _ = fake_get
    base = oanda.get_base_url(SETTINGS["oanda_env"])
    routes[f"{base}/accounts/{SETTINGS['oanda_account_id']}/summary"] = FakeResponse(200, ["not", "a", "dict"])
    with pytest.raises(oanda.OandaError, match="Malformed"):
        app.load_account_overview(SETTINGS)
