"""Tests for UI utility functions (no GUI deps)."""

import pytest

from nav_tracker.services.oanda import OandaError
from nav_tracker.theming.style import APPLE_COLOR_LOSS, APPLE_COLOR_PROFIT, SUMMARY_DESC_COLOR
from nav_tracker.ui.utils import (
    color_for_value,
    format_currency,
    format_date,
    load_error_message,
    run_in_background,
)


def test_color_for_value_positive() -> None:
    """Positive values use profit (green) color."""
    assert color_for_value(1.0) == APPLE_COLOR_PROFIT
    assert color_for_value(0.01) == APPLE_COLOR_PROFIT


def test_color_for_value_negative() -> None:
    """Negative values use loss (red) color."""
    assert color_for_value(-1.0) == APPLE_COLOR_LOSS
    assert color_for_value(-0.01) == APPLE_COLOR_LOSS


def test_color_for_value_zero_or_none() -> None:
    """Zero and None use neutral descriptor color."""
    assert color_for_value(0.0) == SUMMARY_DESC_COLOR
    assert color_for_value(None) == SUMMARY_DESC_COLOR
    assert color_for_value(1e-12) == SUMMARY_DESC_COLOR


def test_color_for_value_invalid() -> None:
    """Non-numeric values fall back to neutral."""
    assert color_for_value("x") == SUMMARY_DESC_COLOR  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "amount, currency, signed, expected",
    [
        (1234.5, "USD", False, "$1,234.5"),
        (1234, "USD", False, "$1,234"),
        (1234.567, "USD", False, "$1,234.57"),
        (-50, "USD", False, "-$50"),
        (50, "USD", True, "+$50"),
        (0, "USD", True, "$0"),
        (99.9, "eur", False, "€99.9"),
        (12, "XAU", False, "XAU 12"),
        ("junk", "USD", False, "$0"),
    ],
)
def test_format_currency(amount, currency, signed, expected) -> None:
    """Thousands separators, at most two decimals, optional sign."""
    assert format_currency(amount, currency, signed=signed) == expected


def test_format_date() -> None:
    """Seconds, milliseconds and ISO strings format the same instant; junk is a dash."""
    assert format_date(1_700_000_000) == "2023-11-14 22:13"
    assert format_date(1_700_000_000_000) == "2023-11-14 22:13"
    assert format_date("2023-11-14T22:13:20Z", "%Y-%m-%d") == "2023-11-14"
    assert format_date(None) == "-"
    assert format_date("soon") == "-"


@pytest.mark.parametrize("value", ["1e20", -1e20, 10**20])
def test_format_date_out_of_range(value) -> None:
    """Times datetime cannot hold show as a dash."""
    assert format_date(value) == "-"


class _ImmediateWidget:
    """Stands in for a Tk widget: after() runs the callback at once."""

    def after(self, delay, func, *args):
        func(*args)


def test_run_in_background_reports_result() -> None:
    """The result reaches on_done with no error."""
    outcomes = []
    run_in_background(_ImmediateWidget(), lambda: 42, lambda result, error: outcomes.append((result, error))).join()
    assert outcomes == [(42, None)]


def test_run_in_background_reports_any_failure() -> None:
    """Unexpected exceptions are handed to on_done instead of killing the callback."""
    outcomes = []

    def work():
        return [].get("account")

    run_in_background(_ImmediateWidget(), work, lambda result, error: outcomes.append((result, error))).join()
    assert len(outcomes) == 1
    assert outcomes[0][0] is None
    assert isinstance(outcomes[0][1], AttributeError)


def test_load_error_message() -> None:
    """Known errors keep their text; anything else reads as no data."""
    assert load_error_message(OandaError("Unauthorized. Please check your API Token.", 401)) == (
        "Unauthorized. Please check your API Token."
    )
    assert load_error_message(ValueError("OANDA API key and account id are required")).startswith("OANDA API key")
    assert load_error_message(AttributeError("'list' object has no attribute 'get'")).startswith("No data available")
