"""NAV growth chart: series building, tooltips and matplotlib drawing."""

from __future__ import annotations

import logging
from bisect import bisect_left
from typing import Optional, Sequence

from matplotlib.ticker import FuncFormatter

from nav_tracker.config.constants import DEFAULT_CURRENCY
from nav_tracker.models.core import ChartSeries, EventCategory, ReconstructedPoint
from nav_tracker.services.events import ms_to_datetime
from nav_tracker.theming.style import (
    APPLE_COLOR_CREATE,
    APPLE_COLOR_LOSS,
    APPLE_COLOR_PROFIT,
    CHART_BACKGROUND,
    CHART_FOREGROUND,
    CHART_NAV_COLOR,
)
from nav_tracker.ui.utils import format_currency, format_date

logger = logging.getLogger(__name__)


def build_chart_series(points: Sequence[ReconstructedPoint]) -> ChartSeries:
    """
    Split reconstructed points into the chart's parallel series.

    Overlay series hold the point's NAV (so markers sit on the line) only where
    the category matches; every other position is None. Points whose time
    cannot be shown on a date axis are left out.
    """
    series: ChartSeries = {"dates": [], "nav": [], "deposits": [], "withdrawals": [], "creates": []}
    for p in points:
        date = ms_to_datetime(p.timestamp_ms)
        if date is None:
            logger.debug("Skipping chart point with out-of-range time %s", p.timestamp_ms)
            continue
        nav = float(p.nav_after_event)
        series["dates"].append(date)
        series["nav"].append(nav)
        series["deposits"].append(nav if p.category is EventCategory.DEPOSIT else None)
        series["withdrawals"].append(nav if p.category is EventCategory.WITHDRAWAL else None)
        series["creates"].append(nav if p.category is EventCategory.CREATE else None)
    return series


def tooltip_text(point: ReconstructedPoint, currency: str = DEFAULT_CURRENCY) -> str:
    """Tooltip for a chart point; NOW / START markers show the NAV only."""
    lines = [
        format_date(point.timestamp_ms),
        f"NAV: {format_currency(point.nav_after_event, currency)}",
    ]
    if not point.category.is_marker:
        lines.append(f"{point.label}: {format_currency(point.event_amount, currency, signed=True)}")
    return "\n".join(lines)


def nearest_point(points: Sequence[ReconstructedPoint], timestamp_ms: float) -> Optional[ReconstructedPoint]:
    """Point closest in time to timestamp_ms (points must be chronological)."""
    if not points:
        return None
    stamps = [p.timestamp_ms for p in points]
    i = bisect_left(stamps, timestamp_ms)
    if i == 0:
        return points[0]
    if i == len(points):
        return points[-1]
    before, after = points[i - 1], points[i]
    return before if timestamp_ms - before.timestamp_ms <= after.timestamp_ms - timestamp_ms else after


def _style_axes(ax) -> None:
    ax.set_facecolor(CHART_BACKGROUND)
    ax.tick_params(colors=CHART_FOREGROUND)
    ax.xaxis.label.set_color(CHART_FOREGROUND)
    ax.yaxis.label.set_color(CHART_FOREGROUND)
    for spine in ax.spines.values():
        spine.set_color(CHART_FOREGROUND)


def _overlay(ax, dates, values, color: str, label: str) -> None:
    xs = [d for d, v in zip(dates, values) if v is not None]
    ys = [v for v in values if v is not None]
    if xs:
        ax.scatter(xs, ys, color=color, s=36, zorder=3, label=label)


def draw_nav_chart(ax, points: Sequence[ReconstructedPoint], currency: str = DEFAULT_CURRENCY) -> None:
    """Draw the NAV area/line plus deposit, withdrawal and account-opened markers on ax."""
    ax.clear()
    _style_axes(ax)
    series = build_chart_series(points)
    if not series["dates"]:
        ax.text(0.5, 0.5, "No account history", ha="center", va="center", color=CHART_FOREGROUND,
                fontsize=14, transform=ax.transAxes)
        return

    dates, nav = series["dates"], series["nav"]
    baseline = min(nav)
    ax.fill_between(dates, nav, baseline, color=CHART_NAV_COLOR, alpha=0.2)
    ax.plot(dates, nav, color=CHART_NAV_COLOR, linewidth=2, label="NAV")
    _overlay(ax, dates, series["deposits"], APPLE_COLOR_PROFIT, "Deposit")
    _overlay(ax, dates, series["withdrawals"], APPLE_COLOR_LOSS, "Withdrawal")
    _overlay(ax, dates, series["creates"], APPLE_COLOR_CREATE, "Account Opened")

    ax.yaxis.set_major_formatter(FuncFormatter(lambda x, p: format_currency(x, currency)))
    ax.set_ylabel(f"NAV ({currency})")
    ax.set_title("NAV Growth", color=CHART_FOREGROUND, fontsize=14, fontweight="bold")
    ax.grid(True, alpha=0.3, color="gray")
    ax.legend(loc="upper left", facecolor=CHART_BACKGROUND, edgecolor=CHART_FOREGROUND,
              labelcolor=CHART_FOREGROUND)
    ax.figure.autofmt_xdate()
