"""Historical NAV reconstruction (pure functions).

Only the current NAV is known for certain. Every historical balance is derived
by walking the merged event list backwards from "now" and subtracting each
event's amount, so the newest point always lands exactly on the live account
value. Amounts are accumulated as Decimal, so the walk never drifts.
"""

from __future__ import annotations

import time
from decimal import Decimal
from itertools import accumulate
from typing import Any, Iterable, List, Mapping, Optional, Sequence

from nav_tracker.config.constants import DAY_MS, LABEL_NOW, LABEL_START
from nav_tracker.models.core import CanonicalEvent, EventCategory, ReconstructedPoint
from nav_tracker.services.events import (
    coerce_decimal,
    collect_fund_events,
    collect_trade_events,
    merge_events,
)

_ZERO = Decimal(0)


def wall_clock_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def reconstruct_points(
    events: Sequence[CanonicalEvent],
    current_nav: Decimal,
    at_ms: int,
) -> List[ReconstructedPoint]:
    """
    Reconstruct NAV points from events already sorted oldest first.

    Each event's point carries the NAV right after the event took effect.
    A NOW point at at_ms anchors the series; with no events a START point one
    day earlier is added so the chart never has a single point.

    Returns:
        Points in chronological order (oldest first, NOW last).
    """
    newest_first = list(reversed(events))
    # navs[i] is the NAV after newest_first[i]; navs[-1] is the NAV before the oldest event
    navs = list(accumulate(newest_first, lambda nav, event: nav - event.amount, initial=current_nav))

    points = [ReconstructedPoint(at_ms, current_nav, _ZERO, EventCategory.NOW, LABEL_NOW)]
    points.extend(
        ReconstructedPoint(event.timestamp_ms, nav, event.amount, event.category, event.label)
        for event, nav in zip(newest_first, navs)
    )
    if not newest_first:
        points.append(ReconstructedPoint(at_ms - DAY_MS, navs[-1], _ZERO, EventCategory.START, LABEL_START))
    points.reverse()
    return points


def reconstruct(
    trades: Iterable[Mapping[str, Any]],
    fund_events: Iterable[Mapping[str, Any]],
    current_nav: Any,
    *,
    now_ms: Optional[int] = None,
) -> List[ReconstructedPoint]:
    """
    Build the NAV growth series from raw trades, raw fund transactions and the current NAV.

    Malformed records are skipped or zeroed by the collectors. If current_nav is
    not a finite number (e.g. the account has not loaded) the result is empty.

    Args:
        trades: Trade dicts (status, exit_timestamp in seconds, pnl).
        fund_events: Fund transaction dicts (time, amount, type).
        current_nav: Current NAV as number, numeric string or Decimal.
        now_ms: Timestamp for the NOW point; wall clock when omitted.
    """
    nav = coerce_decimal(current_nav)
    if nav is None:
        return []
    at_ms = wall_clock_ms() if now_ms is None else now_ms
    events = merge_events(collect_trade_events(trades), collect_fund_events(fund_events))
    return reconstruct_points(events, nav, at_ms)
