"""Centralized theming and typography for the NAV Tracker UI."""

from __future__ import annotations

# Apple Design Constants
APPLE_FONT_FAMILY = "SF Pro Display"  # Primary font, falls back to system default
APPLE_COLOR_PROFIT = "#30D158"  # Green
APPLE_COLOR_LOSS = "#FF3B30"    # Red
APPLE_COLOR_CREATE = "#BF5AF2"  # Purple (account opened)
APPLE_COLOR_RESET = "#0A84FF"   # Blue (account reset)
APPLE_SPACING_MEDIUM = 8
APPLE_PADDING = 16

SUMMARY_VALUE_FONT = ("SF Pro Display", 14, "bold")
SUMMARY_DESC_FONT = ("SF Pro Display", 9)
SUMMARY_DESC_COLOR = "#888888"  # Gray for descriptor labels and neutral values

# Chart palette (dark background like the rest of the app)
CHART_BACKGROUND = "#2b2b2b"
CHART_FOREGROUND = "white"
CHART_NAV_COLOR = "#4cc9f0"

# Funding history badge colors, keyed by ledger_badge()
BADGE_COLORS = {
    "rejected": SUMMARY_DESC_COLOR,
    "reset": APPLE_COLOR_RESET,
    "create": APPLE_COLOR_CREATE,
    "positive": APPLE_COLOR_PROFIT,
    "negative": APPLE_COLOR_LOSS,
}

# Margin bar bootstyle per margin_status()
MARGIN_BOOTSTYLES = {
    "healthy": "success",
    "elevated": "warning",
    "critical": "danger",
}


def setup_styles(root):
    """Configure ttk/ttkbootstrap styles for a consistent macOS-inspired look.

    ttkbootstrap.Style is a singleton and does not take master; root is kept
    for API compatibility with callers.
    """
    import tkinter as tk  # Deferred so services can use the palette without GUI deps
    import ttkbootstrap as tb

    style = tb.Style()
    style.configure("Vertical.TScrollbar", gripcount=0, width=8, arrowsize=0)
    style.map("Vertical.TScrollbar", background=[("active", "#404040")])
    try:
        style.configure("TButton", padding=(14, 8))
        style.configure("primary.TButton", padding=(14, 8))
        style.configure("Ledger.Treeview", font=(APPLE_FONT_FAMILY, 11))
    except tk.TclError:
        # Some environments may not support style reconfiguration; fail gracefully.
        pass
    return style
