"""UI package for NAV Tracker: account window, chart, and dialogs."""

__all__ = ["AccountWindow"]


def __getattr__(name: str):
    """Lazy-load AccountWindow so ui.utils/ui.chart can be used without GUI deps."""
    if name == "AccountWindow":
        from nav_tracker.ui.account_window import AccountWindow
        return AccountWindow
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
