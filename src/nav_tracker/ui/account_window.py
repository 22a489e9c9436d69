"""Account page window: key metrics, NAV growth chart, margin health and funding history."""

from __future__ import annotations

import tkinter as tk
from tkinter import W, messagebox

import ttkbootstrap as tb
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure

from nav_tracker import app as core
from nav_tracker.services import storage
from nav_tracker.theming.style import (
    APPLE_COLOR_LOSS,
    APPLE_PADDING,
    APPLE_SPACING_MEDIUM,
    BADGE_COLORS,
    CHART_BACKGROUND,
    MARGIN_BOOTSTYLES,
    SUMMARY_DESC_COLOR,
    SUMMARY_DESC_FONT,
    SUMMARY_VALUE_FONT,
    setup_styles,
)
from nav_tracker.ui import dialogs
from nav_tracker.ui.chart import draw_nav_chart, nearest_point, tooltip_text
from nav_tracker.ui.utils import color_for_value, format_currency, load_error_message, run_in_background

KEY_METRIC_CARDS = [
    ("nav", "Net Asset Value", False),
    ("balance", "Balance", False),
    ("unrealized_pl", "Unrealized P&L", True),
    ("margin_available", "Margin Available", False),
]


class AccountWindow(tb.Window):
    """Main window. Data is fetched on a worker thread and applied on the Tk thread."""

    def __init__(self) -> None:
        super().__init__(themename="darkly")
        self.title("NAV Tracker")
        self.geometry("1100x860")
        setup_styles(self)
        try:
            self.settings = storage.load_settings()
        except (OSError, ValueError) as e:
            messagebox.showerror("Settings Error", f"Error loading settings: {e}")
            self.settings = storage.get_default_settings()
        self.overview = None
        self.loading = False
        self._build()
        self.refresh()

    # --- layout ---

    def _build(self) -> None:
        root = tb.Frame(self, padding=APPLE_PADDING)
        root.pack(fill="both", expand=True)

        header = tb.Frame(root)
        header.pack(fill="x")
        tb.Label(header, text="Account Overview", font=SUMMARY_VALUE_FONT).pack(side="left")
        self.account_label = tb.Label(header, text="", foreground=SUMMARY_DESC_COLOR)
        self.account_label.pack(side="left", padx=APPLE_PADDING)
        tb.Button(header, text="About", bootstyle="link", command=lambda: dialogs.show_about(self)).pack(side="right")
        tb.Button(header, text="Connection", bootstyle="outline",
                  command=lambda: dialogs.connection_dialog(self)).pack(side="right", padx=APPLE_SPACING_MEDIUM)
        self.refresh_button = tb.Button(header, text="Refresh", bootstyle="primary", command=self.refresh)
        self.refresh_button.pack(side="right")

        self.status_label = tb.Label(root, text="", foreground=APPLE_COLOR_LOSS, wraplength=1000)
        self.status_label.pack(fill="x", pady=(APPLE_SPACING_MEDIUM, 0))

        cards = tb.Frame(root)
        cards.pack(fill="x", pady=APPLE_SPACING_MEDIUM)
        self.metric_labels = {}
        for i, (key, title, _signed) in enumerate(KEY_METRIC_CARDS):
            card = tb.LabelFrame(cards, text=title, padding=APPLE_SPACING_MEDIUM)
            card.grid(row=0, column=i, sticky="nsew", padx=APPLE_SPACING_MEDIUM)
            cards.columnconfigure(i, weight=1)
            value = tb.Label(card, text="-", font=SUMMARY_VALUE_FONT)
            value.pack(anchor=W)
            self.metric_labels[key] = value

        self.chart_figure = Figure(figsize=(10, 4), facecolor=CHART_BACKGROUND)
        self.chart_ax = self.chart_figure.add_subplot(111)
        self.chart_canvas = FigureCanvasTkAgg(self.chart_figure, root)
        self.chart_canvas.get_tk_widget().pack(fill="both", expand=True, pady=APPLE_SPACING_MEDIUM)
        self.chart_tip = tb.Label(root, text="", font=SUMMARY_DESC_FONT, foreground=SUMMARY_DESC_COLOR,
                                  justify="left")
        self.chart_tip.pack(fill="x")
        self.chart_canvas.mpl_connect("motion_notify_event", self._on_chart_hover)

        lower = tb.Frame(root)
        lower.pack(fill="both", expand=True)
        lower.columnconfigure(0, weight=1)
        lower.columnconfigure(1, weight=2)

        margin = tb.LabelFrame(lower, text="Margin Health", padding=APPLE_SPACING_MEDIUM)
        margin.grid(row=0, column=0, sticky="nsew", padx=(0, APPLE_SPACING_MEDIUM))
        self.margin_used_label = tb.Label(margin, text="Margin Used: -")
        self.margin_used_label.pack(anchor=W)
        self.margin_bar = tb.Progressbar(margin, maximum=100, bootstyle="success")
        self.margin_bar.pack(fill="x", pady=APPLE_SPACING_MEDIUM)
        self.margin_detail_label = tb.Label(margin, text="", font=SUMMARY_DESC_FONT, justify="left")
        self.margin_detail_label.pack(anchor=W)
        self.stats_label = tb.Label(margin, text="", justify="left")
        self.stats_label.pack(anchor=W, pady=(APPLE_SPACING_MEDIUM, 0))

        history = tb.LabelFrame(lower, text="Account History", padding=APPLE_SPACING_MEDIUM)
        history.grid(row=0, column=1, sticky="nsew")
        self.ledger_tree = tb.Treeview(history, columns=("date", "event", "amount"), show="headings",
                                       height=8, style="Ledger.Treeview")
        for col, title, anchor in (("date", "Date", "w"), ("event", "Event", "w"), ("amount", "Amount", "e")):
            self.ledger_tree.heading(col, text=title, anchor=anchor)
            self.ledger_tree.column(col, anchor=anchor)
        for badge, color in BADGE_COLORS.items():
            self.ledger_tree.tag_configure(badge, foreground=color)
        scrollbar = tb.Scrollbar(history, orient="vertical", command=self.ledger_tree.yview)
        self.ledger_tree.configure(yscrollcommand=scrollbar.set)
        self.ledger_tree.pack(side="left", fill="both", expand=True)
        scrollbar.pack(side="right", fill="y")

    # --- data ---

    def refresh(self) -> None:
        """Reload the account from OANDA unless a load is already running."""
        if self.loading:
            return
        settings = dict(self.settings)
        self.account_label.configure(
            text=f"{settings.get('oanda_account_id') or 'not connected'} · {settings.get('oanda_env')}"
        )
        if not storage.has_credentials(settings):
            self.status_label.configure(
                text="Connect your OANDA account (Connection) to see the account overview.",
                foreground=SUMMARY_DESC_COLOR,
            )
            self._render(None)
            return
        self.loading = True
        self.refresh_button.configure(state="disabled")
        self.status_label.configure(text="Loading account…", foreground=SUMMARY_DESC_COLOR)
        run_in_background(self, lambda: core.load_account_overview(settings), self._on_loaded)

    def _on_loaded(self, overview, error) -> None:
        self.loading = False
        self.refresh_button.configure(state="normal")
        if error is not None:
            self.status_label.configure(text=load_error_message(error), foreground=APPLE_COLOR_LOSS)
        else:
            self.status_label.configure(text="")
        self._render(overview)

    # --- rendering ---

    def _render(self, overview) -> None:
        self.overview = overview
        currency = self.settings.get("currency")
        if overview is None:
            for label in self.metric_labels.values():
                label.configure(text="-", foreground=SUMMARY_DESC_COLOR)
            draw_nav_chart(self.chart_ax, [], currency)
            self.chart_canvas.draw()
            self.ledger_tree.delete(*self.ledger_tree.get_children())
            return
        currency = overview["account"].get("currency") or currency

        for key, _title, signed in KEY_METRIC_CARDS:
            value = overview["key_metrics"][key]
            self.metric_labels[key].configure(
                text=format_currency(value, currency, signed=signed),
                foreground=color_for_value(value) if signed else "",
            )

        draw_nav_chart(self.chart_ax, overview["points"], currency)
        self.chart_canvas.draw()
        self._render_margin(overview["margin"], currency)

        self.ledger_tree.delete(*self.ledger_tree.get_children())
        if not overview["ledger"]:
            self.ledger_tree.insert("", tk.END, values=("", "No account history found.", ""))
        for row in overview["ledger"]:
            self.ledger_tree.insert("", tk.END, values=(row["date"], row["event"], row["amount_text"]),
                                    tags=(row["badge"],))

    def _render_margin(self, margin, currency) -> None:
        if margin is None:
            return
        self.margin_used_label.configure(
            text=f"Margin Used: {format_currency(margin['margin_used'], currency)} ({margin['margin_percent']:.1f}%)"
        )
        self.margin_bar.configure(value=margin["bar_percent"], bootstyle=MARGIN_BOOTSTYLES[margin["status"]])
        leverage = f"{margin['leverage']:.0f}:1" if margin["leverage"] else "-"
        self.margin_detail_label.configure(
            text=(
                f"Margin Rate: {margin['margin_rate'] * 100:.2f}% (leverage {leverage})\n"
                f"Position Value: {format_currency(margin['position_value'], currency)}"
            )
        )
        self.stats_label.configure(
            text=f"Open Trades: {margin['open_trade_count']}\nPending Orders: {margin['pending_order_count']}"
        )

    def _on_chart_hover(self, event) -> None:
        if not self.overview or event.inaxes is not self.chart_ax or event.xdata is None:
            return
        # matplotlib date numbers are days since the epoch
        point = nearest_point(self.overview["points"], event.xdata * 86_400_000)
        if point is not None:
            currency = self.overview["account"].get("currency") or self.settings.get("currency")
            self.chart_tip.configure(text=tooltip_text(point, currency))
