"""Dialog windows for NAV Tracker: OANDA connection settings and about."""

from __future__ import annotations

import tkinter as tk
from tkinter import W, EW, messagebox

import ttkbootstrap as tb

from nav_tracker.config.constants import OANDA_ENVIRONMENTS
from nav_tracker.services import oanda, storage
from nav_tracker.theming.style import APPLE_PADDING, APPLE_SPACING_MEDIUM
from nav_tracker.ui.utils import load_error_message, run_in_background


def show_about(app) -> None:
    """Show about dialog."""
    messagebox.showinfo(
        "About",
        "NAV Tracker\n\nAccount overview for OANDA: key metrics, margin health,\n"
        "reconstructed NAV growth and funding history.",
    )


def connection_dialog(app) -> None:
    """Edit, verify and save the OANDA connection; refreshes the app on save."""
    dialog = tk.Toplevel(app)
    dialog.title("OANDA Connection")
    dialog.geometry("460x260")
    dialog.transient(app)
    dialog.grab_set()

    frame = tb.Frame(dialog, padding=APPLE_PADDING)
    frame.pack(fill="both", expand=True)
    frame.columnconfigure(1, weight=1)

    key_var = tb.StringVar(value=app.settings.get("oanda_api_key", ""))
    account_var = tb.StringVar(value=app.settings.get("oanda_account_id", ""))
    env_var = tb.StringVar(value=app.settings.get("oanda_env", "practice"))
    status_var = tb.StringVar(value="")

    tb.Label(frame, text="API Token:").grid(row=0, column=0, sticky=W, pady=APPLE_SPACING_MEDIUM)
    tb.Entry(frame, textvariable=key_var, show="*").grid(row=0, column=1, sticky=EW)
    tb.Label(frame, text="Account ID:").grid(row=1, column=0, sticky=W, pady=APPLE_SPACING_MEDIUM)
    tb.Entry(frame, textvariable=account_var).grid(row=1, column=1, sticky=EW)
    tb.Label(frame, text="Environment:").grid(row=2, column=0, sticky=W, pady=APPLE_SPACING_MEDIUM)
    tb.Combobox(frame, textvariable=env_var, values=list(OANDA_ENVIRONMENTS), state="readonly",
                width=12).grid(row=2, column=1, sticky=W)
    tb.Label(frame, textvariable=status_var, wraplength=400).grid(row=3, column=0, columnspan=2, sticky=W)

    def on_account_change(*_):
        env_var.set(storage.infer_environment(account_var.get(), env_var.get()))

    account_var.trace_add("write", on_account_change)

    def verify_done(outcome, error):
        if not dialog.winfo_exists():
            return
        verify_button.configure(state="normal")
        ok, message = outcome if error is None else (False, load_error_message(error))
        status_var.set(("✓ " if ok else "✗ ") + message)

    def verify_action():
        key, account, env = key_var.get().strip(), account_var.get().strip() or None, env_var.get()
        verify_button.configure(state="disabled")
        status_var.set("Verifying…")
        run_in_background(app, lambda: oanda.verify_connection(key, account, env), verify_done)

    def save_action():
        settings = dict(app.settings)
        settings.update({
            "oanda_api_key": key_var.get(),
            "oanda_account_id": account_var.get(),
            "oanda_env": env_var.get(),
        })
        try:
            app.settings = storage.save_settings(settings)
        except OSError as e:
            messagebox.showerror("Save Error", f"Error saving settings: {e}")
            return
        dialog.destroy()
        app.refresh()

    buttons = tb.Frame(frame)
    buttons.grid(row=4, column=0, columnspan=2, pady=(APPLE_PADDING, 0), sticky=EW)
    verify_button = tb.Button(buttons, text="Verify", bootstyle="outline", command=verify_action)
    verify_button.pack(side="left")
    tb.Button(buttons, text="Cancel", bootstyle="secondary", command=dialog.destroy).pack(side="right")
    tb.Button(buttons, text="Save", bootstyle="primary", command=save_action).pack(
        side="right", padx=APPLE_SPACING_MEDIUM)
