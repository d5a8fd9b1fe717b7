"""Settings window: Gemini credential, model and a connection test."""
from __future__ import annotations

import threading
import tkinter as tk
import webbrowser
from tkinter import ttk
from typing import Any, Callable, Optional, Tuple

from ..config_manager import DEFAULT_MODEL_NAME
from ..logger import get_logger
from .theme import COLORS, FONT, ModernButton

logger = get_logger(__name__)

API_KEY_PREFIX = "AIza"
API_KEY_URL = "https://aistudio.google.com/app/apikey"
MODEL_CHOICES = ["gemini-2.0-flash", "gemini-2.0-flash-lite", "gemini-1.5-pro", "gemini-1.5-flash"]
STATUS_CLEAR_MS = 5000


def validate_api_key(api_key: str) -> Tuple[bool, str]:
    """Return (is_valid, message) for a candidate Gemini key."""
    api_key = (api_key or "").strip()
    if not api_key:
        return False, "Please enter an API key"
    if not api_key.startswith(API_KEY_PREFIX):
        return False, f"Gemini API keys start with '{API_KEY_PREFIX}'"
    return True, ""


class SettingsWindow:
    """Single settings Toplevel; ``show`` focuses it when already open."""

    def __init__(self, root: tk.Misc, config: Any, client: Any, on_close: Optional[Callable[[], None]] = None):
        self.root = root
        self.config = config
        self.client = client
        self.on_close = on_close
        self.window: Optional[tk.Toplevel] = None
        self._status_var: Optional[tk.StringVar] = None
        self._status_label: Optional[tk.Label] = None
        self._status_job: Optional[str] = None
        self._api_key_var: Optional[tk.StringVar] = None
        self._model_var: Optional[tk.StringVar] = None
        self._test_button: Optional[ModernButton] = None

    def is_open(self) -> bool:
        return self.window is not None

    def show(self) -> None:
        if self.window is not None:
            try:
                self.window.deiconify()
                self.window.lift()
                self.window.focus_force()
                return
            except tk.TclError:
                self.window = None

        window = tk.Toplevel(self.root)
        self.window = window
        window.title("DraftGate Settings")
        window.configure(bg=COLORS['bg_primary'])
        window.resizable(False, False)
        window.protocol("WM_DELETE_WINDOW", self.close)

        body = tk.Frame(window, bg=COLORS['bg_primary'])
        body.pack(fill="both", expand=True, padx=25, pady=20)

        tk.Label(
            body,
            text="Gemini API",
            font=(FONT, 14, 'bold'),
            fg=COLORS['text_primary'],
            bg=COLORS['bg_primary'],
        ).pack(anchor="w", pady=(0, 12))

        tk.Label(
            body,
            text="API Key",
            font=(FONT, 10, 'bold'),
            fg=COLORS['text_primary'],
            bg=COLORS['bg_primary'],
        ).pack(anchor="w", pady=(0, 8))

        self._api_key_var = tk.StringVar(value=self.config.get_api_key() or "")
        entry_container = tk.Frame(body, bg=COLORS['border'], highlightthickness=1, highlightbackground=COLORS['border'])
        entry_container.pack(fill="x")
        api_key_entry = tk.Entry(
            entry_container,
            textvariable=self._api_key_var,
            show="●",
            font=(FONT, 11),
            bg=COLORS['bg_secondary'],
            fg=COLORS['text_primary'],
            relief='flat',
            borderwidth=0,
            insertbackground=COLORS['accent_primary'],
            width=44,
        )
        api_key_entry.pack(fill="x", ipady=8, padx=10, pady=2)
        api_key_entry.bind(
            '<FocusIn>', lambda e: entry_container.config(highlightbackground=COLORS['accent_primary'], highlightthickness=2)
        )
        api_key_entry.bind(
            '<FocusOut>', lambda e: entry_container.config(highlightbackground=COLORS['border'], highlightthickness=1)
        )

        show_key_var = tk.BooleanVar(value=False)
        tk.Checkbutton(
            body,
            text="Show API Key",
            variable=show_key_var,
            command=lambda: api_key_entry.config(show="" if show_key_var.get() else "●"),
            font=(FONT, 9),
            fg=COLORS['text_secondary'],
            bg=COLORS['bg_primary'],
            activebackground=COLORS['bg_primary'],
            selectcolor=COLORS['bg_primary'],
            relief='flat',
            cursor='hand2',
        ).pack(anchor="w", pady=(8, 0))

        help_link = tk.Label(
            body,
            text="Get a free API key from Google AI Studio",
            font=(FONT, 9, 'underline'),
            fg=COLORS['accent_primary'],
            bg=COLORS['bg_primary'],
            cursor='hand2',
        )
        help_link.pack(anchor="w", pady=(4, 12))
        help_link.bind('<Button-1>', lambda e: webbrowser.open(API_KEY_URL))

        tk.Label(
            body,
            text="Model",
            font=(FONT, 10, 'bold'),
            fg=COLORS['text_primary'],
            bg=COLORS['bg_primary'],
        ).pack(anchor="w", pady=(0, 8))

        current_model = self.config.get_model_name() or DEFAULT_MODEL_NAME
        choices = list(MODEL_CHOICES)
        if current_model not in choices:
            choices.insert(0, current_model)
        self._model_var = tk.StringVar(value=current_model)
        ttk.Combobox(
            body,
            textvariable=self._model_var,
            values=choices,
            state="readonly",
            font=(FONT, 10),
        ).pack(fill="x", ipady=4)

        buttons = tk.Frame(body, bg=COLORS['bg_primary'])
        buttons.pack(fill="x", pady=(16, 0))
        ModernButton(buttons, text="Save", command=self.save, style="primary").pack(side="left")
        self._test_button = ModernButton(buttons, text="Test connection", command=self.test_connection, style="secondary")
        self._test_button.pack(side="left", padx=(8, 0))

        self._status_var = tk.StringVar(value="")
        self._status_label = tk.Label(
            body,
            textvariable=self._status_var,
            font=(FONT, 9),
            fg=COLORS['text_secondary'],
            bg=COLORS['bg_primary'],
            wraplength=380,
            justify="left",
        )
        self._status_label.pack(anchor="w", pady=(12, 0))

        window.update_idletasks()
        x = (window.winfo_screenwidth() - window.winfo_width()) // 2
        y = (window.winfo_screenheight() - window.winfo_height()) // 3
        window.geometry(f"+{max(0, x)}+{max(0, y)}")
        window.lift()
        window.focus_force()

    def set_status(self, message: str, color: str = 'text_secondary') -> None:
        """Show ``message`` under the buttons; it clears itself after 5 s."""
        if self._status_var is None or self.window is None:
            return
        self._status_var.set(message)
        if self._status_label is not None:
            self._status_label.config(fg=COLORS.get(color, COLORS['text_secondary']))
        if self._status_job is not None:
            try:
                self.window.after_cancel(self._status_job)
            except tk.TclError:
                pass
        self._status_job = self.window.after(STATUS_CLEAR_MS, self._clear_status)

    def _clear_status(self) -> None:
        self._status_job = None
        if self._status_var is not None:
            self._status_var.set("")

    def save(self) -> bool:
        if self._api_key_var is None or self._model_var is None:
            return False
        api_key = self._api_key_var.get().strip()
        ok, message = validate_api_key(api_key)
        if not ok:
            self.set_status(message, 'error')
            return False

        self.config.set_api_key(api_key)
        self.config.set_model_name(self._model_var.get())
        logger.info("API settings saved (model %s)", self._model_var.get())
        self.set_status("Settings saved.", 'success')
        return True

    def test_connection(self) -> None:
        """Save, then check the service on a worker thread."""
        if not self.save():
            return
        if self._test_button is not None:
            self._test_button.set_enabled(False)
        self.set_status("Testing connection...")
        threading.Thread(target=self._run_test, daemon=True).start()

    def _run_test(self) -> None:
        try:
            response = self.client.test_connection()
        except Exception as e:
            response = {"success": False, "error": str(e)}
        window = self.window
        if window is None:
            return
        try:
            window.after(0, self._on_test_done, response)
        except (tk.TclError, RuntimeError) as e:
            logger.debug("Settings window closed before test finished: %s", e)

    def _on_test_done(self, response: dict) -> None:
        if self._test_button is not None:
            self._test_button.set_enabled(True)
        if response.get("success"):
            self.set_status("Connection OK.", 'success')
        else:
            logger.warning("Connection test failed: %s", response.get("error"))
            self.set_status(f"Connection failed: {response.get('error', 'unknown error')}", 'error')

    def close(self) -> None:
        window, self.window = self.window, None
        self._status_job = None
        if window is not None:
            try:
                window.destroy()
            except tk.TclError:
                pass
        if self.on_close:
            self.on_close()
