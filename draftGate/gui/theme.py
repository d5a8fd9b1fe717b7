"""Shared colors and widgets for DraftGate's Tk windows."""
from __future__ import annotations

import tkinter as tk

COLORS = {
    'bg_primary': '#FFFFFF',
    'bg_secondary': '#F8F9FA',
    'accent_primary': '#6366F1',
    'accent_hover': '#4F46E5',
    'text_primary': '#1F2937',
    'text_secondary': '#6B7280',
    'text_light': '#9CA3AF',
    'border': '#E5E7EB',
    'success': '#10B981',
    'warning': '#F59E0B',
    'error': '#EF4444',
    'missing_bg': '#D1FAE5',
    'missing_fg': '#065F46',
    'extra_bg': '#FEE2E2',
    'extra_fg': '#991B1B',
    'disabled_bg': '#D1D5DB',
}

FONT = 'Segoe UI'

_BUTTON_STYLES = {
    "primary": (COLORS['accent_primary'], '#FFFFFF', COLORS['accent_hover']),
    "secondary": (COLORS['bg_secondary'], COLORS['text_primary'], COLORS['border']),
    "success": (COLORS['success'], '#FFFFFF', '#059669'),
    "danger": (COLORS['error'], '#FFFFFF', '#DC2626'),
}


class ModernButton(tk.Button):
    """Flat button with a hover color that greys out while disabled."""

    def __init__(self, parent, text="", command=None, style="primary", **kwargs):
        bg, fg, hover_bg = _BUTTON_STYLES.get(style, _BUTTON_STYLES["secondary"])
        super().__init__(
            parent,
            text=text,
            command=command,
            bg=bg,
            fg=fg,
            font=(FONT, 10, 'normal'),
            relief='flat',
            padx=16,
            pady=8,
            cursor='hand2',
            borderwidth=0,
            disabledforeground='#FFFFFF',
            **kwargs
        )
        self.default_bg = bg
        self.hover_bg = hover_bg
        self.bind('<Enter>', lambda e: self._hover(True))
        self.bind('<Leave>', lambda e: self._hover(False))

    def _hover(self, inside: bool) -> None:
        if str(self['state']) == tk.DISABLED:
            return
        self.configure(bg=self.hover_bg if inside else self.default_bg)

    def set_enabled(self, enabled: bool) -> None:
        self.configure(
            state=tk.NORMAL if enabled else tk.DISABLED,
            bg=self.default_bg if enabled else COLORS['disabled_bg'],
            cursor='hand2' if enabled else 'arrow',
        )
