"""Tk view for the reconciliation workflow."""
from __future__ import annotations

import tkinter as tk
from tkinter import messagebox
from typing import TYPE_CHECKING, List, Optional

from ..diff_engine import STYLE_EMPTY, STYLE_EXTRA, STYLE_MISSING, STYLE_PERFECT, Segment
from ..logger import get_logger
from ..models import ISSUE_SEVERITY_CUTOFF, CorrectionResult, ReconciliationSession
from .theme import COLORS, FONT, ModernButton

if TYPE_CHECKING:
    from ..reconciliation import ReconciliationWorkflow

logger = get_logger(__name__)

RECHECK_LABEL = "Check again"
RECHECK_BUSY_LABEL = "Checking…"


def format_issue(issue) -> str:
    """One line per issue: kind, before -> after, severity."""
    return f"{issue.label}: “{issue.original}” → “{issue.corrected}” ({issue.severity:.0%})"


def issues_footnote(result: CorrectionResult, severity_cutoff: float) -> str:
    if not result.issues:
        return "No significant issues."
    return f"Issues at or below {severity_cutoff:.0%} severity are hidden."


class ReconciliationDialog:
    """Modal-looking top-level window driven by a ReconciliationWorkflow."""

    def __init__(self, workflow: "ReconciliationWorkflow", root: tk.Misc, *, severity_cutoff: float = ISSUE_SEVERITY_CUTOFF):
        self.workflow = workflow
        self.root = root
        self.severity_cutoff = severity_cutoff
        self.window: Optional[tk.Toplevel] = None
        self._score_var: Optional[tk.StringVar] = None
        self._issues_frame: Optional[tk.Frame] = None
        self._target_text: Optional[tk.Text] = None
        self._buffer_text: Optional[tk.Text] = None
        self._diff_text: Optional[tk.Text] = None
        self._send_button: Optional[ModernButton] = None
        self._recheck_button: Optional[ModernButton] = None

    def show(self, session: ReconciliationSession) -> None:
        window = tk.Toplevel(self.root)
        self.window = window
        window.title("DraftGate - review your message")
        window.configure(bg=COLORS['bg_primary'])
        window.attributes('-topmost', True)
        window.protocol("WM_DELETE_WINDOW", self.workflow.close)
        window.bind('<Escape>', lambda e: self.workflow.close())

        body = tk.Frame(window, bg=COLORS['bg_primary'])
        body.pack(fill="both", expand=True, padx=20, pady=16)

        self._score_var = tk.StringVar()
        tk.Label(
            body,
            textvariable=self._score_var,
            font=(FONT, 13, 'bold'),
            fg=COLORS['text_primary'],
            bg=COLORS['bg_primary'],
        ).pack(anchor="w")

        self._issues_frame = tk.Frame(body, bg=COLORS['bg_primary'])
        self._issues_frame.pack(fill="x", pady=(8, 12))

        self._section_label(body, "Suggested text")
        self._target_text = self._text_box(body, height=3, readonly=True)

        self._section_label(body, "Your message (retype it to match the suggestion)")
        self._buffer_text = self._text_box(body, height=4)
        self._buffer_text.insert("1.0", session.edit_buffer)
        self._buffer_text.edit_modified(False)
        self._buffer_text.bind('<<Modified>>', self._on_modified)

        self._section_label(body, "Differences")
        self._diff_text = self._text_box(body, height=3, readonly=True)
        self._diff_text.tag_configure(STYLE_MISSING, background=COLORS['missing_bg'], foreground=COLORS['missing_fg'], underline=True)
        self._diff_text.tag_configure(STYLE_EXTRA, background=COLORS['extra_bg'], foreground=COLORS['extra_fg'], overstrike=True)
        self._diff_text.tag_configure(STYLE_PERFECT, foreground=COLORS['success'], font=(FONT, 10, 'bold'))
        self._diff_text.tag_configure(STYLE_EMPTY, foreground=COLORS['text_light'])

        buttons = tk.Frame(body, bg=COLORS['bg_primary'])
        buttons.pack(fill="x", pady=(14, 0))
        self._send_button = ModernButton(buttons, text="Send corrected", command=self.workflow.send_corrected, style="success")
        self._send_button.pack(side="left")
        ModernButton(buttons, text="Send as is", command=self.workflow.send_as_is, style="secondary").pack(side="left", padx=(8, 0))
        self._recheck_button = ModernButton(buttons, text=RECHECK_LABEL, command=self.workflow.recorrect, style="primary")
        self._recheck_button.pack(side="left", padx=(8, 0))
        ModernButton(buttons, text="Close", command=self.workflow.close, style="danger").pack(side="right")

        self.set_result(session.latest_result)
        self.set_send_enabled(session.match_state)

        window.update_idletasks()
        self._center()
        window.lift()
        window.focus_force()
        window.after(100, self._buffer_text.focus_set)

    def _section_label(self, parent: tk.Misc, text: str) -> None:
        tk.Label(
            parent,
            text=text,
            font=(FONT, 10, 'bold'),
            fg=COLORS['text_secondary'],
            bg=COLORS['bg_primary'],
        ).pack(anchor="w", pady=(6, 4))

    def _text_box(self, parent: tk.Misc, *, height: int, readonly: bool = False) -> tk.Text:
        box = tk.Text(
            parent,
            height=height,
            width=64,
            wrap="word",
            font=(FONT, 11),
            bg=COLORS['bg_secondary'],
            fg=COLORS['text_primary'],
            relief='flat',
            highlightthickness=1,
            highlightbackground=COLORS['border'],
            padx=8,
            pady=6,
        )
        box.pack(fill="x")
        if readonly:
            box.configure(state=tk.DISABLED)
        return box

    def _center(self) -> None:
        if not self.window:
            return
        width = self.window.winfo_width()
        height = self.window.winfo_height()
        x = (self.window.winfo_screenwidth() - width) // 2
        y = (self.window.winfo_screenheight() - height) // 3
        self.window.geometry(f"+{max(0, x)}+{max(0, y)}")

    def _on_modified(self, _event=None) -> None:
        if not self._buffer_text or not self._buffer_text.edit_modified():
            return
        self._buffer_text.edit_modified(False)
        self.workflow.on_buffer_changed(self._buffer_text.get("1.0", "end-1c"))

    @staticmethod
    def _replace(box: Optional[tk.Text], segments: List[Segment]) -> None:
        if box is None:
            return
        box.configure(state=tk.NORMAL)
        box.delete("1.0", tk.END)
        for text, style in segments:
            # Text goes in as data with a tag; nothing is parsed as markup.
            if style:
                box.insert(tk.END, text, (style,))
            else:
                box.insert(tk.END, text)
        box.configure(state=tk.DISABLED)

    def set_result(self, result: CorrectionResult) -> None:
        if self._score_var is not None:
            self._score_var.set(f"Correction score: {result.score:.0%}")
        self._replace(self._target_text, [(result.corrected_text, None)])

        if self._issues_frame is None:
            return
        for child in self._issues_frame.winfo_children():
            child.destroy()
        for issue in result.issues:
            row = tk.Frame(self._issues_frame, bg=COLORS['bg_primary'])
            row.pack(fill="x", pady=2)
            tk.Label(
                row,
                text=format_issue(issue),
                font=(FONT, 10, 'bold'),
                fg=COLORS['text_primary'],
                bg=COLORS['bg_primary'],
                justify="left",
            ).pack(anchor="w")
            if issue.reason:
                tk.Label(
                    row,
                    text=issue.reason,
                    font=(FONT, 9),
                    fg=COLORS['text_secondary'],
                    bg=COLORS['bg_primary'],
                    wraplength=520,
                    justify="left",
                ).pack(anchor="w")
        tk.Label(
            self._issues_frame,
            text=issues_footnote(result, self.severity_cutoff),
            font=(FONT, 9, 'italic'),
            fg=COLORS['text_light'],
            bg=COLORS['bg_primary'],
        ).pack(anchor="w", pady=(4, 0))

    def set_diff(self, segments: List[Segment]) -> None:
        self._replace(self._diff_text, segments)

    def set_send_enabled(self, enabled: bool) -> None:
        if self._send_button is not None:
            self._send_button.set_enabled(enabled)

    def set_recorrect_busy(self, busy: bool) -> None:
        if self._recheck_button is None:
            return
        self._recheck_button.set_enabled(not busy)
        self._recheck_button.configure(text=RECHECK_BUSY_LABEL if busy else RECHECK_LABEL)

    def show_notice(self, message: str) -> None:
        messagebox.showwarning("DraftGate", message, parent=self.window)

    def destroy(self) -> None:
        window, self.window = self.window, None
        if window is not None:
            try:
                window.destroy()
            except tk.TclError:
                pass  # already gone
