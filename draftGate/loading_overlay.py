"""Loading feedback shown over the composer while a draft is being checked.

:class:`LoadingOverlay` draws a canvas spinner with a "Checking message…" caption
and a translucent shade that covers the composer so it cannot be clicked while
the check runs. No image or animation assets are needed.

:class:`LoadingFeedback` decides where the overlay goes and keeps at most one on
screen.
"""
from __future__ import annotations

import tkinter as tk
import weakref
from typing import Any, Optional

from .host import Rect
from .logger import get_logger

logger = get_logger(__name__)

CHECKING_TEXT = "Checking message…"


def _has_area(rect: Optional[Rect]) -> bool:
    return rect is not None and bool(rect.width and rect.height)


class LoadingOverlay:
    """Spinner plus input-blocking shade, positioned over a screen rectangle."""

    def __init__(self):
        self.root: Optional[tk.Misc] = None
        self.window: Optional[tk.Toplevel] = None
        self.shade: Optional[tk.Toplevel] = None
        self.canvas: Optional[tk.Canvas] = None
        self.animation_running = False
        self._angle = 0.0              # Current spinner angle in degrees
        self._speed = 6.0              # Degrees per frame
        self._thickness = 4            # Arc thickness in pixels
        self._radius = 10              # Spinner radius
        self._color_bg = "#f0f0f0"     # Window bg (transparentcolor where supported)
        self._color_arc = "#2196F3"
        self._color_trail = "#90CAF9"
        self._arc_items: list[int] = []
        self._after_id: Optional[str] = None

    def create_window(self, root: tk.Misc) -> None:
        """Create the (hidden) windows; call once during app init."""
        self.root = root

        self.shade = tk.Toplevel(root)
        self.shade.withdraw()
        self.shade.overrideredirect(True)
        self.shade.attributes('-topmost', True)
        self.shade.configure(bg="#FFFFFF", cursor="watch")
        try:
            self.shade.attributes('-alpha', 0.45)
        except tk.TclError:
            pass  # Not supported on all platforms
        # Clicks land on the shade, not on the composer below it.
        self.shade.bind('<Button>', lambda e: "break")

        self.window = tk.Toplevel(root)
        self.window.withdraw()
        self.window.overrideredirect(True)
        self.window.attributes('-topmost', True)
        self.window.configure(bg=self._color_bg)
        try:
            self.window.attributes('-transparentcolor', self._color_bg)
        except tk.TclError:
            pass

        frame = tk.Frame(self.window, bg="#FFFFFF", highlightthickness=1, highlightbackground="#E5E7EB")
        frame.pack()
        size = (self._radius * 2) + (self._thickness * 2)
        self.canvas = tk.Canvas(frame, width=size, height=size, bg="#FFFFFF", highlightthickness=0, bd=0)
        self.canvas.pack(side="left", padx=(10, 6), pady=8)
        tk.Label(frame, text=CHECKING_TEXT, font=('Segoe UI', 10), fg="#1F2937", bg="#FFFFFF").pack(
            side="left", padx=(0, 12)
        )

    def _draw_static_background(self) -> None:
        if not self.canvas:
            return
        size = (self._radius * 2) + (self._thickness * 2)
        cx, cy = size // 2, size // 2
        r = self._radius
        self.canvas.create_oval(cx - r, cy - r, cx + r, cy + r, outline=self._color_trail, width=self._thickness)

    def show_at(self, rect: Optional[Rect], button_rect: Optional[Rect] = None) -> None:
        """Cover ``rect`` with the shade and put the spinner at its top-left.

        With ``button_rect`` the spinner marks that send button as busy instead,
        right-aligned just above it.
        """
        if not self.window or not self.shade:
            return
        try:
            if _has_area(rect):
                self.shade.geometry(f"{rect.width}x{rect.height}+{rect.left}+{rect.top}")
                self.shade.deiconify()
            if _has_area(button_rect):
                self.window.update_idletasks()
                x = max(0, button_rect.right - self.window.winfo_reqwidth())
                self.window.geometry(f"+{x}+{max(0, button_rect.top - 44)}")
            elif _has_area(rect):
                self.window.geometry(f"+{rect.left + 8}+{max(0, rect.top - 44)}")
            else:
                x = self.window.winfo_pointerx()
                y = self.window.winfo_pointery()
                self.window.geometry(f"+{x + 12}+{y + 12}")
            self.window.deiconify()
            self.window.lift()
            self._cancel_animation()
            self.animation_running = True
            self._angle = 0.0
            if self.canvas:
                self.canvas.delete("all")
                self._draw_static_background()
            self._animate()
        except tk.TclError:
            pass  # Window may be destroyed

    def _cancel_animation(self) -> None:
        if self._after_id is not None and self.window is not None:
            try:
                self.window.after_cancel(self._after_id)
            except tk.TclError:
                pass
        self._after_id = None

    def hide(self) -> None:
        self.animation_running = False
        self._cancel_animation()
        for window in (self.window, self.shade):
            if window is not None:
                try:
                    window.withdraw()
                except tk.TclError:
                    pass
        if self.canvas:
            try:
                self.canvas.delete("all")
            except tk.TclError:
                pass
        self._arc_items.clear()
        self._angle = 0.0

    def _animate(self) -> None:
        """Rotate the two arc segments one frame."""
        if not self.animation_running or not self.canvas or not self.window:
            return
        try:
            for item in self._arc_items:
                self.canvas.delete(item)
            self._arc_items.clear()

            size = (self._radius * 2) + (self._thickness * 2)
            cx, cy = size // 2, size // 2
            r = self._radius
            bbox = (cx - r, cy - r, cx + r, cy + r)
            extent = 120
            self._arc_items.append(self.canvas.create_arc(
                *bbox, start=self._angle, extent=extent, style=tk.ARC,
                outline=self._color_arc, width=self._thickness,
            ))
            self._arc_items.append(self.canvas.create_arc(
                *bbox, start=(self._angle + 180) % 360, extent=extent, style=tk.ARC,
                outline=self._color_trail, width=self._thickness,
            ))
            self._angle = (self._angle + self._speed) % 360
            self._after_id = self.window.after(33, self._animate)  # ~30 FPS
        except tk.TclError:
            self.animation_running = False

    def is_visible(self) -> bool:
        return self.animation_running

    def destroy(self) -> None:
        self.animation_running = False
        self._cancel_animation()
        for window in (self.window, self.shade):
            if window is not None:
                try:
                    window.destroy()
                except tk.TclError:
                    pass
        self.window = None
        self.shade = None
        self.canvas = None
        self.root = None


class LoadingFeedback:
    """At most one loading indicator, anchored to the surface's input container."""

    def __init__(self, locator: Any, overlay: Any):
        self.locator = locator
        self.overlay = overlay
        self._anchor_ref: Optional[weakref.ref] = None

    @property
    def anchor(self) -> Optional[Any]:
        return self._anchor_ref() if self._anchor_ref is not None else None

    def show(self, surface: Any, control: Any = None) -> None:
        """Shade the surface's container; ``control`` is the clicked send button, if any."""
        self.hide()
        anchor = self.locator.container_for(surface) or surface
        rect = _rectangle_of(anchor)
        button_rect = _rectangle_of(control) if control is not None else None
        self._anchor_ref = weakref.ref(anchor) if anchor is not None else None
        self.overlay.show_at(rect, button_rect)

    def hide(self) -> None:
        if self._anchor_ref is None and not self.overlay.is_visible():
            return
        self._anchor_ref = None
        self.overlay.hide()

    def is_showing(self) -> bool:
        return self._anchor_ref is not None


def _rectangle_of(element: Any) -> Optional[Rect]:
    if element is None:
        return None
    try:
        return element.rectangle()
    except Exception as e:
        logger.debug("No rectangle for loading anchor: %s", e)
        return None
