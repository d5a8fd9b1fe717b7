"""Main-loop scheduling used by every stateful component.

All interceptor, workflow and overlay state lives on the Tk thread. Hook threads
and worker threads hand work over with ``call_soon``; timers use ``call_later``.
"""
from __future__ import annotations

import tkinter as tk
from typing import Any, Callable, Optional

from .logger import get_logger

logger = get_logger(__name__)


class TkScheduler:
    """Schedules callbacks on a Tk root's event loop (``after``/``after_idle``)."""

    def __init__(self, root: tk.Misc):
        self.root = root

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> Optional[str]:
        """Run ``callback(*args)`` on the Tk thread as soon as it is idle."""
        try:
            return self.root.after_idle(self._guarded, callback, *args)
        except (tk.TclError, RuntimeError) as e:
            logger.debug("call_soon dropped (%s): root is gone", e)
            return None

    def call_later(self, delay_ms: int, callback: Callable[..., Any], *args: Any) -> Optional[str]:
        """Run ``callback(*args)`` after ``delay_ms`` milliseconds."""
        try:
            return self.root.after(max(0, int(delay_ms)), self._guarded, callback, *args)
        except (tk.TclError, RuntimeError) as e:
            logger.debug("call_later dropped (%s): root is gone", e)
            return None

    def cancel(self, handle: Optional[str]) -> None:
        if handle is None:
            return
        try:
            self.root.after_cancel(handle)
        except (tk.TclError, ValueError):
            pass  # already fired

    @staticmethod
    def _guarded(callback: Callable[..., Any], *args: Any) -> None:
        try:
            callback(*args)
        except Exception:
            logger.exception("Scheduled callback %r failed", getattr(callback, "__name__", callback))
