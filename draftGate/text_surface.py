"""Locating the composer's editable surface and moving text in and out of it."""
from __future__ import annotations

import time
from typing import Any, Optional

from .host import HostProfile, matches_any
from .logger import get_logger

logger = get_logger(__name__)

MAX_CLIPBOARD_RETRIES = 5
CLIPBOARD_RETRY_DELAY = 0.05
# Ancestors inspected when walking out from an anchor.
MAX_ANCESTOR_DEPTH = 12
# Soft line break in the composer; a bare Enter sends.
LINE_BREAK_KEYS = "shift+enter"

try:
    import keyboard
    import win32clipboard
    import win32con
except ImportError:
    keyboard = None  # type: ignore[assignment]
    win32clipboard = None  # type: ignore[assignment]
    win32con = None  # type: ignore[assignment]


class TextSurfaceLocator:
    """Finds the message input that belongs to a submit control or focused element.

    ``host`` provides ``profile``, ``root()`` (foreground window of the chat client)
    and ``focused()``.
    """

    def __init__(self, host: Any):
        self.host = host

    @property
    def profile(self) -> HostProfile:
        return self.host.profile

    def _ancestors(self, element: Any):
        current = element
        for _ in range(MAX_ANCESTOR_DEPTH):
            if current is None:
                return
            yield current
            current = current.parent()

    def _is_input(self, element: Any) -> bool:
        return matches_any(element, self.profile.input_selectors)

    def _find_container(self, element: Any) -> Optional[Any]:
        for ancestor in self._ancestors(element):
            if matches_any(ancestor, self.profile.container_selectors):
                return ancestor
        return None

    def _first_input_in(self, scope: Any) -> Optional[Any]:
        descendants = scope.descendants()
        # Selectors are in priority order; the first selector that hits anything wins.
        for selector in self.profile.input_selectors:
            for element in descendants:
                if selector.matches(element):
                    return element
        return None

    def locate(self, anchor: Any) -> Optional[Any]:
        """Return the editable surface associated with ``anchor``, or None."""
        if anchor is not None:
            if self._is_input(anchor):
                return anchor
            container = self._find_container(anchor)
            if container is not None:
                return self._first_input_in(container) or container

        root = self.host.root()
        if root is None:
            logger.debug("No host window to search for an input surface")
            return None
        surface = self._first_input_in(root)
        if surface is None:
            logger.debug("No input surface found in host window")
        return surface

    def container_for(self, surface: Any) -> Optional[Any]:
        """Nearest recognized input container, else the surface's parent."""
        if surface is None:
            return None
        container = self._find_container(surface)
        if container is not None:
            return container
        return surface.parent()

    def find_send_control(self, surface: Any = None) -> Optional[Any]:
        """The host's primary send button, searched near ``surface`` first."""
        scopes = []
        container = self._find_container(surface) if surface is not None else None
        if container is not None:
            scopes.append(container)
        root = self.host.root()
        if root is not None:
            scopes.append(root)
        for scope in scopes:
            for element in scope.descendants():
                if self.profile.primary_submit_selector.matches(element):
                    return element
        return None

    def is_message_input(self, element: Any) -> bool:
        if element is None:
            return False
        return self._is_input(element) or self._find_container(element) is not None

    def focused_element(self) -> Optional[Any]:
        return self.host.focused()

    @staticmethod
    def get_text(surface: Any) -> str:
        """Plain-text projection of the surface's content."""
        if surface is None:
            return ""
        try:
            return surface.get_text() or ""
        except Exception as e:
            logger.warning("Failed to read surface text: %s", e)
            return ""

    def set_text(self, surface: Any, text: str) -> bool:
        """Replace the surface content and re-focus it.

        The host recomputes its send-button state asynchronously; callers must not
        expect it to be up to date when this returns.
        """
        if surface is None:
            return False
        try:
            surface.set_focus()
            if surface.set_text(text):
                return True
            logger.debug("Direct text replacement failed, pasting instead")
            if self._set_text_via_clipboard(text):
                return True
            return self._set_text_via_typing(text)
        except Exception as e:
            logger.error("Failed to set surface text: %s", e)
            return False
        finally:
            try:
                surface.set_focus()
            except Exception:
                pass

    def _set_text_via_typing(self, text: str) -> bool:
        """Type ``text`` over the selection, one line at a time.

        A typed newline is an Enter press, which sends the message; line breaks
        go in as shift+enter instead.
        """
        if keyboard is None:
            return False
        keyboard.send("ctrl+a")
        time.sleep(0.03)
        for index, line in enumerate(text.replace("\r\n", "\n").split("\n")):
            if index:
                keyboard.send(LINE_BREAK_KEYS)
            if line:
                keyboard.write(line)
        return True

    def _set_text_via_clipboard(self, text: str) -> bool:
        """Select all and paste ``text``, restoring the previous clipboard."""
        if keyboard is None or win32clipboard is None:
            return False
        original = self._get_clipboard_text()
        if not self._set_clipboard_text(text):
            return False
        time.sleep(0.03)
        keyboard.send("ctrl+a")
        time.sleep(0.05)
        keyboard.send("ctrl+v")
        time.sleep(0.08)
        if original is not None:
            self._set_clipboard_text(original)
        return True

    @staticmethod
    def _get_clipboard_text() -> Optional[str]:
        for attempt in range(MAX_CLIPBOARD_RETRIES):
            try:
                win32clipboard.OpenClipboard()
                try:
                    if win32clipboard.IsClipboardFormatAvailable(win32con.CF_UNICODETEXT):
                        return win32clipboard.GetClipboardData(win32con.CF_UNICODETEXT)
                    return None
                finally:
                    win32clipboard.CloseClipboard()
            except Exception as e:
                logger.debug("Clipboard read attempt %d failed: %s", attempt + 1, e)
                time.sleep(CLIPBOARD_RETRY_DELAY)
        return None

    @staticmethod
    def _set_clipboard_text(text: str) -> bool:
        for attempt in range(MAX_CLIPBOARD_RETRIES):
            try:
                win32clipboard.OpenClipboard()
                try:
                    win32clipboard.EmptyClipboard()
                    win32clipboard.SetClipboardData(win32con.CF_UNICODETEXT, text)
                    return True
                finally:
                    win32clipboard.CloseClipboard()
            except Exception as e:
                logger.warning("Failed to set clipboard (attempt %d): %s", attempt + 1, e)
                time.sleep(CLIPBOARD_RETRY_DELAY)
        return False
