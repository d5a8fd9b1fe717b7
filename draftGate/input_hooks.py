"""Global input hooks: the send shortcut (keyboard) and submit-control clicks (pynput).

Both hooks run on their library's own thread. They only decide whether to swallow
the event; the decision callback hands the real work to the main loop.
"""
from __future__ import annotations

from typing import Callable, Optional

from .logger import get_logger

logger = get_logger(__name__)

try:
    import keyboard
except ImportError:
    keyboard = None  # type: ignore[assignment]

try:
    from pynput import mouse
except ImportError:
    mouse = None  # type: ignore[assignment]

WM_LBUTTONDOWN = 0x0201
WM_LBUTTONUP = 0x0202

MODIFIERS_IN_ORDER = ("ctrl", "shift", "alt")

_MODIFIER_ALIASES = {
    "control": "ctrl",
    "control_l": "ctrl",
    "control_r": "ctrl",
    "ctrl_l": "ctrl",
    "ctrl_r": "ctrl",
    "left ctrl": "ctrl",
    "right ctrl": "ctrl",
    "command": "ctrl",
    "cmd": "ctrl",
    "option": "alt",
    "alt_l": "alt",
    "alt_r": "alt",
    "shift_l": "shift",
    "shift_r": "shift",
}

_KEY_ALIASES = {
    "return": "enter",
    "escape": "esc",
    "spacebar": "space",
    "del": "delete",
}

_ALLOWED_BASE_KEYS = {"enter", "esc", "space", "tab", "delete", "backspace"}


def normalize_shortcut(raw: Optional[str]) -> Optional[str]:
    """Canonical ``"ctrl+enter"``-style form of a shortcut, or None if unusable.

    ``command``/``cmd`` map to ``ctrl`` so a macOS-style setting still works.
    """
    if raw is None:
        return None
    parts = [part.strip() for part in raw.strip().lower().split("+") if part.strip()]
    if not parts:
        return None

    modifiers = []
    base_key = None
    for part in parts:
        part = _MODIFIER_ALIASES.get(part, part)
        if part in MODIFIERS_IN_ORDER:
            if part not in modifiers:
                modifiers.append(part)
            continue
        mapped = _KEY_ALIASES.get(part, part)
        if mapped in _ALLOWED_BASE_KEYS or (len(mapped) == 1 and mapped.isalnum()):
            base_key = mapped
        elif mapped.startswith("f") and mapped[1:].isdigit():
            base_key = mapped
        else:
            return None

    if base_key is None:
        return None
    ordered = [m for m in MODIFIERS_IN_ORDER if m in modifiers]
    return "+".join(ordered + [base_key])


def is_shortcut_pressed(
    key_name: str,
    shortcut: str,
    is_pressed: Optional[Callable[[str], bool]] = None,
) -> bool:
    """True when ``key_name`` going down completes ``shortcut``."""
    if is_pressed is None:
        if keyboard is None:
            return False
        is_pressed = keyboard.is_pressed

    parts = [part for part in (shortcut or "").split("+") if part]
    if not parts:
        return False
    key, modifiers = parts[-1], parts[:-1]
    if (key_name or "").lower() != key:
        return False

    def _modifier_pressed(mod: str) -> bool:
        return is_pressed(f"left {mod}") or is_pressed(f"right {mod}")

    return all(_modifier_pressed(mod) for mod in modifiers)


class KeyboardChannel:
    """Blocking keyboard hook that offers the send shortcut to ``on_shortcut``.

    ``on_shortcut()`` returns True to swallow the key press.
    """

    def __init__(self, shortcut: str, on_shortcut: Callable[[], bool]):
        self.shortcut = normalize_shortcut(shortcut) or "ctrl+enter"
        self.on_shortcut = on_shortcut
        self._hook = None

    def start(self) -> None:
        if self._hook is not None or keyboard is None:
            return
        self._hook = keyboard.hook(self._on_key_event, suppress=True)
        logger.info("Keyboard channel listening for %s", self.shortcut.upper())

    def stop(self) -> None:
        if self._hook is None or keyboard is None:
            return
        try:
            keyboard.unhook(self._hook)
        except (KeyError, ValueError) as e:
            logger.debug("Keyboard hook already removed: %s", e)
        self._hook = None

    def _on_key_event(self, event) -> bool:
        """Return False to suppress the event, True to let it through."""
        try:
            if event.event_type != "down":
                return True
            if not is_shortcut_pressed(event.name or "", self.shortcut):
                return True
            return not self.on_shortcut()
        except Exception:
            logger.exception("Key event handler crashed")
            return True

    def send_shortcut(self) -> None:
        """Synthesize the send shortcut once."""
        if keyboard is None:
            logger.warning("keyboard library unavailable; cannot synthesize %s", self.shortcut)
            return
        keyboard.send(self.shortcut)


class PointerChannel:
    """Low-level mouse filter that offers left-button presses to ``on_press(x, y)``.

    When ``on_press`` returns True the press and its matching release are both
    swallowed, so the host never sees a click.
    """

    def __init__(self, on_press: Callable[[int, int], bool]):
        self.on_press = on_press
        self._listener = None
        self._swallow_release = False

    def start(self) -> None:
        if self._listener is not None or mouse is None:
            return
        self._listener = mouse.Listener(win32_event_filter=self._filter)
        self._listener.daemon = True
        self._listener.start()
        logger.info("Pointer channel started")

    def stop(self) -> None:
        if self._listener is None:
            return
        self._listener.stop()
        self._listener = None
        self._swallow_release = False

    def decide(self, msg: int, x: int, y: int) -> bool:
        """True when the event ``msg`` at (x, y) must be swallowed."""
        if msg == WM_LBUTTONDOWN:
            try:
                consumed = bool(self.on_press(x, y))
            except Exception:
                logger.exception("Pointer handler crashed")
                consumed = False
            self._swallow_release = consumed
            return consumed
        if msg == WM_LBUTTONUP and self._swallow_release:
            self._swallow_release = False
            return True
        return False

    def _filter(self, msg, data):
        if self.decide(msg, data.pt.x, data.pt.y) and self._listener is not None:
            self._listener.suppress_event()
        return True
