"""Host application contract: UI Automation elements, selectors and profiles.

The interceptor never talks to pywinauto directly. It works with objects that
provide the small ``Element`` surface below; :class:`UIAElement` implements it on
top of pywinauto's UIA wrappers and the test-suite implements it with plain fakes.

Element surface::

    runtime_id      hashable identity, stable while the element lives
    control_type    "Button", "Edit", "Document", ...
    automation_id   HTML id / UIA AutomationId
    name            accessible name (aria-label)
    class_name      UIA ClassName (the HTML class attribute for Chromium hosts)
    parent() / descendants()
    is_enabled() / rectangle() / get_text() / set_text(text) / set_focus() / click()
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple

from .logger import get_logger

logger = get_logger(__name__)

try:
    import win32gui
    from pywinauto.controls.uiawrapper import UIAWrapper
    from pywinauto.uia_defines import IUIA
    from pywinauto.uia_element_info import UIAElementInfo
except ImportError:
    win32gui = None
    UIAWrapper = None  # type: ignore[assignment]
    IUIA = None  # type: ignore[assignment]
    UIAElementInfo = None  # type: ignore[assignment]


class Rect(NamedTuple):
    left: int
    top: int
    right: int
    bottom: int

    def contains(self, x: int, y: int) -> bool:
        return self.left <= x < self.right and self.top <= y < self.bottom

    @property
    def width(self) -> int:
        return max(0, self.right - self.left)

    @property
    def height(self) -> int:
        return max(0, self.bottom - self.top)


@dataclass(frozen=True)
class Selector:
    """Attribute match against an element; every given field must match.

    ``name_contains`` is a substring match, ``class_contains`` matches one class token.
    """

    control_type: Optional[str] = None
    automation_id: Optional[str] = None
    name: Optional[str] = None
    name_contains: Optional[str] = None
    class_contains: Optional[str] = None

    def matches(self, element: Any) -> bool:
        if element is None:
            return False
        try:
            if self.control_type is not None and element.control_type != self.control_type:
                return False
            if self.automation_id is not None and element.automation_id != self.automation_id:
                return False
            element_name = element.name or ""
            if self.name is not None and element_name != self.name:
                return False
            if self.name_contains is not None and self.name_contains not in element_name:
                return False
            if self.class_contains is not None and self.class_contains not in (element.class_name or "").split():
                return False
        except Exception as e:  # element vanished while being inspected
            logger.debug("Selector match failed: %s", e)
            return False
        return True


def matches_any(element: Any, selectors: Iterable[Selector]) -> bool:
    return any(selector.matches(element) for selector in selectors)


@dataclass(frozen=True)
class HostProfile:
    """Selectors describing one chat client's composer."""

    name: str
    window_title_contains: str
    submit_selectors: Tuple[Selector, ...]
    primary_submit_selector: Selector
    input_selectors: Tuple[Selector, ...]
    container_selectors: Tuple[Selector, ...]


SLACK_PROFILE = HostProfile(
    name="slack",
    window_title_contains="Slack",
    submit_selectors=(
        Selector(control_type="Button", class_contains="c-wysiwyg_container__button--send"),
        Selector(control_type="Button", name="Send now"),
        Selector(control_type="Button", name="Send"),
        Selector(control_type="Button", name_contains="Send"),
        Selector(control_type="Button", name_contains="送信"),
    ),
    primary_submit_selector=Selector(control_type="Button", class_contains="c-wysiwyg_container__button--send"),
    input_selectors=(
        Selector(class_contains="ql-editor", name_contains="Message"),
        Selector(class_contains="ql-editor"),
        Selector(control_type="Edit"),
    ),
    container_selectors=(
        Selector(class_contains="p-message_pane_input"),
        Selector(class_contains="c-wysiwyg_container"),
        Selector(automation_id="message_input_container"),
    ),
)

GENERIC_PROFILE = HostProfile(
    name="generic",
    window_title_contains="",
    submit_selectors=(
        Selector(control_type="Button", name="Send"),
        Selector(control_type="Button", name_contains="Send"),
    ),
    primary_submit_selector=Selector(control_type="Button", name="Send"),
    input_selectors=(
        Selector(control_type="Edit"),
        Selector(control_type="Document"),
    ),
    container_selectors=(
        Selector(control_type="Group"),
        Selector(control_type="Pane"),
    ),
)

HOST_PROFILES: Dict[str, HostProfile] = {
    SLACK_PROFILE.name: SLACK_PROFILE,
    GENERIC_PROFILE.name: GENERIC_PROFILE,
}


def get_profile(name: Optional[str]) -> HostProfile:
    profile = HOST_PROFILES.get((name or "").strip().lower())
    if profile is None:
        logger.warning("Unknown host profile %r - using slack", name)
        return SLACK_PROFILE
    return profile


class UIAElement:
    """Element surface implemented with a pywinauto UIA wrapper."""

    def __init__(self, wrapper: Any, registry: Optional["ElementRegistry"] = None):
        self._wrapper = wrapper
        self._registry = registry
        info = wrapper.element_info
        self.runtime_id = tuple(info.runtime_id or ()) or (id(wrapper),)

    def __repr__(self) -> str:
        return f"UIAElement({self.control_type!r}, name={self.name!r})"

    def _wrap(self, wrapper: Any) -> Optional["UIAElement"]:
        if wrapper is None:
            return None
        if self._registry is not None:
            return self._registry.adopt(wrapper)
        return UIAElement(wrapper)

    @property
    def control_type(self) -> str:
        return self._wrapper.element_info.control_type or ""

    @property
    def automation_id(self) -> str:
        return self._wrapper.element_info.automation_id or ""

    @property
    def name(self) -> str:
        return self._wrapper.element_info.name or ""

    @property
    def class_name(self) -> str:
        return self._wrapper.element_info.class_name or ""

    def parent(self) -> Optional["UIAElement"]:
        try:
            return self._wrap(self._wrapper.parent())
        except Exception as e:
            logger.debug("parent() failed: %s", e)
            return None

    def descendants(self) -> List["UIAElement"]:
        try:
            return [self._wrap(child) for child in self._wrapper.descendants()]
        except Exception as e:
            logger.debug("descendants() failed: %s", e)
            return []

    def is_enabled(self) -> bool:
        try:
            return bool(self._wrapper.is_enabled())
        except Exception:
            return False

    def rectangle(self) -> Optional[Rect]:
        try:
            rect = self._wrapper.rectangle()
            return Rect(rect.left, rect.top, rect.right, rect.bottom)
        except Exception:
            return None

    def get_text(self) -> str:
        try:
            value = self._wrapper.iface_value.CurrentValue
            if value:
                return str(value)
        except Exception:
            pass  # no ValuePattern on this control
        try:
            text = self._wrapper.window_text()
            if text and text != self.name:
                return text
        except Exception:
            pass
        try:
            return "\n".join(t for t in self._wrapper.texts() if t)
        except Exception:
            return ""

    def set_text(self, text: str) -> bool:
        try:
            self._wrapper.iface_value.SetValue(text)
            return True
        except Exception as e:
            logger.debug("ValuePattern.SetValue failed: %s", e)
        try:
            self._wrapper.set_edit_text(text)
            return True
        except Exception as e:
            logger.debug("set_edit_text failed: %s", e)
        return False

    def set_focus(self) -> None:
        try:
            self._wrapper.set_focus()
        except Exception as e:
            logger.debug("set_focus failed: %s", e)

    def click(self) -> None:
        try:
            self._wrapper.iface_invoke.Invoke()
        except Exception:
            self._wrapper.click_input()


class ElementRegistry:
    """Owns the live element proxies, keyed by runtime id.

    Interception state keeps only weak references to elements; an element leaves
    this registry (and its weak references die) when the host no longer shows it.
    """

    def __init__(self) -> None:
        self._elements: Dict[Tuple, UIAElement] = {}
        self._lock = threading.RLock()

    def adopt(self, wrapper: Any) -> UIAElement:
        element = UIAElement(wrapper, self)
        with self._lock:
            existing = self._elements.get(element.runtime_id)
            if existing is not None:
                existing._wrapper = wrapper
                return existing
            self._elements[element.runtime_id] = element
            return element

    def retain_only(self, runtime_ids: Iterable[Tuple]) -> None:
        keep = set(runtime_ids)
        with self._lock:
            for key in [k for k in self._elements if k not in keep]:
                del self._elements[key]

    def __len__(self) -> int:
        return len(self._elements)


@dataclass
class UIAHost:
    """Desktop access used by the locator, watcher and interceptor."""

    profile: HostProfile = SLACK_PROFILE
    registry: ElementRegistry = field(default_factory=ElementRegistry)

    @staticmethod
    def available() -> bool:
        return UIAWrapper is not None and win32gui is not None

    def is_foreground(self) -> bool:
        """True when the profiled chat client owns the foreground window.

        Only touches win32gui, so it is safe to call from hook threads.
        """
        if win32gui is None:
            return False
        try:
            hwnd = win32gui.GetForegroundWindow()
            if not hwnd:
                return False
            title = win32gui.GetWindowText(hwnd) or ""
        except Exception:
            return False
        return self.profile.window_title_contains in title

    def root(self) -> Optional[UIAElement]:
        """Foreground window of the host application, if it is the profiled one."""
        if not self.available():
            return None
        try:
            hwnd = win32gui.GetForegroundWindow()
            if not hwnd:
                return None
            title = win32gui.GetWindowText(hwnd) or ""
            if self.profile.window_title_contains and self.profile.window_title_contains not in title:
                return None
            return self.registry.adopt(UIAWrapper(UIAElementInfo(hwnd)))
        except Exception as e:
            logger.debug("Foreground window lookup failed: %s", e)
            return None

    def focused(self) -> Optional[UIAElement]:
        if not self.available():
            return None
        try:
            raw = IUIA().iuia.GetFocusedElement()
            return self.registry.adopt(UIAWrapper(UIAElementInfo(raw)))
        except Exception as e:
            logger.debug("Focused element lookup failed: %s", e)
            return None
