"""Keeps pointer interception attached to the host's submit controls.

The chat client re-renders its composer freely, so submit controls come and go.
:class:`ControlWatcher` takes periodic snapshots of the host window and reports
inserted elements and attribute changes; :func:`should_attach` decides, and the
:class:`AttachmentRegistry` makes attachment idempotent per runtime id.
"""
from __future__ import annotations

import threading
import weakref
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .host import HostProfile, Rect, matches_any
from .logger import get_logger

logger = get_logger(__name__)

Snapshot = Dict[Tuple, Tuple[Any, Tuple]]


def should_attach(node: Any, profile: HostProfile, registry: "AttachmentRegistry") -> bool:
    """True when ``node`` is a submit control that has no interception yet."""
    if node is None or registry.is_attached(node):
        return False
    return matches_any(node, profile.submit_selectors)


class AttachmentRegistry:
    """Submit controls that carry pointer interception, keyed by runtime id.

    Controls are referenced weakly. Hit-testing runs on the mouse hook thread, so
    it reads an immutable snapshot of rectangles refreshed from the main loop.
    """

    def __init__(self) -> None:
        self._controls: Dict[Tuple, weakref.ref] = {}
        self._hit_boxes: Tuple[Tuple[Tuple, Rect], ...] = ()
        self._lock = threading.Lock()

    def is_attached(self, node: Any) -> bool:
        ref = self._controls.get(node.runtime_id)
        return ref is not None and ref() is not None

    def attach(self, node: Any) -> bool:
        """Mark ``node`` attached; returns False if it already was."""
        if self.is_attached(node):
            return False
        self._controls[node.runtime_id] = weakref.ref(node)
        self.refresh_hit_boxes()
        return True

    def get(self, runtime_id: Tuple) -> Optional[Any]:
        ref = self._controls.get(runtime_id)
        return ref() if ref is not None else None

    def controls(self) -> List[Any]:
        return [c for c in (ref() for ref in self._controls.values()) if c is not None]

    def prune(self, live_ids: Optional[Iterable[Tuple]] = None) -> None:
        """Forget dead controls, and any not in ``live_ids`` when it is given."""
        live = set(live_ids) if live_ids is not None else None
        for key in list(self._controls):
            if self._controls[key]() is None or (live is not None and key not in live):
                del self._controls[key]
        self.refresh_hit_boxes()

    def clear(self) -> None:
        self._controls.clear()
        with self._lock:
            self._hit_boxes = ()

    def refresh_hit_boxes(self) -> None:
        boxes = []
        for control in self.controls():
            rect = control.rectangle()
            if rect is not None and rect.width and rect.height:
                boxes.append((control.runtime_id, rect))
        with self._lock:
            self._hit_boxes = tuple(boxes)

    def hit_test(self, x: int, y: int) -> Optional[Tuple]:
        """Runtime id of the attached control under screen point (x, y)."""
        with self._lock:
            boxes = self._hit_boxes
        for runtime_id, rect in boxes:
            if rect.contains(x, y):
                return runtime_id
        return None

    def __len__(self) -> int:
        return len(self.controls())


class ControlWatcher:
    """Polling replacement for a DOM mutation feed.

    Every ``interval_ms`` the host window's descendants are snapshotted on the
    scheduler. Elements whose runtime id was not in the previous snapshot are
    reported through ``on_inserted``; elements whose watched attributes changed
    go to ``on_changed``, and the runtime ids of elements that vanished go to
    ``on_removed``.
    """

    def __init__(
        self,
        host: Any,
        scheduler: Any,
        *,
        interval_ms: int = 750,
        on_inserted: Optional[Callable[[List[Any]], None]] = None,
        on_changed: Optional[Callable[[List[Any]], None]] = None,
        on_removed: Optional[Callable[[List[Tuple]], None]] = None,
    ) -> None:
        self.host = host
        self.scheduler = scheduler
        self.interval_ms = interval_ms
        self.on_inserted = on_inserted
        self.on_changed = on_changed
        self.on_removed = on_removed
        self._previous: Snapshot = {}
        self._running = False
        self._timer = None

    @staticmethod
    def _attributes(element: Any) -> Tuple:
        try:
            return (element.is_enabled(), element.name, element.class_name, element.rectangle())
        except Exception:
            return ()

    def take_snapshot(self) -> Snapshot:
        root = self.host.root()
        if root is None:
            return {}
        snapshot: Snapshot = {}
        for element in [root] + list(root.descendants()):
            if element is None:
                continue
            snapshot[element.runtime_id] = (element, self._attributes(element))
        return snapshot

    def scan(self) -> Tuple[List[Any], List[Any]]:
        """Compare a fresh snapshot with the previous one and dispatch the changes."""
        current = self.take_snapshot()
        if not current:
            # Host not in the foreground; keep what we knew.
            return [], []

        inserted = [element for key, (element, _) in current.items() if key not in self._previous]
        changed = [
            element
            for key, (element, attrs) in current.items()
            if key in self._previous and self._previous[key][1] != attrs
        ]
        removed = [key for key in self._previous if key not in current]
        self._previous = current

        registry = getattr(self.host, "registry", None)
        if registry is not None:
            registry.retain_only(current.keys())

        if inserted and self.on_inserted:
            self.on_inserted(inserted)
        if changed and self.on_changed:
            self.on_changed(changed)
        if removed and self.on_removed:
            self.on_removed(removed)
        return inserted, changed

    def live_ids(self) -> Iterable[Tuple]:
        return self._previous.keys()

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._tick()

    def stop(self) -> None:
        self._running = False
        self.scheduler.cancel(self._timer)
        self._timer = None
        self._previous = {}

    def _tick(self) -> None:
        if not self._running:
            return
        try:
            self.scan()
        except Exception as e:
            logger.warning("Control scan failed: %s", e)
        self._timer = self.scheduler.call_later(self.interval_ms, self._tick)
