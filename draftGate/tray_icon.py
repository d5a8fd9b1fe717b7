"""System tray icon manager."""
from __future__ import annotations

import threading
from typing import Optional, Callable, Any

from .logger import get_logger

logger = get_logger(__name__)

try:
    import pystray
    from PIL import Image, ImageDraw
except ImportError:
    pystray = None
    Image = None
    ImageDraw = None
    logger.error("pystray not installed. Run: pip install pystray Pillow")


class TrayIcon:
    """Manages system tray icon and menu.

    pystray runs its own thread; the callbacks are invoked there, so callers
    hand them to the Tk scheduler.
    """

    def __init__(
        self,
        on_show_settings: Optional[Callable[[], None]] = None,
        on_toggle_interception: Optional[Callable[[bool], None]] = None,
        on_exit: Optional[Callable[[], None]] = None,
        initial_enabled: bool = True,
    ):
        self.on_show_settings = on_show_settings
        self.on_toggle_interception = on_toggle_interception
        self.on_exit = on_exit
        self.interception_enabled = initial_enabled
        self._image_cache: dict[bool, Any] = {}
        self.icon = None
        self._running = False

    def create_icon_image(self, enabled: bool = True) -> Any:
        """Green badge while intercepting, red while paused."""
        if Image is None or ImageDraw is None:
            return None
        if enabled in self._image_cache:
            return self._image_cache[enabled]

        width = height = 64
        image = Image.new('RGBA', (width, height), (255, 255, 255, 0))
        draw = ImageDraw.Draw(image)
        color = "#10b981" if enabled else "#ef4444"
        padding = 6
        draw.ellipse(
            [padding, padding, width - padding, height - padding],
            fill=color,
            outline='#111827',
            width=2
        )
        text = "DG"
        bbox = draw.textbbox((0, 0), text)
        text_width = bbox[2] - bbox[0]
        text_height = bbox[3] - bbox[1]
        draw.text(((width - text_width) // 2, (height - text_height) // 2), text, fill='white')
        self._image_cache[enabled] = image
        return image

    def _title(self) -> str:
        return f"DraftGate - {'Checking sends' if self.interception_enabled else 'Paused'}"

    def create_menu(self) -> Any:
        if pystray is None:
            return None
        return pystray.Menu(
            pystray.MenuItem("Settings", self._on_show_settings, default=True),
            pystray.MenuItem(
                lambda item: f"Interception: {'ON' if self.interception_enabled else 'OFF'}",
                self._on_toggle_interception,
                checked=lambda item: self.interception_enabled,
            ),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Exit", self._on_exit),
        )

    def start(self) -> bool:
        if pystray is None:
            logger.error("Cannot start tray - pystray not installed")
            return False
        if self._running:
            return True

        self._running = True
        self.icon = pystray.Icon(
            "DraftGate",
            self.create_icon_image(self.interception_enabled),
            self._title(),
            self.create_menu()
        )
        threading.Thread(target=self._run_icon, daemon=True).start()
        logger.info("System tray icon started")
        return True

    def _run_icon(self) -> None:
        try:
            self.icon.run()
        except Exception as e:
            logger.error("Tray icon error: %s", e)
            self._running = False

    def stop(self) -> None:
        if self.icon and self._running:
            self.icon.stop()
            self._running = False
            logger.info("System tray icon stopped")

    def update_status(self, enabled: bool) -> None:
        self.interception_enabled = enabled
        if self.icon:
            self.icon.icon = self.create_icon_image(enabled)
            self.icon.title = self._title()
            self.icon.update_menu()

    def show_notification(self, title: str, message: str) -> None:
        if self.icon and self._running:
            try:
                self.icon.notify(message, title)
                return
            except Exception as e:
                logger.warning("Failed to show notification: %s", e)
        logger.info("%s: %s", title, message)

    def _on_show_settings(self, icon, item) -> None:
        if self.on_show_settings:
            self.on_show_settings()

    def _on_toggle_interception(self, icon, item) -> None:
        enabled = not self.interception_enabled
        if self.on_toggle_interception:
            self.on_toggle_interception(enabled)
        self.update_status(enabled)

    def _on_exit(self, icon, item) -> None:
        if self.on_exit:
            self.on_exit()
        self.stop()
