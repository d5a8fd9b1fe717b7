"""Application entry point wiring the interceptor, the dialogs and the tray."""
from __future__ import annotations

import argparse
import logging
import os
import tkinter as tk
from pathlib import Path
from typing import Optional

from .analysis_gateway import AnalysisGateway
from .config_manager import ConfigManager
from .correction_client import CorrectionClient
from .gui.reconciliation_dialog import ReconciliationDialog
from .gui.settings_window import SettingsWindow
from .host import UIAHost, get_profile
from .input_hooks import KeyboardChannel, PointerChannel
from .interceptor import SubmitInterceptor
from .loading_overlay import LoadingFeedback, LoadingOverlay
from .logger import DraftGateLogger, get_logger
from .reconciliation import ReconciliationWorkflow
from .scheduler import TkScheduler
from .text_surface import TextSurfaceLocator
from .tray_icon import TrayIcon

logger = get_logger(__name__)


def parse_args(argv: Optional[list] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="DraftGate - check chat messages with Gemini before they are sent")
    parser.add_argument("--api-key", type=str, default=None, help="Gemini API key (saved to the config; or set GEMINI_API_KEY)")
    parser.add_argument("--model", type=str, default=None, help="Gemini model to use for this run")
    parser.add_argument("--no-tray", action="store_true", help="Run without the system tray icon")
    parser.add_argument("--show-settings", action="store_true", help="Open the settings window on startup")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable verbose debug output")
    parser.add_argument("-q", "--quiet", action="store_true", help="Suppress all console output except errors")
    parser.add_argument("--log-file", type=str, default=None, help="Write logs to specified file")
    return parser.parse_args(argv)


def _apply_overrides(config: ConfigManager, args: argparse.Namespace) -> None:
    if args.api_key:
        config.set_api_key(args.api_key)
    elif not config.get_api_key() and os.getenv("GEMINI_API_KEY"):
        # Environment key is used for this run only, never written to disk.
        config.config["api_key"] = os.getenv("GEMINI_API_KEY", "").strip()
    if args.model:
        config.config["model_name"] = args.model


def main(argv: Optional[list] = None) -> int:
    """Main application entry point."""
    args = parse_args(argv)

    log_level = logging.ERROR if args.quiet else (logging.DEBUG if args.verbose else logging.INFO)
    log_file = Path(args.log_file) if args.log_file else None
    DraftGateLogger.setup(level=log_level, log_file=log_file, console=not args.quiet)

    config = ConfigManager()
    logger.info("Configuration loaded from: %s", config.config_file)
    _apply_overrides(config, args)
    logger.info("Model: %s", config.get_model_name())

    host = UIAHost(get_profile(config.get_host_profile()))
    if not host.available():
        logger.error("UI Automation is unavailable; DraftGate needs Windows with pywin32 and pywinauto")
        return 1

    root = tk.Tk()
    root.withdraw()
    scheduler = TkScheduler(root)

    client = CorrectionClient(config)
    gateway = AnalysisGateway(
        client.handle_message,
        severity_cutoff=config.get_issue_severity_cutoff(),
        threshold=config.get_correction_threshold(),
    )
    locator = TextSurfaceLocator(host)

    overlay = LoadingOverlay()
    overlay.create_window(root)
    feedback = LoadingFeedback(locator, overlay)

    severity_cutoff = config.get_issue_severity_cutoff()
    workflow = ReconciliationWorkflow(
        gateway,
        scheduler,
        lambda wf: ReconciliationDialog(wf, root, severity_cutoff=severity_cutoff),
    )

    interceptor: Optional[SubmitInterceptor] = None

    def on_shortcut() -> bool:
        return interceptor.handle_shortcut() if interceptor is not None else False

    def on_press(x: int, y: int) -> bool:
        return interceptor.handle_pointer_press(x, y) if interceptor is not None else False

    keyboard_channel = KeyboardChannel(config.get_send_shortcut(), on_shortcut)
    pointer_channel = PointerChannel(on_press)

    interceptor = SubmitInterceptor(
        host=host,
        locator=locator,
        gateway=gateway,
        scheduler=scheduler,
        feedback=feedback,
        workflow=workflow,
        keyboard_channel=keyboard_channel,
        pointer_channel=pointer_channel,
        send_shortcut=keyboard_channel.send_shortcut,
        poll_attempts=config.get_send_poll_attempts(),
        poll_interval_ms=config.get_send_poll_interval_ms(),
        suppression_window_ms=config.get_suppression_window_ms(),
        resume_delay_ms=config.get_resume_delay_ms(),
        watch_interval_ms=config.get_watch_interval_ms(),
        enabled=config.is_interception_enabled(),
    )

    settings = SettingsWindow(root, config, client)
    tray_icon: Optional[TrayIcon] = None
    shutting_down = False

    def shutdown() -> None:
        nonlocal shutting_down
        if shutting_down:
            return
        shutting_down = True
        logger.info("Exiting DraftGate")
        try:
            interceptor.stop()
        except Exception as e:
            logger.warning("Failed to stop interceptor cleanly: %s", e)
        workflow.close()
        gateway.shutdown()
        if tray_icon is not None:
            tray_icon.stop()
        overlay.destroy()
        root.quit()

    def handle_toggle(enabled: bool) -> None:
        interceptor.set_enabled(enabled)
        config.set_interception_enabled(enabled)

    if not args.no_tray:
        tray_icon = TrayIcon(
            on_show_settings=lambda: scheduler.call_soon(settings.show),
            on_toggle_interception=lambda enabled: scheduler.call_soon(handle_toggle, enabled),
            on_exit=lambda: scheduler.call_soon(shutdown),
            initial_enabled=interceptor.enabled,
        )
        interceptor.add_status_listener(tray_icon.update_status)
        if tray_icon.start():
            if config.should_show_notifications():
                tray_icon.show_notification("DraftGate", "DraftGate is checking your messages from the system tray.")
        else:
            tray_icon = None

    interceptor.start()

    if args.show_settings or not config.get_api_key():
        if not config.get_api_key():
            logger.info("No API key found - please configure it in Settings")
        scheduler.call_soon(settings.show)

    try:
        root.mainloop()
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt detected")
    finally:
        shutdown()
        try:
            root.destroy()
        except tk.TclError:
            pass
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
