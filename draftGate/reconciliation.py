"""Reconciliation between the user's draft and the proposed correction.

The workflow owns at most one session and one view. The view reports user
actions back through ``on_buffer_changed``, ``send_corrected``, ``send_as_is``,
``close`` and ``recorrect``; the workflow tells the view what to show.

View interface::

    show(session)                  build and display the dialog
    set_result(result)             replace score, issues and target text
    set_diff(segments)             render diff_engine.render_segments output
    set_send_enabled(flag)         gate for "Send corrected"
    set_recorrect_busy(flag)       "Checking..." state of the re-check button
    show_notice(message)           blocking message box
    destroy()
"""
from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from .diff_engine import render_html, render_segments
from .logger import get_logger
from .models import CorrectionResult, ReconciliationSession

logger = get_logger(__name__)

EMPTY_BUFFER_NOTICE = "Please enter some text before checking again."

SendCallback = Callable[[str], None]
AbandonCallback = Callable[[], None]


class ReconciliationWorkflow:
    """Runs the reconciliation dialog for one gated send at a time."""

    def __init__(self, gateway: Any, scheduler: Any, view_factory: Callable[["ReconciliationWorkflow"], Any]):
        self.gateway = gateway
        self.scheduler = scheduler
        self.view_factory = view_factory
        self._session: Optional[ReconciliationSession] = None
        self._view = None
        self._on_send: Optional[SendCallback] = None
        self._on_abandon: Optional[AbandonCallback] = None

    @property
    def session(self) -> Optional[ReconciliationSession]:
        return self._session

    @property
    def view(self):
        return self._view

    def open(
        self,
        original_text: str,
        result: CorrectionResult,
        on_send: SendCallback,
        on_abandon: AbandonCallback,
    ) -> ReconciliationSession:
        """Start a session for ``original_text``, closing any session still open."""
        if self._session is not None:
            logger.info("Closing session %d before opening a new one", self._session.session_id)
            self.close()

        session = ReconciliationSession(original_text=original_text, latest_result=result)
        self._session = session
        self._on_send = on_send
        self._on_abandon = on_abandon

        self._view = self.view_factory(self)
        self._view.show(session)
        self._render()
        logger.debug("Session %d opened", session.session_id)
        return session

    def on_buffer_changed(self, text: str) -> None:
        session = self._session
        if session is None:
            return
        session.edit_buffer = text
        self._render()

    def _render(self) -> None:
        session = self._session
        if session is None or self._view is None:
            return
        self._view.set_diff(render_segments(session.edit_buffer, session.target_text))
        self._view.set_send_enabled(session.match_state)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Session %d diff: %s", session.session_id, render_html(session.edit_buffer, session.target_text))

    # Exits

    def send_corrected(self) -> bool:
        """Send the trimmed buffer; only allowed while it matches the correction."""
        session = self._session
        if session is None or not session.match_state:
            return False
        self._exit(session, session.corrected_payload())
        return True

    def send_as_is(self) -> bool:
        """Send the buffer exactly as typed, matching or not."""
        session = self._session
        if session is None:
            return False
        self._exit(session, session.as_is_payload())
        return True

    def close(self) -> None:
        """Dismiss the dialog; nothing is sent."""
        session = self._session
        if session is None:
            return
        self._exit(session, None)

    def _exit(self, session: ReconciliationSession, payload: Optional[str]) -> None:
        on_send, on_abandon = self._on_send, self._on_abandon
        session.closed = True
        self._session = None
        self._on_send = self._on_abandon = None
        view, self._view = self._view, None
        if view is not None:
            try:
                view.destroy()
            except Exception as e:
                logger.warning("Failed to destroy reconciliation view: %s", e)

        if payload is None:
            logger.info("Session %d closed without sending", session.session_id)
            if on_abandon is not None:
                on_abandon()
        else:
            logger.info("Session %d sending %d chars", session.session_id, len(payload))
            if on_send is not None:
                on_send(payload)

    # Re-check

    def recorrect(self) -> bool:
        """Ask for a fresh correction of the current buffer.

        Returns False when the buffer is blank; the user gets a notice and the
        session stays open.
        """
        session = self._session
        if session is None:
            return False
        text = session.edit_buffer.strip()
        if not text:
            if self._view is not None:
                self._view.show_notice(EMPTY_BUFFER_NOTICE)
            return False

        if self._view is not None:
            self._view.set_recorrect_busy(True)
        future = self.gateway.analyze(text)
        future.add_done_callback(
            lambda f, s=session: self.scheduler.call_soon(self._on_recorrect_done, s, f)
        )
        return True

    def _on_recorrect_done(self, session: ReconciliationSession, future) -> None:
        if session is not self._session or session.closed:
            logger.debug("Discarding re-check result for session %d", session.session_id)
            return
        if self._view is not None:
            self._view.set_recorrect_busy(False)
        try:
            result = future.result()
        except Exception as e:
            logger.error("Re-check failed: %s", e)
            return
        session.latest_result = result
        if self._view is not None:
            self._view.set_result(result)
        self._render()
