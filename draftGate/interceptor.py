"""Submit interception: the gate between the user's send intent and the host.

One attempt at a time moves through::

    IDLE -> AWAITING_LOCATOR -> AWAITING_ANALYSIS -> GATED | PASS_THROUGH -> IDLE

The keyboard and pointer hooks call :meth:`SubmitInterceptor.handle_shortcut` and
:meth:`SubmitInterceptor.handle_pointer_press` on their own threads. Those only
decide whether the event is swallowed; everything else runs on the scheduler.

Pass-through re-sends through the host's own controls. It first polls the send
button and clicks it once enabled; if the button never enables it synthesizes the
send shortcut once. Either way a one-shot suppression for that input source is
armed first, so the interceptor lets exactly one re-entry through.
"""
from __future__ import annotations

import threading
from concurrent.futures import Future
from typing import Any, Callable, List, Optional, Tuple

from .control_watcher import AttachmentRegistry, ControlWatcher, should_attach
from .logger import get_logger
from .models import CorrectionResult, InterceptionPhase, InterceptionState, SignalSource

logger = get_logger(__name__)

CLICK_DELAY_MS = 10


class SubmitInterceptor:
    """Owns the interception state machine and the channels that feed it."""

    def __init__(
        self,
        *,
        host: Any,
        locator: Any,
        gateway: Any,
        scheduler: Any,
        feedback: Any,
        workflow: Any,
        keyboard_channel: Any = None,
        pointer_channel: Any = None,
        send_shortcut: Optional[Callable[[], None]] = None,
        poll_attempts: int = 10,
        poll_interval_ms: int = 100,
        click_delay_ms: int = CLICK_DELAY_MS,
        suppression_window_ms: int = 100,
        resume_delay_ms: int = 200,
        watch_interval_ms: int = 750,
        enabled: bool = True,
    ) -> None:
        self.host = host
        self.locator = locator
        self.gateway = gateway
        self.scheduler = scheduler
        self.feedback = feedback
        self.workflow = workflow
        self.keyboard_channel = keyboard_channel
        self.pointer_channel = pointer_channel
        self._send_shortcut = send_shortcut or self._default_send_shortcut

        self.poll_attempts = max(1, poll_attempts)
        self.poll_interval_ms = poll_interval_ms
        self.click_delay_ms = click_delay_ms
        self.suppression_window_ms = suppression_window_ms
        self.resume_delay_ms = resume_delay_ms

        self.attachments = AttachmentRegistry()
        self.watcher = ControlWatcher(
            host,
            scheduler,
            interval_ms=watch_interval_ms,
            on_inserted=self._on_nodes_inserted,
            on_changed=self._on_nodes_changed,
            on_removed=self._on_nodes_removed,
        )

        self._state: Optional[InterceptionState] = None
        self._enabled = enabled
        self._running = False
        self._lock = threading.RLock()
        self._status_listeners: List[Callable[[bool], None]] = []

    # ------------------------------------------------------------------ lifecycle

    def start(self) -> None:
        """Install the input channels and start watching for submit controls."""
        with self._lock:
            if self._running:
                return
            self._running = True
        if self.keyboard_channel is not None:
            self.keyboard_channel.start()
        if self.pointer_channel is not None:
            self.pointer_channel.start()
        self.watcher.start()
        logger.info("Submit interception started (%s)", "enabled" if self._enabled else "paused")

    def stop(self) -> None:
        with self._lock:
            if not self._running:
                return
            self._running = False
            self._state = None
        self.watcher.stop()
        if self.keyboard_channel is not None:
            self.keyboard_channel.stop()
        if self.pointer_channel is not None:
            self.pointer_channel.stop()
        self.attachments.clear()
        self.feedback.hide()
        logger.info("Submit interception stopped")

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)
        logger.info("Interception %s", "enabled" if self._enabled else "paused")
        for listener in list(self._status_listeners):
            try:
                listener(self._enabled)
            except Exception as e:
                logger.warning("Status listener error: %s", e)

    def add_status_listener(self, listener: Callable[[bool], None]) -> None:
        if listener not in self._status_listeners:
            self._status_listeners.append(listener)

    @property
    def phase(self) -> InterceptionPhase:
        state = self._state
        return state.phase if state is not None else InterceptionPhase.IDLE

    @property
    def state(self) -> Optional[InterceptionState]:
        return self._state

    # ------------------------------------------------------------ pointer attach

    def attach_control(self, control: Any) -> bool:
        """Put a submit control under pointer interception, at most once."""
        if self.attachments.attach(control):
            logger.debug("Attached to submit control %r", control)
            return True
        return False

    def _on_nodes_inserted(self, nodes: List[Any]) -> None:
        for node in nodes:
            if should_attach(node, self.host.profile, self.attachments):
                self.attach_control(node)
        self.attachments.prune(self.watcher.live_ids())

    def _on_nodes_changed(self, nodes: List[Any]) -> None:
        for node in nodes:
            if should_attach(node, self.host.profile, self.attachments):
                self.attach_control(node)
        # Buttons move and resize when they change state.
        self.attachments.refresh_hit_boxes()

    def _on_nodes_removed(self, runtime_ids: List[Tuple]) -> None:
        gone = [key for key in runtime_ids if self.attachments.get(key) is not None]
        if gone:
            logger.debug("Submit control removed: %s", gone)
        self.attachments.prune(self.watcher.live_ids())

    # ------------------------------------------------------------ hook threads

    def handle_shortcut(self) -> bool:
        """Keyboard hook entry; True swallows the key press."""
        try:
            if self._suppression_armed(SignalSource.KEYBOARD):
                return self.on_submit_signal(SignalSource.KEYBOARD, None)
            if not self._enabled or not self.host.is_foreground():
                return False
            # Focus is checked on the main loop; the host window is enough to hold the key.
            return self.on_submit_signal(SignalSource.KEYBOARD, None)
        except Exception:
            logger.exception("Shortcut handler failed")
            self._reset()
            return False

    def handle_pointer_press(self, x: int, y: int) -> bool:
        """Pointer hook entry; True swallows the press."""
        try:
            runtime_id = self.attachments.hit_test(x, y)
            if runtime_id is None:
                return False
            control = self.attachments.get(runtime_id)
            if control is None:
                return False
            if self._suppression_armed(SignalSource.POINTER):
                return self.on_submit_signal(SignalSource.POINTER, control)
            # Other windows, our own dialog included, may cover the cached hit box.
            if not self._enabled or not self.host.is_foreground():
                return False
            return self.on_submit_signal(SignalSource.POINTER, control)
        except Exception:
            logger.exception("Pointer handler failed")
            self._reset()
            return False

    def _suppression_armed(self, source: SignalSource) -> bool:
        state = self._state
        return state is not None and state.suppressed is source

    def on_submit_signal(self, source: SignalSource, anchor: Any = None) -> bool:
        """Decide what happens to one submit signal. True means it was consumed.

        A signal matching the armed one-shot suppression is our own re-dispatch:
        the suppression is used up and the signal reaches the host. Any other
        signal during an attempt is swallowed and ignored.
        """
        with self._lock:
            state = self._state
            if state is not None and state.suppressed is source:
                state.suppressed = None
                logger.debug("Re-entry of attempt %d let through", state.attempt_id)
                self._state = None
                return False
            if not self._enabled or not self._running:
                return False
            if state is not None:
                logger.info("Ignoring %s submit: attempt %d is %s", source.value, state.attempt_id, state.phase.value)
                return True

            state = InterceptionState(source=source)
            if source is SignalSource.POINTER:
                state.control = anchor
            self._state = state

        logger.debug("Attempt %d started from %s", state.attempt_id, source.value)
        self.scheduler.call_soon(self._begin, state, anchor)
        return True

    # ------------------------------------------------------------ main loop

    def _is_current(self, state: InterceptionState) -> bool:
        return self._state is state

    def _begin(self, state: InterceptionState, anchor: Any) -> None:
        if not self._is_current(state):
            return
        try:
            if state.source is SignalSource.KEYBOARD:
                if anchor is None:
                    anchor = self.locator.focused_element()
                if not self.locator.is_message_input(anchor):
                    logger.debug("Shortcut outside a message input; replaying it")
                    state.phase = InterceptionPhase.PASS_THROUGH
                    self._synthesize(state)
                    return

            surface = self.locator.locate(anchor)
            text = self.locator.get_text(surface) if surface is not None else ""
            state.surface = surface
            state.original_text = text

            if surface is None or not text.strip():
                logger.debug("Nothing to check (surface=%s); sending as is", surface is not None)
                self._pass_through(state)
                return

            state.phase = InterceptionPhase.AWAITING_ANALYSIS
            self.feedback.show(surface, state.control)
            future = self.gateway.analyze(text)
            future.add_done_callback(
                lambda f, s=state: self.scheduler.call_soon(self._on_analysis_done, s, f)
            )
        except Exception:
            logger.exception("Interception failed; sending original text")
            self.feedback.hide()
            self._pass_through(state)

    def _on_analysis_done(self, state: InterceptionState, future: "Future[CorrectionResult]") -> None:
        if not self._is_current(state) or state.phase is not InterceptionPhase.AWAITING_ANALYSIS:
            logger.debug("Discarding stale analysis for attempt %d", state.attempt_id)
            return
        self.feedback.hide()
        try:
            result = future.result()
            if not result.needs_correction:
                self._pass_through(state)
                return
            state.phase = InterceptionPhase.GATED
            logger.info("Draft needs correction (score %.2f); opening reconciliation", result.score)
            self.workflow.open(
                state.original_text,
                result,
                on_send=lambda text, s=state: self.resume_with_text(text, s),
                on_abandon=lambda s=state: self.abandon(s),
            )
        except Exception:
            logger.exception("Analysis handling failed; sending original text")
            self._pass_through(state)

    def resume_with_text(self, text: str, state: Optional[InterceptionState] = None) -> None:
        """Leave GATED: write ``text`` into the surface and pass through."""
        state = state or self._state
        if state is None or not self._is_current(state) or state.phase is not InterceptionPhase.GATED:
            return
        surface = state.surface
        if surface is None:
            surface = self.locator.locate(state.control)
            state.surface = surface
        if surface is None:
            logger.warning("Input surface is gone; sending without rewriting it")
        else:
            self.locator.set_text(surface, text)
        state.phase = InterceptionPhase.PASS_THROUGH
        self.scheduler.call_later(self.resume_delay_ms, self._pass_through, state)

    def abandon(self, state: Optional[InterceptionState] = None) -> None:
        """Leave GATED without sending anything."""
        state = state or self._state
        if state is None or not self._is_current(state):
            return
        logger.info("Send of attempt %d abandoned", state.attempt_id)
        self._finish(state)

    # ------------------------------------------------------------ pass-through

    def _pass_through(self, state: InterceptionState) -> None:
        if not self._is_current(state):
            return
        state.phase = InterceptionPhase.PASS_THROUGH
        self._poll_send_control(state, 1)

    def _send_control(self, state: InterceptionState) -> Optional[Any]:
        control = state.control
        if control is not None:
            return control
        return self.locator.find_send_control(state.surface)

    def _poll_send_control(self, state: InterceptionState, attempt: int) -> None:
        if not self._is_current(state):
            return
        control = None
        try:
            control = self._send_control(state)
            enabled = control is not None and control.is_enabled()
        except Exception as e:
            logger.debug("Send control check failed: %s", e)
            enabled = False

        if enabled:
            self._arm(state, SignalSource.POINTER)
            self.scheduler.call_later(self.click_delay_ms, self._click, state, control)
            return
        if attempt >= self.poll_attempts:
            logger.info("Send control unavailable after %d checks; using the send shortcut", attempt)
            self._synthesize(state)
            return
        self.scheduler.call_later(self.poll_interval_ms, self._poll_send_control, state, attempt + 1)

    def _click(self, state: InterceptionState, control: Any) -> None:
        try:
            control.click()
        except Exception as e:
            logger.warning("Clicking the send control failed (%s); using the send shortcut", e)
            if self._is_current(state):
                self._synthesize(state)

    def _synthesize(self, state: InterceptionState) -> None:
        self._arm(state, SignalSource.KEYBOARD)
        try:
            self._send_shortcut()
        except Exception as e:
            logger.error("Failed to synthesize send shortcut: %s", e)
            self._finish(state)

    def _arm(self, state: InterceptionState, source: SignalSource) -> None:
        with self._lock:
            if not self._is_current(state):
                return
            state.suppressed = source
        self.scheduler.call_later(self.suppression_window_ms, self._expire_suppression, state)

    def _expire_suppression(self, state: InterceptionState) -> None:
        with self._lock:
            if not self._is_current(state):
                return
            if state.suppressed is not None:
                logger.debug("Suppression window of attempt %d closed unused", state.attempt_id)
        self._finish(state)

    def _finish(self, state: InterceptionState) -> None:
        with self._lock:
            if self._state is state:
                state.suppressed = None
                self._state = None

    def _reset(self) -> None:
        with self._lock:
            self._state = None

    def _default_send_shortcut(self) -> None:
        if self.keyboard_channel is None:
            raise RuntimeError("No keyboard channel to synthesize the send shortcut")
        self.keyboard_channel.send_shortcut()
