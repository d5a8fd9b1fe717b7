"""Asynchronous bridge between the interceptor and the correction service."""
from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

from .logger import get_logger
from .models import (
    CORRECTION_THRESHOLD,
    ISSUE_SEVERITY_CUTOFF,
    CorrectionResult,
    derive_result,
    fallback_result,
)

logger = get_logger(__name__)

MessageSender = Callable[[Dict[str, Any]], Dict[str, Any]]


class AnalysisGateway:
    """Sends drafts to the correction service and normalizes the replies.

    ``analyze`` never fails: transport errors, ``success: false`` replies and
    malformed payloads all resolve to :func:`fallback_result`. There is no retry.
    """

    def __init__(
        self,
        send_message: MessageSender,
        *,
        severity_cutoff: float = ISSUE_SEVERITY_CUTOFF,
        threshold: float = CORRECTION_THRESHOLD,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._send_message = send_message
        self.severity_cutoff = severity_cutoff
        self.threshold = threshold
        self._executor = executor
        self._owns_executor = executor is None

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="analysis")
        return self._executor

    def analyze(self, text: str) -> "Future[CorrectionResult]":
        """Run :meth:`analyze_now` on a worker thread."""
        return self._ensure_executor().submit(self.analyze_now, text)

    def analyze_now(self, text: str) -> CorrectionResult:
        try:
            response = self._send_message({"action": "correctText", "text": text})
        except Exception as e:
            logger.error("Correction request failed: %s", e)
            return fallback_result(text, self.threshold)

        if not isinstance(response, dict) or not response.get("success"):
            error = response.get("error") if isinstance(response, dict) else response
            logger.warning("Correction service error: %s", error)
            return fallback_result(text, self.threshold)

        data = response.get("data")
        if not isinstance(data, dict):
            logger.warning("Malformed correction payload: %r", data)
            return fallback_result(text, self.threshold)

        corrected = data.get("correctedText")
        if not isinstance(corrected, str) or not corrected.strip():
            corrected = text
        issues = data.get("issues")
        result = derive_result(
            corrected,
            issues if isinstance(issues, list) else [],
            severity_cutoff=self.severity_cutoff,
            threshold=self.threshold,
        )
        logger.info(
            "Analysis done: score=%.2f issues=%d needs_correction=%s",
            result.score, len(result.issues), result.needs_correction,
        )
        return result

    def shutdown(self) -> None:
        executor, self._executor = self._executor, None
        if executor is not None and self._owns_executor:
            try:
                executor.shutdown(wait=False, cancel_futures=True)
            except Exception as e:
                logger.warning("Executor shutdown error: %s", e)
