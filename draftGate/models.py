"""Value types shared by the interceptor, the gateway and the reconciliation dialog."""
from __future__ import annotations

import itertools
import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple

# Issues at or below this severity are dropped before scoring.
ISSUE_SEVERITY_CUTOFF = 0.3
# Minimum score that sends the draft to the reconciliation dialog.
CORRECTION_THRESHOLD = 0.3


class IssueKind(str, Enum):
    TYPO = "typo"
    TONE = "tone"
    POLITENESS = "politeness"
    GRAMMAR = "grammar"
    STYLE = "style"
    NATIVENESS = "nativeness"

    @classmethod
    def parse(cls, raw: Any) -> "IssueKind":
        """Map a service-provided kind string, treating unknown kinds as style."""
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.STYLE


ISSUE_KIND_LABELS: Dict[IssueKind, str] = {
    IssueKind.TYPO: "Typo",
    IssueKind.TONE: "Tone",
    IssueKind.POLITENESS: "Politeness",
    IssueKind.GRAMMAR: "Grammar",
    IssueKind.STYLE: "Style",
    IssueKind.NATIVENESS: "Nativeness",
}


def _clamp_unit(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if number != number:  # NaN
        return 0.0
    return max(0.0, min(1.0, number))


@dataclass(frozen=True)
class CorrectionIssue:
    """One flagged difference between the draft and the proposed correction."""

    kind: IssueKind
    original: str
    corrected: str
    reason: str = ""
    severity: float = 0.0

    @property
    def label(self) -> str:
        return ISSUE_KIND_LABELS.get(self.kind, "Fix")

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "CorrectionIssue":
        """Build an issue from the service payload (``type`` or ``kind`` key)."""
        return cls(
            kind=IssueKind.parse(raw.get("kind", raw.get("type", ""))),
            original=str(raw.get("original", "") or ""),
            corrected=str(raw.get("corrected", "") or ""),
            reason=str(raw.get("reason", "") or ""),
            severity=_clamp_unit(raw.get("severity", 0.0)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.kind.value,
            "original": self.original,
            "corrected": self.corrected,
            "reason": self.reason,
            "severity": self.severity,
        }


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome of one analysis request.

    Instances are built through :func:`derive_result` or :func:`fallback_result`;
    ``needs_correction`` is always computed from ``score`` and ``issues``.
    """

    score: float
    issues: Tuple[CorrectionIssue, ...]
    corrected_text: str
    threshold: float = CORRECTION_THRESHOLD

    @property
    def needs_correction(self) -> bool:
        return bool(self.issues) and self.score >= self.threshold

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score": self.score,
            "issues": [issue.to_dict() for issue in self.issues],
            "correctedText": self.corrected_text,
            "needsCorrection": self.needs_correction,
        }


def derive_result(
    corrected_text: str,
    raw_issues: Iterable[Any],
    *,
    severity_cutoff: float = ISSUE_SEVERITY_CUTOFF,
    threshold: float = CORRECTION_THRESHOLD,
) -> CorrectionResult:
    """Filter issues, score them and decide whether a correction is needed.

    Issues keep the order the service returned them in. Entries that are neither
    :class:`CorrectionIssue` nor dicts are skipped.
    """
    parsed: List[CorrectionIssue] = []
    for raw in raw_issues or ():
        if isinstance(raw, CorrectionIssue):
            parsed.append(raw)
        elif isinstance(raw, dict):
            parsed.append(CorrectionIssue.from_dict(raw))

    significant = tuple(issue for issue in parsed if issue.severity > severity_cutoff)
    score = max((issue.severity for issue in significant), default=0.0)
    return CorrectionResult(
        score=score,
        issues=significant,
        corrected_text=corrected_text if isinstance(corrected_text, str) else "",
        threshold=threshold,
    )


def fallback_result(text: str, threshold: float = CORRECTION_THRESHOLD) -> CorrectionResult:
    """Neutral "nothing to correct" result used whenever analysis fails."""
    return CorrectionResult(score=0.0, issues=(), corrected_text=text, threshold=threshold)


def match_state(buffer: str, corrected: str) -> bool:
    """True when the buffer equals the correction, ignoring trailing whitespace."""
    return buffer.rstrip() == corrected.rstrip()


class SignalSource(str, Enum):
    POINTER = "pointer"
    KEYBOARD = "keyboard"


class InterceptionPhase(str, Enum):
    IDLE = "idle"
    AWAITING_LOCATOR = "awaiting_locator"
    AWAITING_ANALYSIS = "awaiting_analysis"
    GATED = "gated"
    PASS_THROUGH = "pass_through"


_attempt_ids = itertools.count(1)
_session_ids = itertools.count(1)


@dataclass(eq=False)
class InterceptionState:
    """Transient bookkeeping for one pending submit attempt.

    The surface and control are held through weak references; the host owns their
    lifecycle.
    """

    source: SignalSource
    attempt_id: int = field(default_factory=lambda: next(_attempt_ids))
    phase: InterceptionPhase = InterceptionPhase.AWAITING_LOCATOR
    suppressed: Optional[SignalSource] = None
    original_text: str = ""
    _surface_ref: Optional[weakref.ref] = field(default=None, repr=False)
    _control_ref: Optional[weakref.ref] = field(default=None, repr=False)

    @property
    def surface(self) -> Optional[Any]:
        return self._surface_ref() if self._surface_ref is not None else None

    @surface.setter
    def surface(self, element: Optional[Any]) -> None:
        self._surface_ref = weakref.ref(element) if element is not None else None

    @property
    def control(self) -> Optional[Any]:
        return self._control_ref() if self._control_ref is not None else None

    @control.setter
    def control(self, element: Optional[Any]) -> None:
        self._control_ref = weakref.ref(element) if element is not None else None


@dataclass(eq=False)
class ReconciliationSession:
    """State behind one open reconciliation dialog."""

    original_text: str
    latest_result: CorrectionResult
    edit_buffer: str = ""
    session_id: int = field(default_factory=lambda: next(_session_ids))
    closed: bool = False

    def __post_init__(self) -> None:
        if not self.edit_buffer:
            self.edit_buffer = self.original_text

    @property
    def target_text(self) -> str:
        return self.latest_result.corrected_text

    @property
    def match_state(self) -> bool:
        return match_state(self.edit_buffer, self.latest_result.corrected_text)

    def corrected_payload(self) -> str:
        return self.edit_buffer.rstrip()

    def as_is_payload(self) -> str:
        return self.edit_buffer
