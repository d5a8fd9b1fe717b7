"""Character-level diff between the user's edit buffer and the proposed correction.

``diff(a, b)`` aligns ``a`` (what the user typed) against ``b`` (what the service
proposed) with a longest-common-subsequence table and returns merged spans. The
rendering helpers turn spans into ``(text, style)`` segments for the Tk dialog or
into escaped HTML:

    INSERTED -> "missing"  (still has to be typed)
    REMOVED  -> "extra"    (has to be deleted)
"""
from __future__ import annotations

import difflib
import html
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

# Above this many table cells the LCS table is too large to build per keystroke.
MAX_LCS_CELLS = 4_000_000

PERFECT_MATCH_TEXT = "✓ Perfect match!"
EMPTY_DIFF_TEXT = "(empty)"

STYLE_MISSING = "missing"
STYLE_EXTRA = "extra"
STYLE_PERFECT = "perfect"
STYLE_EMPTY = "empty"

Segment = Tuple[str, Optional[str]]


class SpanOp(str, Enum):
    EQUAL = "equal"
    INSERTED = "inserted"
    REMOVED = "removed"


@dataclass(frozen=True)
class DiffSpan:
    op: SpanOp
    text: str


def _append(spans: List[DiffSpan], op: SpanOp, text: str) -> None:
    if not text:
        return
    if spans and spans[-1].op is op:
        spans[-1] = DiffSpan(op, spans[-1].text + text)
    else:
        spans.append(DiffSpan(op, text))


def _lcs_spans(a: str, b: str) -> List[DiffSpan]:
    n, m = len(a), len(b)
    # table[i][j] = LCS length of a[i:] and b[j:]
    table = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = table[i], table[i + 1]
        ai = a[i]
        for j in range(m - 1, -1, -1):
            if ai == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = below[j] if below[j] >= row[j + 1] else row[j + 1]

    spans: List[DiffSpan] = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            _append(spans, SpanOp.EQUAL, a[i])
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            _append(spans, SpanOp.REMOVED, a[i])
            i += 1
        else:
            _append(spans, SpanOp.INSERTED, b[j])
            j += 1
    _append(spans, SpanOp.REMOVED, a[i:])
    _append(spans, SpanOp.INSERTED, b[j:])
    return spans


def _matcher_spans(a: str, b: str) -> List[DiffSpan]:
    spans: List[DiffSpan] = []
    matcher = difflib.SequenceMatcher(None, a, b, autojunk=False)
    for tag, i1, i2, j1, j2 in matcher.get_opcodes():
        if tag == "equal":
            _append(spans, SpanOp.EQUAL, a[i1:i2])
        else:
            _append(spans, SpanOp.REMOVED, a[i1:i2])
            _append(spans, SpanOp.INSERTED, b[j1:j2])
    return spans


def diff(a: str, b: str) -> List[DiffSpan]:
    """Align ``a`` against ``b`` and return equal/inserted/removed spans."""
    if a == b:
        return [DiffSpan(SpanOp.EQUAL, a)] if a else []
    if not a:
        return [DiffSpan(SpanOp.INSERTED, b)]
    if not b:
        return [DiffSpan(SpanOp.REMOVED, a)]

    # Common prefix/suffix never change the minimal script; strip them first.
    prefix = 0
    limit = min(len(a), len(b))
    while prefix < limit and a[prefix] == b[prefix]:
        prefix += 1
    suffix = 0
    while suffix < limit - prefix and a[-1 - suffix] == b[-1 - suffix]:
        suffix += 1

    a_mid = a[prefix:len(a) - suffix]
    b_mid = b[prefix:len(b) - suffix]

    spans: List[DiffSpan] = []
    _append(spans, SpanOp.EQUAL, a[:prefix])
    if (len(a_mid) + 1) * (len(b_mid) + 1) > MAX_LCS_CELLS:
        middle = _matcher_spans(a_mid, b_mid)
    else:
        middle = _lcs_spans(a_mid, b_mid)
    for span in middle:
        _append(spans, span.op, span.text)
    _append(spans, SpanOp.EQUAL, a[len(a) - suffix:] if suffix else "")
    return spans


def reconstruct_target(spans: List[DiffSpan]) -> str:
    """Rebuild the second diff input from its non-removed spans."""
    return "".join(span.text for span in spans if span.op is not SpanOp.REMOVED)


def reconstruct_source(spans: List[DiffSpan]) -> str:
    """Rebuild the first diff input from its non-inserted spans."""
    return "".join(span.text for span in spans if span.op is not SpanOp.INSERTED)


_SPAN_STYLES = {
    SpanOp.EQUAL: None,
    SpanOp.INSERTED: STYLE_MISSING,
    SpanOp.REMOVED: STYLE_EXTRA,
}


def render_segments(user_text: str, expected_text: str) -> List[Segment]:
    """Produce the styled segments shown under the edit buffer.

    Both sides are compared with trailing whitespace removed, matching the gate.
    """
    user = user_text.rstrip()
    expected = expected_text.rstrip()

    if user == expected:
        return [(PERFECT_MATCH_TEXT, STYLE_PERFECT)]
    if not user:
        return [(expected, STYLE_MISSING)]
    if not expected:
        return [(user, STYLE_EXTRA)]

    segments = [(span.text, _SPAN_STYLES[span.op]) for span in diff(user, expected)]
    return segments or [(EMPTY_DIFF_TEXT, STYLE_EMPTY)]


def render_html(user_text: str, expected_text: str) -> str:
    """Same rendering as :func:`render_segments`, as escaped HTML."""
    parts = []
    for text, style in render_segments(user_text, expected_text):
        escaped = html.escape(text)
        if style is None:
            parts.append(escaped)
        else:
            parts.append(f'<span class="diff-{style}">{escaped}</span>')
    return "".join(parts)
