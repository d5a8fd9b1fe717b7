"""Unit tests for models.py module."""
from __future__ import annotations

import gc
import unittest

from draftGate.models import (
    CORRECTION_THRESHOLD,
    CorrectionIssue,
    InterceptionPhase,
    InterceptionState,
    IssueKind,
    ReconciliationSession,
    SignalSource,
    derive_result,
    fallback_result,
    match_state,
)

from tests.fakes import FakeElement


class TestCorrectionIssue(unittest.TestCase):

    def test_unknown_kind_maps_to_style(self):
        self.assertIs(IssueKind.parse("slang"), IssueKind.STYLE)
        self.assertIs(IssueKind.parse(" Typo "), IssueKind.TYPO)
        self.assertIs(IssueKind.parse(None), IssueKind.STYLE)

    def test_from_dict_accepts_type_or_kind(self):
        by_type = CorrectionIssue.from_dict({"type": "nativeness", "original": "a", "corrected": "b"})
        by_kind = CorrectionIssue.from_dict({"kind": "grammar"})
        self.assertIs(by_type.kind, IssueKind.NATIVENESS)
        self.assertIs(by_kind.kind, IssueKind.GRAMMAR)
        self.assertEqual(by_type.label, "Nativeness")

    def test_severity_is_clamped(self):
        self.assertEqual(CorrectionIssue.from_dict({"severity": 1.7}).severity, 1.0)
        self.assertEqual(CorrectionIssue.from_dict({"severity": -2}).severity, 0.0)
        self.assertEqual(CorrectionIssue.from_dict({"severity": "high"}).severity, 0.0)
        self.assertEqual(CorrectionIssue.from_dict({"severity": float("nan")}).severity, 0.0)


class TestDeriveResult(unittest.TestCase):

    def test_low_severity_issues_are_dropped(self):
        result = derive_result("Hello there", [
            {"type": "typo", "original": "Hlelo", "corrected": "Hello", "severity": 0.8},
            {"type": "style", "original": "there", "corrected": "there!", "severity": 0.3},
            {"type": "tone", "severity": 0.1},
        ])
        self.assertEqual(len(result.issues), 1)
        self.assertEqual(result.issues[0].original, "Hlelo")
        self.assertEqual(result.score, 0.8)
        self.assertTrue(result.needs_correction)

    def test_score_is_highest_remaining_severity(self):
        result = derive_result("x", [{"severity": 0.4}, {"severity": 0.9}, {"severity": 0.5}])
        self.assertEqual(result.score, 0.9)
        self.assertEqual([issue.severity for issue in result.issues], [0.4, 0.9, 0.5])

    def test_no_issues_means_no_correction(self):
        result = derive_result("Hello", [])
        self.assertEqual(result.score, 0.0)
        self.assertFalse(result.needs_correction)

    def test_threshold_is_configurable(self):
        issues = [{"type": "typo", "severity": 0.5}]
        self.assertTrue(derive_result("x", issues).needs_correction)
        self.assertFalse(derive_result("x", issues, threshold=0.6).needs_correction)
        self.assertFalse(derive_result("x", issues, severity_cutoff=0.5).needs_correction)

    def test_malformed_entries_are_skipped(self):
        result = derive_result("x", ["typo", None, 3, {"type": "typo", "severity": 0.7}])
        self.assertEqual(len(result.issues), 1)

    def test_fallback_result_never_gates(self):
        result = fallback_result("Hlelo there")
        self.assertEqual(result.corrected_text, "Hlelo there")
        self.assertEqual(result.issues, ())
        self.assertEqual(result.threshold, CORRECTION_THRESHOLD)
        self.assertFalse(result.needs_correction)

    def test_to_dict_uses_service_keys(self):
        payload = derive_result("Hi", [{"type": "typo", "severity": 0.5}]).to_dict()
        self.assertEqual(payload["correctedText"], "Hi")
        self.assertTrue(payload["needsCorrection"])
        self.assertEqual(payload["issues"][0]["type"], "typo")


class TestMatchState(unittest.TestCase):

    def test_trailing_whitespace_is_ignored(self):
        self.assertTrue(match_state("Hello there  \n", "Hello there"))
        self.assertTrue(match_state("Hello there", "Hello there\t"))

    def test_leading_whitespace_and_case_matter(self):
        self.assertFalse(match_state(" Hello there", "Hello there"))
        self.assertFalse(match_state("hello there", "Hello there"))


class TestReconciliationSession(unittest.TestCase):

    def test_buffer_starts_as_original(self):
        session = ReconciliationSession(original_text="Hlelo there", latest_result=fallback_result("Hello there"))
        self.assertEqual(session.edit_buffer, "Hlelo there")
        self.assertEqual(session.target_text, "Hello there")
        self.assertFalse(session.match_state)

    def test_payloads(self):
        session = ReconciliationSession(original_text="x", latest_result=fallback_result("Hello there"))
        session.edit_buffer = "Hello there \n"
        self.assertTrue(session.match_state)
        self.assertEqual(session.corrected_payload(), "Hello there")
        self.assertEqual(session.as_is_payload(), "Hello there \n")

    def test_sessions_get_distinct_ids(self):
        a = ReconciliationSession(original_text="a", latest_result=fallback_result("a"))
        b = ReconciliationSession(original_text="b", latest_result=fallback_result("b"))
        self.assertNotEqual(a.session_id, b.session_id)


class TestInterceptionState(unittest.TestCase):

    def test_defaults(self):
        state = InterceptionState(source=SignalSource.KEYBOARD)
        self.assertIs(state.phase, InterceptionPhase.AWAITING_LOCATOR)
        self.assertIsNone(state.suppressed)
        self.assertIsNone(state.surface)
        self.assertIsNone(state.control)

    def test_elements_are_held_weakly(self):
        state = InterceptionState(source=SignalSource.POINTER)
        element = FakeElement("Button")
        state.control = element
        self.assertIs(state.control, element)

        del element
        gc.collect()
        self.assertIsNone(state.control)

    def test_attempt_ids_increase(self):
        first = InterceptionState(source=SignalSource.KEYBOARD)
        second = InterceptionState(source=SignalSource.KEYBOARD)
        self.assertGreater(second.attempt_id, first.attempt_id)
        self.assertNotEqual(first, second)


if __name__ == "__main__":
    unittest.main()
