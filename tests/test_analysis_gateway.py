"""Unit tests for analysis_gateway.py module."""
from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from draftGate.analysis_gateway import AnalysisGateway


def ok(data):
    return {"success": True, "data": data}


class TestAnalysisGateway(unittest.TestCase):

    def test_request_shape(self):
        send = MagicMock(return_value=ok({"correctedText": "Hi", "issues": []}))
        AnalysisGateway(send).analyze_now("Hi")
        send.assert_called_once_with({"action": "correctText", "text": "Hi"})

    def test_result_is_derived_locally(self):
        send = MagicMock(return_value=ok({
            "correctedText": "Hello there",
            "issues": [
                {"type": "typo", "original": "Hlelo", "corrected": "Hello", "severity": 0.8},
                {"type": "nativeness", "original": "there", "corrected": "there!", "severity": 0.2},
            ],
            "score": 0.1,
            "needsCorrection": False,
        }))
        result = AnalysisGateway(send).analyze_now("Hlelo there")

        self.assertEqual(result.corrected_text, "Hello there")
        self.assertEqual(len(result.issues), 1)
        self.assertEqual(result.score, 0.8)
        self.assertTrue(result.needs_correction)

    def test_service_flag_without_issues_does_not_gate(self):
        send = MagicMock(return_value=ok({"correctedText": "Hi", "issues": [], "needsCorrection": True, "score": 1}))
        self.assertFalse(AnalysisGateway(send).analyze_now("Hi").needs_correction)

    def test_configured_thresholds_apply(self):
        send = MagicMock(return_value=ok({"correctedText": "Hi", "issues": [{"type": "typo", "severity": 0.5}]}))
        strict = AnalysisGateway(send, severity_cutoff=0.6)
        lenient = AnalysisGateway(send, threshold=0.9)
        self.assertFalse(strict.analyze_now("Hi").needs_correction)
        self.assertFalse(lenient.analyze_now("Hi").needs_correction)

    def test_transport_error_falls_back(self):
        send = MagicMock(side_effect=ConnectionError("offline"))
        result = AnalysisGateway(send).analyze_now("Hlelo there")

        self.assertEqual(result.corrected_text, "Hlelo there")
        self.assertEqual(result.score, 0.0)
        self.assertFalse(result.needs_correction)

    def test_service_failure_falls_back(self):
        for response in ({"success": False, "error": "API key is not set"}, None, "garbage", ok(None), ok([1, 2])):
            with self.subTest(response=response):
                result = AnalysisGateway(MagicMock(return_value=response)).analyze_now("text")
                self.assertEqual(result.corrected_text, "text")
                self.assertFalse(result.needs_correction)

    def test_blank_corrected_text_keeps_original(self):
        send = MagicMock(return_value=ok({"correctedText": "  ", "issues": [{"type": "typo", "severity": 0.9}]}))
        result = AnalysisGateway(send).analyze_now("Hlelo")
        self.assertEqual(result.corrected_text, "Hlelo")

    def test_analyze_runs_on_worker(self):
        send = MagicMock(return_value=ok({"correctedText": "Hi", "issues": []}))
        gateway = AnalysisGateway(send)
        try:
            result = gateway.analyze("Hi").result(timeout=5)
        finally:
            gateway.shutdown()
        self.assertEqual(result.corrected_text, "Hi")

    def test_analyze_future_never_raises(self):
        gateway = AnalysisGateway(MagicMock(side_effect=RuntimeError("boom")))
        try:
            result = gateway.analyze("Hi").result(timeout=5)
        finally:
            gateway.shutdown()
        self.assertFalse(result.needs_correction)


if __name__ == "__main__":
    unittest.main()
