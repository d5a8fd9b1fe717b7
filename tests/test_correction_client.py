"""Unit tests for correction_client.py module."""
from __future__ import annotations

import json
import unittest
from unittest.mock import MagicMock, patch

from draftGate.correction_client import TEST_CONNECTION_TEXT, CorrectionClient


def make_config(api_key="AIzaTestKey", model="gemini-2.0-flash"):
    config = MagicMock()
    config.get_api_key.return_value = api_key
    config.get_model_name.return_value = model
    return config


REPLY = {
    "correctedText": "Hello there",
    "issues": [{"type": "typo", "original": "Hlelo", "corrected": "Hello", "reason": "Misspelling", "severity": 0.8}],
    "score": 0.8,
    "needsCorrection": True,
}


class TestCorrectionClient(unittest.TestCase):

    def setUp(self):
        patcher = patch("draftGate.correction_client.genai")
        self.genai = patcher.start()
        self.addCleanup(patcher.stop)
        self.model = self.genai.GenerativeModel.return_value
        self.model.generate_content.return_value = MagicMock(text=json.dumps(REPLY))

    def test_correct_text_round_trip(self):
        client = CorrectionClient(make_config())
        response = client.handle_message({"action": "correctText", "text": "  Hlelo there "})

        self.assertTrue(response["success"])
        self.assertEqual(response["data"]["correctedText"], "Hello there")
        self.assertEqual(len(response["data"]["issues"]), 1)
        self.genai.configure.assert_called_once_with(api_key="AIzaTestKey")
        self.genai.GenerativeModel.assert_called_once_with("gemini-2.0-flash")
        prompt = self.model.generate_content.call_args[0][0]
        self.assertIn('"Hlelo there"', prompt)

    def test_credential_is_read_per_request(self):
        config = make_config()
        client = CorrectionClient(config)
        client.handle_message({"action": "correctText", "text": "one"})
        config.get_api_key.return_value = "AIzaNewKey"
        client.handle_message({"action": "correctText", "text": "two"})

        self.genai.configure.assert_called_with(api_key="AIzaNewKey")
        self.assertEqual(config.get_api_key.call_count, 2)

    def test_missing_key_is_an_error_response(self):
        response = CorrectionClient(make_config(api_key=None)).handle_message({"action": "correctText", "text": "hi"})
        self.assertFalse(response["success"])
        self.assertIn("API key", response["error"])
        self.model.generate_content.assert_not_called()

    def test_unknown_action_is_rejected(self):
        client = CorrectionClient(make_config())
        for request in ({"action": "translate", "text": "hi"}, {"action": "correctText"}, "correctText"):
            with self.subTest(request=request):
                self.assertFalse(client.handle_message(request)["success"])

    def test_api_exception_is_an_error_response(self):
        self.model.generate_content.side_effect = RuntimeError("quota exceeded")
        response = CorrectionClient(make_config()).handle_message({"action": "correctText", "text": "hi"})
        self.assertFalse(response["success"])
        self.assertEqual(response["error"], "API Error: quota exceeded")

    def test_empty_reply_is_an_error_response(self):
        self.model.generate_content.return_value = MagicMock(text="")
        response = CorrectionClient(make_config()).handle_message({"action": "correctText", "text": "hi"})
        self.assertFalse(response["success"])
        self.assertIn("Empty response", response["error"])

    def test_test_connection_uses_sample_text(self):
        client = CorrectionClient(make_config())
        self.assertTrue(client.test_connection()["success"])
        prompt = self.model.generate_content.call_args[0][0]
        self.assertIn(TEST_CONNECTION_TEXT, prompt)


class TestParseResponse(unittest.TestCase):

    def test_fenced_json(self):
        raw = "Here you go:\n```json\n" + json.dumps(REPLY) + "\n```"
        self.assertEqual(CorrectionClient.parse_response(raw)["correctedText"], "Hello there")

    def test_object_inside_prose(self):
        raw = "Sure! " + json.dumps(REPLY) + " Let me know."
        self.assertEqual(CorrectionClient.parse_response(raw)["score"], 0.8)

    def test_plain_text_becomes_corrected_text(self):
        parsed = CorrectionClient.parse_response("  Hello there  ")
        self.assertEqual(parsed["correctedText"], "Hello there")
        self.assertEqual(parsed["issues"], [])
        self.assertFalse(parsed["needsCorrection"])

    def test_bad_field_types_are_normalized(self):
        parsed = CorrectionClient.parse_response(json.dumps({"correctedText": None, "issues": "none", "score": True}))
        self.assertEqual(parsed["correctedText"], "")
        self.assertEqual(parsed["issues"], [])
        self.assertEqual(parsed["score"], 0)


if __name__ == "__main__":
    unittest.main()
