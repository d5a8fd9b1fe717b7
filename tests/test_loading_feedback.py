"""Unit tests for loading_overlay.py module."""
from __future__ import annotations

import unittest
from unittest.mock import MagicMock

from draftGate.loading_overlay import LoadingFeedback, LoadingOverlay
from draftGate.text_surface import TextSurfaceLocator

from tests.fakes import Composer, FakeElement, FakeHost, FakeOverlay


class TestLoadingFeedback(unittest.TestCase):

    def setUp(self):
        self.composer = Composer(text="Hlelo there")
        self.overlay = FakeOverlay()
        self.feedback = LoadingFeedback(TextSurfaceLocator(FakeHost(root=self.composer.window)), self.overlay)

    def test_overlay_covers_input_container(self):
        self.feedback.show(self.composer.editor)

        self.assertTrue(self.feedback.is_showing())
        self.assertIs(self.feedback.anchor, self.composer.container)
        self.assertEqual(self.overlay.shown_at, [Composer.CONTAINER_RECT])

    def test_clicked_send_button_is_marked_busy(self):
        self.feedback.show(self.composer.editor, self.composer.send)
        self.assertEqual(self.overlay.shown_at, [Composer.CONTAINER_RECT])
        self.assertEqual(self.overlay.button_rects, [Composer.SEND_RECT])

    def test_shortcut_has_no_busy_button(self):
        self.feedback.show(self.composer.editor)
        self.assertEqual(self.overlay.button_rects, [None])

    def test_surface_without_container_uses_parent(self):
        loose = FakeElement("Edit", parent=self.composer.window)
        self.feedback.show(loose)
        self.assertIs(self.feedback.anchor, self.composer.window)
        self.assertEqual(self.overlay.shown_at, [None])

    def test_only_one_indicator_at_a_time(self):
        self.feedback.show(self.composer.editor)
        self.feedback.show(self.composer.editor)

        self.assertEqual(len(self.overlay.shown_at), 2)
        self.assertEqual(self.overlay.hide_calls, 1)

    def test_hide_is_idempotent(self):
        self.feedback.hide()
        self.assertEqual(self.overlay.hide_calls, 0)

        self.feedback.show(self.composer.editor)
        self.feedback.hide()
        self.feedback.hide()
        self.assertEqual(self.overlay.hide_calls, 1)
        self.assertFalse(self.feedback.is_showing())
        self.assertIsNone(self.feedback.anchor)


class TestLoadingOverlayAnimation(unittest.TestCase):

    def setUp(self):
        self.overlay = LoadingOverlay()
        self.overlay.window = MagicMock()
        self.overlay.shade = MagicMock()
        self.overlay.canvas = MagicMock()
        self.overlay.window.after.side_effect = ["after#1", "after#2", "after#3"]

    def test_hide_cancels_pending_frame(self):
        self.overlay.show_at(Composer.CONTAINER_RECT)
        self.overlay.hide()

        self.overlay.window.after_cancel.assert_called_once_with("after#1")
        self.assertFalse(self.overlay.is_visible())

    def test_show_again_keeps_one_frame_chain(self):
        self.overlay.show_at(Composer.CONTAINER_RECT)
        self.overlay.hide()
        self.overlay.show_at(Composer.CONTAINER_RECT)
        self.overlay.show_at(Composer.CONTAINER_RECT)

        self.assertEqual(
            [c.args[0] for c in self.overlay.window.after_cancel.call_args_list],
            ["after#1", "after#2"],
        )
        self.assertEqual(self.overlay.window.after.call_count, 3)


if __name__ == "__main__":
    unittest.main()
