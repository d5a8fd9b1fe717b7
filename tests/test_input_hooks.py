"""Unit tests for input_hooks.py module."""
from __future__ import annotations

import unittest
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from draftGate.input_hooks import (
    WM_LBUTTONDOWN,
    WM_LBUTTONUP,
    KeyboardChannel,
    PointerChannel,
    is_shortcut_pressed,
    normalize_shortcut,
)


class TestNormalizeShortcut(unittest.TestCase):

    def test_canonical_forms(self):
        cases = {
            "Ctrl+Enter": "ctrl+enter",
            " ctrl + return ": "ctrl+enter",
            "cmd+enter": "ctrl+enter",
            "command+return": "ctrl+enter",
            "shift+ctrl+enter": "ctrl+shift+enter",
            "enter": "enter",
            "alt+s": "alt+s",
            "ctrl+f5": "ctrl+f5",
        }
        for raw, expected in cases.items():
            with self.subTest(raw=raw):
                self.assertEqual(normalize_shortcut(raw), expected)

    def test_unusable_shortcuts(self):
        for raw in (None, "", "+", "ctrl", "ctrl+shift", "ctrl+pagedown"):
            with self.subTest(raw=raw):
                self.assertIsNone(normalize_shortcut(raw))


class TestIsShortcutPressed(unittest.TestCase):

    @staticmethod
    def pressed(*names):
        held = set(names)
        return lambda name: name in held

    def test_modifier_held(self):
        self.assertTrue(is_shortcut_pressed("enter", "ctrl+enter", self.pressed("left ctrl")))
        self.assertTrue(is_shortcut_pressed("Enter", "ctrl+enter", self.pressed("right ctrl")))

    def test_modifier_missing(self):
        self.assertFalse(is_shortcut_pressed("enter", "ctrl+enter", self.pressed()))
        self.assertFalse(is_shortcut_pressed("enter", "ctrl+shift+enter", self.pressed("left ctrl")))

    def test_other_key(self):
        self.assertFalse(is_shortcut_pressed("a", "ctrl+enter", self.pressed("left ctrl")))
        self.assertFalse(is_shortcut_pressed("enter", "", self.pressed("left ctrl")))

    def test_bare_key(self):
        self.assertTrue(is_shortcut_pressed("enter", "enter", self.pressed()))


class TestKeyboardChannel(unittest.TestCase):

    def setUp(self):
        self.on_shortcut = MagicMock(return_value=True)
        self.channel = KeyboardChannel("Ctrl+Return", self.on_shortcut)

    def test_shortcut_is_normalized(self):
        self.assertEqual(self.channel.shortcut, "ctrl+enter")
        self.assertEqual(KeyboardChannel("nonsense+", self.on_shortcut).shortcut, "ctrl+enter")

    def test_key_up_passes(self):
        self.assertTrue(self.channel._on_key_event(SimpleNamespace(event_type="up", name="enter")))
        self.on_shortcut.assert_not_called()

    @patch("draftGate.input_hooks.is_shortcut_pressed", return_value=True)
    def test_swallowed_when_handler_consumes(self, _pressed):
        self.assertFalse(self.channel._on_key_event(SimpleNamespace(event_type="down", name="enter")))
        self.on_shortcut.return_value = False
        self.assertTrue(self.channel._on_key_event(SimpleNamespace(event_type="down", name="enter")))

    @patch("draftGate.input_hooks.is_shortcut_pressed", return_value=False)
    def test_other_keys_pass(self, _pressed):
        self.assertTrue(self.channel._on_key_event(SimpleNamespace(event_type="down", name="a")))
        self.on_shortcut.assert_not_called()

    @patch("draftGate.input_hooks.is_shortcut_pressed", return_value=True)
    def test_handler_crash_lets_key_through(self, _pressed):
        self.on_shortcut.side_effect = RuntimeError("boom")
        self.assertTrue(self.channel._on_key_event(SimpleNamespace(event_type="down", name="enter")))

    @patch("draftGate.input_hooks.keyboard")
    def test_start_installs_suppressing_hook(self, keyboard):
        self.channel.start()
        keyboard.hook.assert_called_once_with(self.channel._on_key_event, suppress=True)
        self.channel.stop()
        keyboard.unhook.assert_called_once()

    @patch("draftGate.input_hooks.keyboard")
    def test_send_shortcut(self, keyboard):
        self.channel.send_shortcut()
        keyboard.send.assert_called_once_with("ctrl+enter")


class TestPointerChannel(unittest.TestCase):

    def test_consumed_press_swallows_down_and_up(self):
        channel = PointerChannel(lambda x, y: True)
        self.assertTrue(channel.decide(WM_LBUTTONDOWN, 10, 10))
        self.assertTrue(channel.decide(WM_LBUTTONUP, 10, 10))
        self.assertFalse(channel.decide(WM_LBUTTONUP, 10, 10))

    def test_ignored_press_passes(self):
        channel = PointerChannel(lambda x, y: False)
        self.assertFalse(channel.decide(WM_LBUTTONDOWN, 10, 10))
        self.assertFalse(channel.decide(WM_LBUTTONUP, 10, 10))

    def test_coordinates_are_forwarded(self):
        on_press = MagicMock(return_value=False)
        PointerChannel(on_press).decide(WM_LBUTTONDOWN, 515, 615)
        on_press.assert_called_once_with(515, 615)

    def test_other_messages_pass(self):
        on_press = MagicMock(return_value=True)
        channel = PointerChannel(on_press)
        self.assertFalse(channel.decide(0x0200, 1, 1))  # WM_MOUSEMOVE
        on_press.assert_not_called()

    def test_handler_crash_lets_click_through(self):
        def crash(x, y):
            raise RuntimeError("boom")

        channel = PointerChannel(crash)
        self.assertFalse(channel.decide(WM_LBUTTONDOWN, 1, 1))
        self.assertFalse(channel.decide(WM_LBUTTONUP, 1, 1))

    def test_filter_suppresses_through_listener(self):
        channel = PointerChannel(lambda x, y: True)
        channel._listener = MagicMock()
        data = SimpleNamespace(pt=SimpleNamespace(x=5, y=6))
        channel._filter(WM_LBUTTONDOWN, data)
        channel._listener.suppress_event.assert_called_once()


if __name__ == "__main__":
    unittest.main()
