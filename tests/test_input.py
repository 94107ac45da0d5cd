"""Regression tests for raw-key decoding.

Covers ESC timing, arrow/meta sequences, and control-key token mapping.
These tests protect interactive input handling in raw terminal mode.
"""

import os
import time
import unittest

from lazybrowser import input as input_mod


class ReadKeyRegressionTests(unittest.TestCase):
    def setUp(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def tearDown(self) -> None:
        input_mod._PENDING_BYTES.clear()

    def _read_all(self, data: bytes, count: int) -> list[str]:
        read_fd, write_fd = os.pipe()
        try:
            os.write(write_fd, data)
            return [input_mod.read_key(read_fd, timeout_ms=20) for _ in range(count)]
        finally:
            os.close(read_fd)
            os.close(write_fd)

    def test_single_escape_returns_esc_without_second_keypress(self) -> None:
        started = time.monotonic()
        (key,) = self._read_all(b"\x1b", 1)
        elapsed = time.monotonic() - started

        self.assertEqual(key, "ESC")
        self.assertLess(elapsed, 0.2)

    def test_arrow_sequences(self) -> None:
        self.assertEqual(self._read_all(b"\x1b[A\x1b[B\x1bOC\x1b[D", 4), ["UP", "DOWN", "RIGHT", "LEFT"])

    def test_alt_key_becomes_meta_token(self) -> None:
        self.assertEqual(self._read_all(b"\x1bx", 1), ["<M-x>"])

    def test_double_escape_yields_two_escapes(self) -> None:
        self.assertEqual(self._read_all(b"\x1b\x1b", 2), ["ESC", "ESC"])

    def test_escape_before_control_byte_keeps_control(self) -> None:
        self.assertEqual(self._read_all(b"\x1b\r", 2), ["ESC", "ENTER"])

    def test_unknown_csi_sequence_is_swallowed(self) -> None:
        self.assertEqual(self._read_all(b"\x1b[15~j", 2), ["ESC", "j"])

    def test_control_keys(self) -> None:
        keys = self._read_all(b"\x0b\r\t\x7f\x08", 5)

        self.assertEqual(keys, ["<C-k>", "ENTER", "TAB", "BACKSPACE", "BACKSPACE"])

    def test_utf8_character_is_one_token(self) -> None:
        self.assertEqual(self._read_all("é€".encode("utf-8"), 2), ["é", "€"])

    def test_timeout_returns_empty_string(self) -> None:
        read_fd, write_fd = os.pipe()
        try:
            key = input_mod.read_key(read_fd, timeout_ms=10)
        finally:
            os.close(read_fd)
            os.close(write_fd)

        self.assertEqual(key, "")

    def test_named_keys(self) -> None:
        self.assertTrue(input_mod.is_named_key("ENTER"))
        self.assertFalse(input_mod.is_named_key("e"))
        self.assertFalse(input_mod.is_named_key("<C-x>"))


if __name__ == "__main__":
    unittest.main()
