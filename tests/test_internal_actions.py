"""Tests for built-in action verbs."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from lazybrowser.actions.internal import (
    GoBottom,
    GoTop,
    Quit,
    SetDisplayMode,
    SetInfo,
    Sort,
    ToggleSortReverse,
    execute_internal_action,
    parse_internal_action,
)
from lazybrowser.app import App
from lazybrowser.config.loader import load_config
from lazybrowser.enums import DisplayMode, InfoMode, SortKey


class ParseInternalActionTests(unittest.TestCase):
    def test_grammar(self) -> None:
        cases = {
            "quit": Quit(),
            "Q": Quit(),
            " SORT:Size ": Sort(SortKey.SIZE),
            "sort:created": Sort(SortKey.CTIME),
            "sort:reverse:toggle": ToggleSortReverse(),
            "sort:rev:toggle": ToggleSortReverse(),
            "show:size": SetInfo(InfoMode.SIZE),
            "show:friendly": SetDisplayMode(DisplayMode.FRIENDLY),
            "display:abs": SetDisplayMode(DisplayMode.ABSOLUTE),
            "nav:top": GoTop(),
            "gg": GoTop(),
            "g$": GoBottom(),
            "bottom": GoBottom(),
        }
        for text, expected in cases.items():
            with self.subTest(text=text):
                self.assertEqual(parse_internal_action(text), expected)

    def test_unknown_actions(self) -> None:
        for text in ("", "sort:bogus", "show:", "display:loud", "run", "nav:middle"):
            with self.subTest(text=text):
                self.assertIsNone(parse_internal_action(text))

    def test_extra_arguments_are_ignored(self) -> None:
        self.assertEqual(parse_internal_action("sort:size:x"), Sort(SortKey.SIZE))
        self.assertEqual(parse_internal_action("display:abs:x"), SetDisplayMode(DisplayMode.ABSOLUTE))
        self.assertEqual(parse_internal_action("show:size:"), SetInfo(InfoMode.SIZE))


class ExecuteInternalActionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for name, size in (("a.txt", 1), ("b.txt", 100), ("c.txt", 10)):
            (self.root / name).write_text("x" * size, encoding="utf-8")
        (self.root / "sub").mkdir()
        self.app = App(load_config(None), self.root)
        self.app.refresh_lists()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _names(self) -> list[str]:
        return [entry.name for entry in self.app.current_entries]

    def test_sort_keeps_selected_entry(self) -> None:
        self.app.select_index(2)
        self.assertEqual(self.app.selected_entry().name, "b.txt")

        execute_internal_action(self.app, Sort(SortKey.SIZE))

        self.assertEqual(self._names(), ["sub", "a.txt", "c.txt", "b.txt"])
        self.assertEqual(self.app.selected_entry().name, "b.txt")
        self.assertTrue(self.app.force_full_redraw)

    def test_reverse_keeps_directories_first(self) -> None:
        execute_internal_action(self.app, ToggleSortReverse())

        self.assertEqual(self._names(), ["sub", "c.txt", "b.txt", "a.txt"])

    def test_display_mode_enables_modified_column(self) -> None:
        execute_internal_action(self.app, SetDisplayMode(DisplayMode.FRIENDLY))

        self.assertIs(self.app.display_mode, DisplayMode.FRIENDLY)
        self.assertIs(self.app.info_mode, InfoMode.MODIFIED)

    def test_display_mode_keeps_existing_column(self) -> None:
        self.app.info_mode = InfoMode.SIZE

        execute_internal_action(self.app, SetDisplayMode(DisplayMode.FRIENDLY))

        self.assertIs(self.app.info_mode, InfoMode.SIZE)

    def test_navigation(self) -> None:
        execute_internal_action(self.app, GoBottom())
        self.assertEqual(self.app.selected_index, 3)

        execute_internal_action(self.app, GoTop())
        self.assertEqual(self.app.selected_index, 0)

    def test_quit(self) -> None:
        execute_internal_action(self.app, Quit())

        self.assertTrue(self.app.should_quit)


if __name__ == "__main__":
    unittest.main()
