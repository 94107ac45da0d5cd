"""Tests for applying script results to the live app.

Config overlays do the least work their changed fields need: a relist
ends processing, a preview cap change only refreshes the preview.
"""

from __future__ import annotations

import dataclasses
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from lazybrowser.actions.apply import apply_config_overlay, apply_effects
from lazybrowser.actions.effects import (
    ClipboardCommand,
    ConfirmCommand,
    Effects,
    FindCommand,
    MarksCommand,
    OverlayToggle,
    PromptCommand,
    SelectCommand,
)
from lazybrowser.app import App
from lazybrowser.config.data import overlay_from_app
from lazybrowser.config.loader import load_config
from lazybrowser.config.types import UiPanes
from lazybrowser.enums import SortKey
from lazybrowser.overlays import (
    ConfirmOverlay,
    MessagesOverlay,
    OutputOverlay,
    PromptKind,
    PromptOverlay,
    SearchOverlay,
)


class ApplyConfigOverlayTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for name in ("a.txt", "b.txt", ".hidden"):
            (self.root / name).write_text(f"{name}\n", encoding="utf-8")
        self.app = App(load_config(None), self.root)
        self.app.refresh_lists()
        self.app.select_index(1)
        self.app.force_full_redraw = False

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_show_hidden_relists_once_and_keeps_selection_by_name(self) -> None:
        overlay = dataclasses.replace(overlay_from_app(self.app), show_hidden=True)

        with mock.patch.object(self.app, "refresh_lists", wraps=self.app.refresh_lists) as relist:
            with mock.patch.object(self.app, "refresh_preview", wraps=self.app.refresh_preview) as preview:
                apply_config_overlay(self.app, overlay)

        self.assertEqual(relist.call_count, 1)
        self.assertEqual(preview.call_count, 1)
        self.assertTrue(self.app.force_full_redraw)
        self.assertTrue(self.app.config.ui.show_hidden)
        self.assertEqual([e.name for e in self.app.current_entries], [".hidden", "a.txt", "b.txt"])
        self.assertEqual(self.app.selected_entry().name, "b.txt")

    def test_preview_lines_refreshes_preview_only(self) -> None:
        overlay = dataclasses.replace(overlay_from_app(self.app), preview_lines=5)

        with mock.patch.object(self.app, "refresh_lists", wraps=self.app.refresh_lists) as relist:
            with mock.patch.object(self.app, "refresh_preview", wraps=self.app.refresh_preview) as preview:
                apply_config_overlay(self.app, overlay)

        relist.assert_not_called()
        preview.assert_called_once_with()
        self.assertFalse(self.app.force_full_redraw)
        self.assertEqual(self.app.config.ui.preview_lines, 5)

    def test_unchanged_overlay_does_nothing(self) -> None:
        with mock.patch.object(self.app, "refresh_lists") as relist:
            with mock.patch.object(self.app, "refresh_preview") as preview:
                apply_config_overlay(self.app, overlay_from_app(self.app))

        relist.assert_not_called()
        preview.assert_not_called()
        self.assertFalse(self.app.force_full_redraw)

    def test_pane_change_forces_redraw_without_relist(self) -> None:
        overlay = dataclasses.replace(overlay_from_app(self.app), panes=UiPanes(10, 40, 50))

        with mock.patch.object(self.app, "refresh_lists") as relist:
            apply_config_overlay(self.app, overlay)

        relist.assert_not_called()
        self.assertTrue(self.app.force_full_redraw)
        self.assertEqual(self.app.config.ui.panes, UiPanes(10, 40, 50))

    def test_sort_change_updates_live_state_and_mirror(self) -> None:
        overlay = dataclasses.replace(overlay_from_app(self.app), sort_key=SortKey.SIZE, sort_reverse=True)

        apply_config_overlay(self.app, overlay)

        self.assertIs(self.app.sort_key, SortKey.SIZE)
        self.assertTrue(self.app.sort_reverse)
        self.assertEqual(self.app.config.ui.sort, "size")
        self.assertEqual(self.app.selected_entry().name, "b.txt")


class ApplyEffectsTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for name in ("a.txt", "b.txt", "c.txt"):
            (self.root / name).write_text(name, encoding="utf-8")
        self.app = App(load_config(None), self.root)
        self.app.refresh_lists()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_selection_is_clamped(self) -> None:
        apply_effects(self.app, Effects(selection=99))

        self.assertEqual(self.app.selected_index, 2)

    def test_unchanged_selection_skips_preview_refresh(self) -> None:
        with mock.patch.object(self.app, "refresh_preview") as preview:
            apply_effects(self.app, Effects(selection=0))

        preview.assert_not_called()

    def test_error_text_adds_message_and_opens_messages(self) -> None:
        apply_effects(self.app, Effects(error_text="broken"))

        self.assertEqual(self.app.messages[-1], "Error: broken")
        self.assertIsInstance(self.app.overlay, MessagesOverlay)

    def test_messages_toggle_closes_open_messages(self) -> None:
        self.app.open_overlay(MessagesOverlay())

        apply_effects(self.app, Effects(messages=OverlayToggle.TOGGLE))

        self.assertIsNone(self.app.overlay)

    def test_output_opens_output_overlay(self) -> None:
        apply_effects(self.app, Effects(output=("$ ls", "one\ntwo\n")))

        self.assertIsInstance(self.app.overlay, OutputOverlay)
        self.assertEqual(self.app.overlay.title, "$ ls")
        self.assertEqual(self.app.overlay.lines, ["one", "two"])

    def test_output_toggle_reopens_last_output(self) -> None:
        self.app.display_output("Out", "x")
        self.app.close_overlay()

        apply_effects(self.app, Effects(output_overlay=OverlayToggle.TOGGLE))

        self.assertEqual(self.app.overlay, OutputOverlay(title="Out", lines=["x"]))

    def test_clear_runs_after_message(self) -> None:
        apply_effects(self.app, Effects(message_text="hi", clear_messages=True))

        self.assertEqual(self.app.messages, [])

    def test_prompt_commands_open_prompts(self) -> None:
        apply_effects(self.app, Effects(prompt=PromptCommand.RENAME_ENTRY))

        self.assertIsInstance(self.app.overlay, PromptOverlay)
        self.assertIs(self.app.overlay.kind, PromptKind.RENAME_ENTRY)
        self.assertEqual(self.app.overlay.text, "a.txt")

    def test_confirm_delete_opens_confirmation(self) -> None:
        apply_effects(self.app, Effects(confirm=ConfirmCommand.DELETE_SELECTED))

        self.assertIsInstance(self.app.overlay, ConfirmOverlay)
        self.assertTrue((self.root / "a.txt").exists())

    def test_confirm_delete_without_confirmation_deletes(self) -> None:
        self.app.config.ui.confirm_delete = False

        apply_effects(self.app, Effects(confirm=ConfirmCommand.DELETE_SELECTED))

        self.assertFalse((self.root / "a.txt").exists())
        self.assertEqual(self.app.messages[-1], "Deleted")

    def test_select_and_clipboard_commands(self) -> None:
        apply_effects(self.app, Effects(select=SelectCommand.TOGGLE_CURRENT))
        apply_effects(self.app, Effects(clipboard=ClipboardCommand.COPY_ARM))

        self.assertEqual(self.app.marked, {self.root.absolute() / "a.txt"})
        self.assertFalse(self.app.clipboard.move)

        apply_effects(self.app, Effects(select=SelectCommand.CLEAR_ALL))
        self.assertEqual(self.app.marked, set())

    def test_redraw_and_quit(self) -> None:
        self.app.force_full_redraw = False

        apply_effects(self.app, Effects(redraw=True, quit=True))

        self.assertTrue(self.app.force_full_redraw)
        self.assertTrue(self.app.should_quit)

    def test_find_commands(self) -> None:
        apply_effects(self.app, Effects(find=FindCommand.OPEN))
        self.assertIsInstance(self.app.overlay, SearchOverlay)
        self.app.cancel_search()

        self.app.search_query = "TXT"
        apply_effects(self.app, Effects(find=FindCommand.NEXT))
        self.assertEqual(self.app.selected_index, 1)
        apply_effects(self.app, Effects(find=FindCommand.PREV))
        self.assertEqual(self.app.selected_index, 0)
        apply_effects(self.app, Effects(find=FindCommand.PREV))
        self.assertEqual(self.app.selected_index, 2)

    def test_select_paths_adds_to_marks(self) -> None:
        target = self.root.absolute() / "b.txt"

        apply_effects(self.app, Effects(select_paths=[str(target)]))

        self.assertEqual(self.app.marked, {target})

    def test_marks_commands_wait_for_a_letter(self) -> None:
        apply_effects(self.app, Effects(marks=MarksCommand.ADD_WAIT))
        self.assertTrue(self.app.pending_mark)
        self.assertFalse(self.app.pending_goto)

        apply_effects(self.app, Effects(marks=MarksCommand.GOTO_WAIT))
        self.assertTrue(self.app.pending_goto)
        self.assertFalse(self.app.pending_mark)
        self.assertEqual(self.app.messages[-1], "Goto: type a letter to jump to its mark")


if __name__ == "__main__":
    unittest.main()
