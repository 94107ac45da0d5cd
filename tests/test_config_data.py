"""Tests for script snapshots and config-overlay validation."""

from __future__ import annotations

import copy
import tempfile
import unittest
from pathlib import Path

from lazybrowser.actions.bridge import merge_tables
from lazybrowser.app import App
from lazybrowser.config.data import (
    ConfigValidationError,
    build_snapshot,
    overlay_from_app,
    parse_config_overlay,
)
from lazybrowser.config.loader import load_config
from lazybrowser.config.types import DEFAULT_PREVIEW_LINES
from lazybrowser.enums import DisplayMode, InfoMode, SortKey


def _make_app(root: Path) -> App:
    app = App(load_config(None), root)
    app.refresh_lists()
    return app


class SnapshotTests(unittest.TestCase):
    def test_snapshot_describes_selection_context(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "notes.md").write_text("hi\n", encoding="utf-8")
            app = _make_app(root)

            snapshot = build_snapshot(app)

        context = snapshot["context"]
        self.assertEqual(context["cwd"], str(root.absolute()))
        self.assertEqual(context["selected_index"], 0)
        self.assertEqual(context["current_len"], 1)
        self.assertEqual(context["current_file_name"], "notes.md")
        self.assertEqual(context["current_file_extension"], "md")
        self.assertIn("current_file_mtime", context)
        self.assertEqual(snapshot["ui"]["sort"], "name")
        self.assertEqual(snapshot["ui"]["panes"], {"parent": 20, "current": 30, "preview": 50})

    def test_empty_directory_context_points_at_cwd(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            app = _make_app(Path(tmp))
            context = build_snapshot(app)["context"]

        self.assertIsNone(context["selected_index"])
        self.assertEqual(context["current_len"], 0)
        self.assertEqual(context["current_file"], context["cwd"])

    def test_merge_with_empty_overlay_is_identity(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            snapshot = build_snapshot(_make_app(Path(tmp)))

        self.assertEqual(merge_tables(snapshot, {}), snapshot)

    def test_merge_changes_only_the_named_leaf(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            snapshot = build_snapshot(_make_app(Path(tmp)))
        original = copy.deepcopy(snapshot)

        merged = merge_tables(snapshot, {"ui": {"show_hidden": True}})

        self.assertTrue(merged["ui"]["show_hidden"])
        merged["ui"]["show_hidden"] = snapshot["ui"]["show_hidden"]
        self.assertEqual(merged, snapshot)
        self.assertEqual(snapshot, original)

    def test_merge_does_not_share_nested_tables(self) -> None:
        base = {"ui": {"panes": {"parent": 1}}}

        merged = merge_tables(base, {})
        merged["ui"]["panes"]["parent"] = 9

        self.assertEqual(base["ui"]["panes"]["parent"], 1)


class ParseOverlayTests(unittest.TestCase):
    def _candidate(self) -> dict:
        with tempfile.TemporaryDirectory() as tmp:
            return build_snapshot(_make_app(Path(tmp)))

    def test_missing_keys_table_is_rejected(self) -> None:
        candidate = self._candidate()
        del candidate["keys"]

        with self.assertRaises(ConfigValidationError) as ctx:
            parse_config_overlay(candidate)

        self.assertIn("keys", str(ctx.exception))

    def test_missing_nested_tables_are_rejected(self) -> None:
        for path in (("ui",), ("ui", "panes"), ("ui", "row")):
            candidate = self._candidate()
            parent = candidate
            for key in path[:-1]:
                parent = parent[key]
            del parent[path[-1]]
            with self.subTest(path=path):
                with self.assertRaises(ConfigValidationError) as ctx:
                    parse_config_overlay(candidate)
                self.assertIn(".".join(path), str(ctx.exception))

    def test_unknown_display_mode_is_rejected(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["display_mode"] = "bogus"

        with self.assertRaises(ConfigValidationError):
            parse_config_overlay(candidate)

    def test_unknown_sort_is_rejected(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["sort"] = 3

        with self.assertRaises(ConfigValidationError):
            parse_config_overlay(candidate)

    def test_wrong_typed_scalar_keeps_default(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["preview_lines"] = "oops"

        overlay = parse_config_overlay(candidate)

        self.assertEqual(overlay.preview_lines, DEFAULT_PREVIEW_LINES)

    def test_wrong_typed_scalar_keeps_current_value(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            app = _make_app(Path(tmp))
            app.config.ui.preview_lines = 7
            candidate = build_snapshot(app)
            current = overlay_from_app(app)
        candidate["ui"]["preview_lines"] = -3
        candidate["ui"]["show_hidden"] = "yes"

        overlay = parse_config_overlay(candidate, current)

        self.assertEqual(overlay.preview_lines, 7)
        self.assertFalse(overlay.show_hidden)

    def test_integral_float_is_accepted(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["panes"]["parent"] = 25.0

        self.assertEqual(parse_config_overlay(candidate).panes.parent, 25)

    def test_enum_values_parse(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["display_mode"] = "friendly"
        candidate["ui"]["sort"] = "Size"
        candidate["ui"]["show"] = "modified"

        overlay = parse_config_overlay(candidate)

        self.assertIs(overlay.display_mode, DisplayMode.FRIENDLY)
        self.assertIs(overlay.sort_key, SortKey.SIZE)
        self.assertIs(overlay.show_field, InfoMode.MODIFIED)

    def test_unknown_show_value_is_ignored(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["show"] = "nonsense"

        overlay = parse_config_overlay(candidate)

        self.assertIs(overlay.show_field, InfoMode.NONE)

    def test_explicit_none_clears_optional_fields(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["date_format"] = None
        candidate["ui"]["theme"] = None

        overlay = parse_config_overlay(candidate)

        self.assertIsNone(overlay.date_format)
        self.assertIsNone(overlay.theme)

    def test_row_widths_table_parses(self) -> None:
        candidate = self._candidate()
        candidate["ui"]["row_widths"] = {"icon": 2, "right": 10}

        overlay = parse_config_overlay(candidate)

        self.assertEqual(overlay.row_widths.icon, 2)
        self.assertEqual(overlay.row_widths.right, 10)
        self.assertEqual(overlay.row_widths.left, 0)


if __name__ == "__main__":
    unittest.main()
