"""Tests for loading ``init.py`` on top of the built-in defaults."""

from __future__ import annotations

import json
import os
import tempfile
import textwrap
import unittest
from pathlib import Path
from unittest import mock

from lazybrowser.config.loader import ConfigLoadError, load_config, load_config_from_code
from lazybrowser.config.paths import CONFIG_DIR_ENV, ConfigPaths, discover_config_paths
from lazybrowser.config.types import DEFAULT_PREVIEW_LINES
from lazybrowser.keymap import SequenceResolver


def _paths(root: Path) -> ConfigPaths:
    return ConfigPaths(root=root, entry=root / "init.py")


class DefaultsTests(unittest.TestCase):
    def test_defaults_without_user_script(self) -> None:
        loaded = load_config(None)

        self.assertEqual(loaded.config.config_version, 1)
        self.assertEqual(loaded.config.ui.sort, "name")
        self.assertEqual(loaded.config.ui.panes.preview, 50)
        self.assertEqual(loaded.config.ui.theme.dir_fg, "cyan")
        self.assertTrue(loaded.registry.frozen)
        actions = {mapping.sequence: mapping.action for mapping in loaded.keymaps}
        self.assertEqual(actions["q"], "quit")
        self.assertEqual(actions["sr"], "sort:reverse:toggle")
        self.assertTrue(actions["zh"].startswith("run_script:"))

    def test_missing_entry_file_loads_defaults(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            loaded = load_config(_paths(Path(tmp)))

        self.assertEqual(loaded.config.ui.preview_lines, DEFAULT_PREVIEW_LINES)
        self.assertEqual(loaded.paths, _paths(Path(tmp)))

    def test_disabled_user_config_skips_broken_script(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "init.py").write_text("raise SystemError('nope')\n", encoding="utf-8")

            loaded = load_config(_paths(root), use_user_config=False)

        self.assertEqual(loaded.config.config_version, 1)


class UserScriptTests(unittest.TestCase):
    def test_settings_merge_and_bad_values_are_ignored(self) -> None:
        code = textwrap.dedent(
            """
            lb.config({
                "keys": {"sequence_timeout_ms": 400},
                "ui": {
                    "show_hidden": True,
                    "preview_lines": "many",
                    "panes": {"parent": 10},
                    "sort": "SIZE",
                    "show": "sideways",
                },
            })
            """
        )
        with self.assertLogs("lazybrowser.config", level="WARNING") as logs:
            loaded = load_config_from_code(code)

        ui = loaded.config.ui
        self.assertEqual(loaded.config.keys.sequence_timeout_ms, 400)
        self.assertTrue(ui.show_hidden)
        self.assertEqual(ui.preview_lines, DEFAULT_PREVIEW_LINES)
        self.assertEqual((ui.panes.parent, ui.panes.current), (10, 30))
        self.assertEqual(ui.sort, "size")
        self.assertEqual(ui.show, "none")
        self.assertEqual(len(logs.records), 2)

    def test_map_action_returns_handle_and_binds_it(self) -> None:
        code = textwrap.dedent(
            """
            handle = lb.map_action("gx", "Greet", lambda lb, config: lb.show_message("hi"))
            lb.mapkey("gy", "run_script:%d" % handle)
            """
        )
        loaded = load_config_from_code(code)

        handle = len(loaded.registry) - 1
        actions = {mapping.sequence: mapping.action for mapping in loaded.keymaps}
        self.assertEqual(actions["gx"], f"run_script:{handle}")
        self.assertEqual(actions["gy"], f"run_script:{handle}")
        self.assertEqual(loaded.registry.description(handle), "Greet")

    def test_user_binding_overrides_default(self) -> None:
        loaded = load_config_from_code('lb.mapkey("q", "sort:size")')

        resolver = SequenceResolver(loaded.keymaps)

        self.assertEqual(resolver.action_for("q"), "sort:size")

    def test_registry_is_frozen_after_load(self) -> None:
        loaded = load_config_from_code("")

        with self.assertRaises(RuntimeError):
            loaded.registry.register(lambda lb, config: None)

    def test_unknown_lb_function_fails_load(self) -> None:
        with self.assertRaises(ConfigLoadError) as ctx:
            load_config_from_code("lb.frobnicate()")

        self.assertIsInstance(ctx.exception.cause, AttributeError)
        self.assertIn("lb.frobnicate", str(ctx.exception))

    def test_syntax_error_fails_load(self) -> None:
        with self.assertRaises(ConfigLoadError) as ctx:
            load_config_from_code("lb.config({", filename="init.py")

        self.assertIsInstance(ctx.exception.cause, SyntaxError)

    def test_set_previewer_is_kept(self) -> None:
        loaded = load_config_from_code(
            textwrap.dedent(
                """
                def preview(ctx):
                    if ctx["extension"] == "md":
                        return "glow {path}"
                    return None

                lb.set_previewer(preview)
                """
            )
        )

        self.assertIsNotNone(loaded.previewer)
        self.assertEqual(loaded.previewer({"extension": "md"}), "glow {path}")
        self.assertIsNone(loaded.previewer({"extension": "txt"}))
        self.assertIsNone(load_config_from_code("").previewer)

    def test_set_previewer_rejects_non_function(self) -> None:
        with self.assertRaises(ConfigLoadError) as ctx:
            load_config_from_code("lb.set_previewer('bat {path}')")

        self.assertIsInstance(ctx.exception.cause, TypeError)

    def test_environment_helpers(self) -> None:
        code = textwrap.dedent(
            """
            lb.config({"ui": {"date_format": lb.getenv("LB_TEST_FORMAT", "%d")}})
            assert lb.quote("a b") == "'a b'"
            assert isinstance(lb.get_os_name(), str)
            lb.trace("loaded")
            """
        )
        with mock.patch.dict(os.environ, {"LB_TEST_FORMAT": "%H:%M"}):
            loaded = load_config_from_code(code)

        self.assertEqual(loaded.config.ui.date_format, "%H:%M")

    def test_theme_table_merges_and_none_removes(self) -> None:
        loaded = load_config_from_code('lb.config({"ui": {"theme": {"dir_fg": "red", "exec_fg": None}}})')

        theme = loaded.config.ui.theme
        self.assertEqual(theme.dir_fg, "red")
        self.assertIsNone(theme.exec_fg)
        self.assertEqual(theme.file_fg, "white")

    def test_theme_by_name_uses_themes_directory(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "themes").mkdir()
            theme_file = root / "themes" / "solar.json"
            theme_file.write_text(json.dumps({"theme": {"dir_fg": "#268bd2"}}), encoding="utf-8")
            (root / "init.py").write_text('lb.config({"ui": {"theme": "Solar"}})\n', encoding="utf-8")

            loaded = load_config(_paths(root))

        self.assertEqual(loaded.config.ui.theme_path, theme_file)
        self.assertEqual(loaded.config.ui.theme.dir_fg, "#268bd2")
        self.assertIsNone(loaded.config.ui.theme.file_fg)

class UserScriptFileTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_init_file_runs_as_module(self) -> None:
        (self.root / "init.py").write_text(
            textwrap.dedent(
                """
                import os

                lb.config({"ui": {"preview_lines": 12}})
                lb.mapkey("X", "sort:size")
                lb.trace(__name__ + " " + os.path.basename(__file__))
                """
            ),
            encoding="utf-8",
        )

        with self.assertLogs("lazybrowser.script.trace", level="INFO") as logs:
            loaded = load_config(_paths(self.root))

        self.assertEqual(loaded.config.ui.preview_lines, 12)
        actions = {mapping.sequence: mapping.action for mapping in loaded.keymaps}
        self.assertEqual(actions["X"], "sort:size")
        self.assertIn("__lazybrowser_init__ init.py", logs.output[0])

    def test_broken_init_file_fails_load(self) -> None:
        (self.root / "init.py").write_text("lb.config({\n", encoding="utf-8")

        with self.assertRaises(ConfigLoadError) as ctx:
            load_config(_paths(self.root))

        self.assertIsInstance(ctx.exception.cause, SyntaxError)
        self.assertIn("init.py", str(ctx.exception))



class DiscoverConfigPathsTests(unittest.TestCase):
    def test_environment_override(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with mock.patch.dict(os.environ, {CONFIG_DIR_ENV: tmp}):
                paths = discover_config_paths()

        self.assertEqual(paths.root, Path(tmp))
        self.assertEqual(paths.entry, Path(tmp) / "init.py")
        self.assertEqual(paths.themes_dir, Path(tmp) / "themes")

    def test_explicit_directory_wins(self) -> None:
        with mock.patch.dict(os.environ, {CONFIG_DIR_ENV: "/ignored"}):
            paths = discover_config_paths(Path("/explicit"))

        self.assertEqual(paths.root, Path("/explicit"))


if __name__ == "__main__":
    unittest.main()
