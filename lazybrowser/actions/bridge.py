"""Bridge between the app and configuration-script callbacks.

One call runs in five steps: build a values-only snapshot, hand the
callback a helper object bound to that snapshot, merge whatever dict the
callback returns onto the snapshot, then read transient ``Effects`` and a
validated ``ConfigOverlay`` from the merged tree.

Callbacks never see live objects. Helpers only write tags into the
snapshot; the app acts on them after the callback has returned.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from .. import process
from ..config.data import (
    ConfigOverlay,
    ConfigValidationError,
    build_snapshot,
    overlay_from_app,
    parse_config_overlay,
)
from ..config.theme import ThemeError, find_theme_file, load_theme_from_file
from .effects import Effects, parse_effects

if TYPE_CHECKING:
    from ..app import App
    from ..terminal import TerminalController

logger = logging.getLogger("lazybrowser.script")
trace_logger = logging.getLogger("lazybrowser.script.trace")


class ScriptError(Exception):
    """A script callback raised; wraps the original exception."""

    def __init__(self, index: int, cause: BaseException) -> None:
        super().__init__(f"script {index} failed: {cause}")
        self.index = index
        self.cause = cause


def merge_tables(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` with ``overlay`` merged on top; neither input changes.

    When both sides hold a mapping for a key the two are merged recursively;
    otherwise the overlay value replaces the base value.
    """
    merged = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge_tables(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ScriptHelpers:
    """The ``lb`` object passed to callbacks as their first argument.

    It holds the snapshot plus a few plain values (working directory,
    themes directory, marked paths, terminal); never the ``App`` itself.
    """

    def __init__(
        self,
        snapshot: dict[str, Any],
        *,
        cwd: Path,
        themes_dir: Path | None = None,
        selected_paths: Iterable[Path] = (),
        terminal: TerminalController | None = None,
    ) -> None:
        self._snapshot = snapshot
        self._cwd = cwd
        self._themes_dir = themes_dir
        self._selected_paths = sorted(str(path) for path in selected_paths)
        self._terminal = terminal

    @classmethod
    def for_app(cls, app: App, snapshot: dict[str, Any]) -> ScriptHelpers:
        return cls(
            snapshot,
            cwd=app.cwd,
            themes_dir=app.themes_dir,
            selected_paths=app.marked,
            terminal=app.terminal,
        )

    def _context(self) -> dict[str, Any]:
        return self._snapshot.setdefault("context", {})

    def _ui(self) -> dict[str, Any]:
        return self._snapshot.setdefault("ui", {})

    # Selection and overlays.

    def select_item(self, index: int) -> None:
        self._context()["selected_index"] = max(0, int(index))

    def select_last_item(self) -> None:
        length = self._context().get("current_len", 0)
        if isinstance(length, int) and length > 0:
            self._context()["selected_index"] = length - 1

    def quit(self) -> None:
        self._snapshot["quit"] = True

    def force_redraw(self) -> None:
        self._snapshot["redraw"] = True

    def display_output(self, body: object, title: str | None = None) -> None:
        self._snapshot["output_text"] = str(body)
        if title is not None:
            self._snapshot["output_title"] = str(title)
        self._snapshot["output"] = "show"

    def show_message(self, text: object) -> None:
        self._snapshot["message_text"] = str(text)

    def show_error(self, text: object) -> None:
        self._snapshot["error_text"] = str(text)
        self._snapshot["messages"] = "show"

    def show_messages(self) -> None:
        self._snapshot["messages"] = "show"

    def clear_messages(self) -> None:
        self._snapshot["clear_messages"] = True

    def open_theme_picker(self) -> None:
        self._snapshot["theme_picker"] = "open"

    def set_theme_by_name(self, name: str) -> None:
        """Resolve ``name`` in the themes directory and stage it in ``ui``."""
        themes_dir = self._themes_dir
        path = find_theme_file(themes_dir, str(name)) if themes_dir is not None else None
        if path is None:
            self.show_error(f"Theme '{name}' not found")
            return
        try:
            theme = load_theme_from_file(path)
        except ThemeError as exc:
            self.show_error(str(exc))
            return
        self._ui()["theme"] = theme.as_dict()
        self._ui()["theme_path"] = str(path)

    # Entries, marks and clipboard.

    def add_entry(self) -> None:
        self._snapshot["prompt"] = "add_entry"

    def rename_item(self) -> None:
        self._snapshot["prompt"] = "rename_entry"

    def delete_selected(self) -> None:
        self._snapshot["confirm"] = "delete_selected"

    def toggle_select(self) -> None:
        self._snapshot["select"] = "toggle_current"

    def clear_selection(self) -> None:
        self._snapshot["select"] = "clear_all"

    def copy_selection(self) -> None:
        self._snapshot["clipboard"] = "copy_arm"

    def move_selection(self) -> None:
        self._snapshot["clipboard"] = "move_arm"

    def paste_clipboard(self) -> None:
        self._snapshot["clipboard"] = "paste"

    def clear_clipboard(self) -> None:
        self._snapshot["clipboard"] = "clear"

    def get_selected_paths(self) -> list[str]:
        return list(self._selected_paths)

    def select_paths(self, paths: Iterable[object]) -> None:
        """Add ``paths`` to the marked set once the callback returns."""
        self._snapshot["select_paths"] = [str(path) for path in paths]

    # Find and directory marks.

    def open_search(self) -> None:
        self._snapshot["find"] = "open"

    def search_next(self) -> None:
        self._snapshot["find"] = "next"

    def search_prev(self) -> None:
        self._snapshot["find"] = "prev"

    def add_mark(self) -> None:
        """Wait for a key, then remember the current directory under it."""
        self._snapshot["marks"] = "add_wait"

    def goto_mark(self) -> None:
        self._snapshot["marks"] = "goto_wait"

    # Environment and processes.

    def quote(self, value: str) -> str:
        return process.quote(value)

    def get_os_name(self) -> str:
        return process.os_name()

    def getenv(self, name: str, default: str | None = None) -> str | None:
        return process.getenv(name, default)

    def trace(self, text: object) -> None:
        trace_logger.info("%s", text)

    def _command_env(self) -> dict[str, str]:
        context = self._context()
        return {
            "LAZYBROWSER_PATH": str(context.get("current_file", "")),
            "LAZYBROWSER_DIR": str(context.get("current_file_dir", "")),
            "LAZYBROWSER_NAME": str(context.get("current_file_name", "")),
        }

    def os_run(self, cmd: str) -> str:
        """Run ``cmd`` and stage its combined output; returns that output."""
        title = f"$ {cmd}"
        logger.debug("os_run cwd=%s cmd=%r", self._cwd, cmd)
        try:
            result = process.run_captured(cmd, self._cwd, self._command_env())
        except OSError as exc:
            text = f"<error: {exc}>"
            self._snapshot["output_text"] = text
            self._snapshot["output_title"] = title
            return text
        if result.text or result.returncode != 0:
            text = result.text
            if result.returncode != 0:
                text = f"{text}\n[exit {result.returncode}]" if text else f"[exit {result.returncode}]"
            self._snapshot["output_text"] = text
            self._snapshot["output_title"] = title
        else:
            self._snapshot["message_text"] = title
        return result.text

    def os_run_interactive(self, cmd: str) -> int | None:
        """Run ``cmd`` on the real terminal; TUI mode is restored afterwards."""
        terminal = self._terminal
        suspend = terminal.suspend_for_child_process if terminal is not None else (lambda: None)
        restore = terminal.restore if terminal is not None else (lambda: None)
        logger.debug("os_run_interactive cwd=%s cmd=%r", self._cwd, cmd)
        try:
            code = process.run_interactive(cmd, self._cwd, suspend, restore, self._command_env())
        except OSError as exc:
            self._snapshot["output_text"] = f"<error: {exc}>"
            self._snapshot["output_title"] = f"$ {cmd}"
            code = None
        else:
            if code != 0:
                self._snapshot["output_text"] = f"[exit {code}]"
                self._snapshot["output_title"] = f"$ {cmd}"
        self._snapshot["redraw"] = True
        return code


def call_script_action(app: App, index: int) -> tuple[Effects, ConfigOverlay | None]:
    """Invoke script ``index`` and split its result into effects and overlay.

    Raises ``ScriptError`` when the callback raises. A rejected overlay is
    logged and returned as ``None``; effects are kept either way.
    """
    callback = app.registry.get(index)
    if callback is None:
        return Effects(), None

    snapshot = build_snapshot(app)
    helpers = ScriptHelpers.for_app(app, snapshot)
    try:
        returned = callback(helpers, snapshot)
    except Exception as exc:
        logger.exception("script %d raised", index)
        raise ScriptError(index, exc) from exc

    candidate = merge_tables(snapshot, returned) if isinstance(returned, Mapping) else snapshot
    effects = parse_effects(candidate, snapshot)

    overlay: ConfigOverlay | None
    try:
        overlay = parse_config_overlay(candidate, overlay_from_app(app))
    except ConfigValidationError as exc:
        logger.warning("script %d: config overlay rejected: %s", index, exc)
        overlay = None
    return effects, overlay
