"""Live application state and the operations that mutate it.

``App`` owns the loaded configuration, the directory listings, selection,
marked entries, clipboard, find state, directory marks, recent messages and
the single active UI overlay. The runtime loop, the action dispatcher and
the overlay applier all work through the methods here.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from . import fs_ops
from .config.loader import LoadedConfig
from .config.paths import ConfigPaths
from .config.theme import ThemeError, list_theme_files, load_theme_from_file
from .enums import (
    DisplayMode,
    InfoMode,
    SortKey,
    display_mode_from_str,
    info_mode_from_str,
    sort_key_from_str,
)
from .keymap import KeyMapping, SequenceResolver
from .listing import DirectoryLister, DirEntryInfo
from .overlays import (
    ConfirmOverlay,
    MessagesOverlay,
    Overlay,
    OutputOverlay,
    PromptKind,
    PromptOverlay,
    SearchOverlay,
    ThemePickerEntry,
    ThemePickerOverlay,
    WhichKeyOverlay,
    split_output_lines,
)
from .preview import PreviewPane
from .terminal import TerminalController

logger = logging.getLogger("lazybrowser.app")

MAX_MESSAGES = 100


@dataclass
class Clipboard:
    move: bool
    items: list[Path] = field(default_factory=list)


class App:
    def __init__(
        self,
        loaded: LoadedConfig,
        cwd: Path,
        *,
        lister: DirectoryLister | None = None,
        preview: PreviewPane | None = None,
        terminal: TerminalController | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = loaded.config
        self.registry = loaded.registry
        self.config_paths: ConfigPaths | None = loaded.paths
        self.keymaps: list[KeyMapping] = list(loaded.keymaps)
        self.cwd = Path(cwd).absolute()
        self.lister = lister if lister is not None else DirectoryLister()
        self.preview = preview if preview is not None else PreviewPane()
        if loaded.previewer is not None:
            self.preview.previewer = loaded.previewer
        self.terminal = terminal

        ui = self.config.ui
        self.sort_key: SortKey = sort_key_from_str(ui.sort or "") or SortKey.NAME
        self.sort_reverse = ui.sort_reverse is True
        self.info_mode: InfoMode = info_mode_from_str(ui.show or "") or InfoMode.NONE
        self.display_mode: DisplayMode = display_mode_from_str(ui.display_mode or "") or DisplayMode.ABSOLUTE

        self.current_entries: list[DirEntryInfo] = []
        self.parent_entries: list[DirEntryInfo] = []
        self.selected_index: int | None = None
        self.marked: set[Path] = set()
        self.clipboard: Clipboard | None = None
        self.search_query: str | None = None
        self.dir_marks: dict[str, Path] = {}
        self.pending_mark = False
        self.pending_goto = False
        self.messages: list[str] = []
        self.overlay: Overlay | None = None
        self.output_title = "Output"
        self.output_lines: list[str] = []
        self.should_quit = False
        self.force_full_redraw = True

        self.resolver = SequenceResolver(
            self.keymaps,
            timeout_ms=lambda: self.config.keys.sequence_timeout_ms,
            clock=clock,
        )

    @property
    def themes_dir(self) -> Path | None:
        return self.config_paths.themes_dir if self.config_paths is not None else None

    # Listing and selection.

    def selected_entry(self) -> DirEntryInfo | None:
        idx = self.selected_index
        if idx is None or not 0 <= idx < len(self.current_entries):
            return None
        return self.current_entries[idx]

    def select_index(self, idx: int) -> None:
        if not self.current_entries:
            return
        self.selected_index = max(0, min(idx, len(self.current_entries) - 1))
        self.refresh_preview()

    def move_cursor(self, delta: int) -> None:
        if not self.current_entries:
            return
        if self.selected_index is None:
            self.select_index(0)
            return
        target = max(0, min(self.selected_index + delta, len(self.current_entries) - 1))
        if target != self.selected_index:
            self.select_index(target)

    def refresh_lists(self) -> None:
        """Re-read the current and parent directories with live settings."""
        ui = self.config.ui
        self.current_entries = self.lister.refresh_entries(
            self.cwd, self.sort_key, self.sort_reverse, ui.show_hidden, ui.max_list_items
        )
        parent = self.cwd.parent
        if parent != self.cwd:
            self.parent_entries = self.lister.refresh_entries(
                parent, self.sort_key, self.sort_reverse, ui.show_hidden, ui.max_list_items
            )
        else:
            self.parent_entries = []

        if not self.current_entries:
            self.selected_index = None
        elif self.selected_index is None:
            self.selected_index = 0
        else:
            self.selected_index = min(self.selected_index, len(self.current_entries) - 1)

    def refresh_preview(self) -> None:
        self.preview.show_hidden = self.config.ui.show_hidden
        self.preview.invalidate_and_recompute(self.selected_entry(), self.config.ui.preview_lines)

    def set_cwd(self, path: Path, select_name: str | None = None) -> None:
        self.cwd = path
        self.selected_index = None
        self.refresh_lists()
        if select_name is not None:
            idx = self.lister.find_index_by_name(self.current_entries, select_name)
            if idx is not None:
                self.selected_index = idx
        self.refresh_preview()
        self.force_full_redraw = True

    def enter_selected(self) -> None:
        entry = self.selected_entry()
        if entry is not None and entry.is_dir:
            self.set_cwd(entry.path)

    def go_parent(self) -> None:
        parent = self.cwd.parent
        if parent == self.cwd:
            return
        self.set_cwd(parent, select_name=self.cwd.name)

    # Messages and overlays.

    def add_message(self, text: str) -> None:
        message = text.strip()
        if not message:
            return
        logger.info("message: %s", message)
        self.messages.append(message)
        if len(self.messages) > MAX_MESSAGES:
            del self.messages[: len(self.messages) - MAX_MESSAGES]
        self.force_full_redraw = True

    def clear_messages(self) -> None:
        self.messages.clear()
        self.force_full_redraw = True

    def open_overlay(self, overlay: Overlay) -> None:
        self.overlay = overlay
        self.force_full_redraw = True

    def close_overlay(self) -> None:
        if self.overlay is not None:
            self.overlay = None
            self.force_full_redraw = True

    def display_output(self, title: str, text: str) -> None:
        self.output_title = title
        self.output_lines = split_output_lines(text)
        self.open_overlay(self.last_output_overlay())

    def last_output_overlay(self) -> OutputOverlay:
        return OutputOverlay(title=self.output_title, lines=list(self.output_lines))

    def toggle_which_key(self) -> None:
        if isinstance(self.overlay, WhichKeyOverlay):
            self.close_overlay()
        else:
            self.open_overlay(WhichKeyOverlay(prefix=self.resolver.pending))

    def show_error(self, text: str) -> None:
        self.add_message(f"Error: {text}")
        self.open_overlay(MessagesOverlay())

    # Marks and clipboard.

    def toggle_select_current(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            return
        if entry.path in self.marked:
            self.marked.discard(entry.path)
        else:
            self.marked.add(entry.path)
        self.force_full_redraw = True

    def clear_all_selected(self) -> None:
        if self.marked:
            self.marked.clear()
            self.force_full_redraw = True

    def _arm_clipboard(self, move: bool) -> None:
        if not self.marked:
            self.add_message(f"{'Move' if move else 'Copy'}: no items selected")
            return
        self.clipboard = Clipboard(move=move, items=sorted(self.marked))
        self.add_message("Move selection armed" if move else "Copied selection to clipboard")

    def copy_selection(self) -> None:
        self._arm_clipboard(move=False)

    def move_selection(self) -> None:
        self._arm_clipboard(move=True)

    def clear_clipboard(self) -> None:
        self.clipboard = None
        self.add_message("Clipboard cleared")

    def paste_clipboard(self) -> None:
        clipboard = self.clipboard
        if clipboard is None:
            self.add_message("Paste: clipboard empty")
            return
        report = fs_ops.paste_items(clipboard.items, self.cwd, clipboard.move)
        for message in report.messages:
            self.add_message(message)
        if clipboard.move:
            self.marked.difference_update(clipboard.items)
        self.clipboard = None
        self.refresh_lists()
        self.refresh_preview()
        self.add_message(report.summary("Paste"))

    def select_paths(self, paths: Iterable[Path]) -> None:
        added = False
        for path in paths:
            self.marked.add(path)
            added = True
        if added:
            self.force_full_redraw = True

    # Find.

    def find_match_from(self, start: int, query: str, reverse: bool) -> int | None:
        """Index of the first name containing ``query`` from ``start``, wrapping.

        Matching ignores case; ``reverse`` walks towards the top.
        """
        entries = self.current_entries
        needle = query.lower()
        if not entries or not needle:
            return None
        count = len(entries)
        step = -1 if reverse else 1
        for offset in range(count):
            idx = (start + step * offset) % count
            if needle in entries[idx].name.lower():
                return idx
        return None

    def open_search(self) -> None:
        self.resolver.reset()
        self.open_overlay(SearchOverlay(origin=self.selected_index))

    def update_search_live(self) -> None:
        search = self.overlay
        if not isinstance(search, SearchOverlay):
            return
        idx = self.find_match_from(search.origin or 0, search.text, False)
        if idx is not None and idx != self.selected_index:
            self.select_index(idx)
        self.force_full_redraw = True

    def submit_search(self) -> None:
        search = self.overlay
        if not isinstance(search, SearchOverlay):
            return
        self.close_overlay()
        if search.text:
            self.search_query = search.text

    def cancel_search(self) -> None:
        search = self.overlay
        if not isinstance(search, SearchOverlay):
            return
        self.close_overlay()
        if search.origin is not None and search.origin != self.selected_index:
            self.select_index(search.origin)

    def search_next(self) -> None:
        if self.search_query is None or not self.current_entries:
            return
        start = (self.selected_index or 0) + 1
        idx = self.find_match_from(start % len(self.current_entries), self.search_query, False)
        if idx is not None:
            self.select_index(idx)
            self.force_full_redraw = True

    def search_prev(self) -> None:
        if self.search_query is None or not self.current_entries:
            return
        count = len(self.current_entries)
        idx = self.find_match_from(((self.selected_index or 0) + count - 1) % count, self.search_query, True)
        if idx is not None:
            self.select_index(idx)
            self.force_full_redraw = True

    # Directory marks (kept for the session only).

    def begin_add_mark(self) -> None:
        self.pending_mark = True
        self.pending_goto = False
        self.add_message("Mark: type a letter to save this directory")

    def begin_goto_mark(self) -> None:
        self.pending_goto = True
        self.pending_mark = False
        self.add_message("Goto: type a letter to jump to its mark")

    def cancel_pending_mark(self) -> None:
        self.pending_mark = False
        self.pending_goto = False

    def add_mark(self, ch: str) -> None:
        self.dir_marks[ch] = self.cwd
        self.add_message(f"Mark '{ch}' set: {self.cwd}")

    def goto_mark(self, ch: str) -> None:
        path = self.dir_marks.get(ch)
        if path is None:
            self.add_message(f"No mark '{ch}'")
        elif not path.is_dir():
            self.add_message(f"Mark '{ch}' not a directory: {path}")
        else:
            self.set_cwd(path)
            self.add_message(f"Jumped to '{path}'")

    # Theme picker.

    def open_theme_picker(self) -> None:
        themes_dir = self.themes_dir
        if themes_dir is None:
            self.add_message("Theme picker: unable to determine config directory")
            return
        entries: list[ThemePickerEntry] = []
        for name, path in list_theme_files(themes_dir):
            try:
                entries.append(ThemePickerEntry(name=name, path=path, theme=load_theme_from_file(path)))
            except ThemeError as exc:
                self.add_message(f"Theme picker: failed to load {exc}")
        if not entries:
            self.add_message(f"Theme picker: no themes found in {themes_dir}")
            return

        ui = self.config.ui
        selected = 0
        for idx, entry in enumerate(entries):
            if ui.theme_path is not None and entry.path == ui.theme_path:
                selected = idx
                break
        self.resolver.reset()
        self.open_overlay(
            ThemePickerOverlay(
                entries=entries,
                selected=selected,
                original_theme=ui.theme,
                original_theme_path=ui.theme_path,
            )
        )

    def theme_picker_move(self, delta: int) -> None:
        picker = self.overlay
        if not isinstance(picker, ThemePickerOverlay) or not picker.entries:
            return
        target = max(0, min(picker.selected + delta, len(picker.entries) - 1))
        if target == picker.selected:
            return
        picker.selected = target
        entry = picker.entries[target]
        self.config.ui.theme = entry.theme
        self.config.ui.theme_path = entry.path
        self.force_full_redraw = True

    def confirm_theme_picker(self) -> None:
        self.close_overlay()

    def cancel_theme_picker(self) -> None:
        picker = self.overlay
        if not isinstance(picker, ThemePickerOverlay):
            return
        self.config.ui.theme = picker.original_theme
        self.config.ui.theme_path = picker.original_theme_path
        self.close_overlay()

    # Prompts and confirmations.

    def open_add_entry_prompt(self) -> None:
        self.open_overlay(PromptOverlay(title="Name (end with '/' for folder):", kind=PromptKind.ADD_ENTRY))

    def open_rename_entry_prompt(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            self.add_message("Rename: no selection")
            return
        self.open_overlay(
            PromptOverlay(
                title=f"Rename '{entry.name}' to:",
                kind=PromptKind.RENAME_ENTRY,
                text=entry.name,
                target=entry.path,
            )
        )

    def submit_prompt(self) -> None:
        prompt = self.overlay
        if not isinstance(prompt, PromptOverlay):
            return
        self.close_overlay()
        text = prompt.text
        if not text.strip():
            return
        if prompt.kind is PromptKind.RENAME_ENTRY and prompt.target is None:
            return
        try:
            if prompt.kind is PromptKind.ADD_ENTRY:
                created = fs_ops.create_entry(self.cwd, text)
                select_name = created.relative_to(self.cwd).parts[0]
                self.add_message(f"Created {created.name}")
            else:
                renamed = fs_ops.rename_entry(prompt.target, text)
                select_name = renamed.name
                self.add_message(f"Renamed to {renamed.name}")
        except (OSError, ValueError) as exc:
            self.add_message(f"Error: {exc}")
            return
        self.refresh_lists()
        idx = self.lister.find_index_by_name(self.current_entries, select_name)
        if idx is not None:
            self.selected_index = idx
        self.refresh_preview()

    def request_delete_selected(self) -> None:
        entry = self.selected_entry()
        if entry is None:
            self.add_message("Delete: no selection")
            return
        if self.config.ui.confirm_delete:
            self.open_overlay(
                ConfirmOverlay(
                    title="Confirm Delete",
                    question=f"Delete '{entry.name}' ? (y/n)",
                    path=entry.path,
                )
            )
        else:
            self.perform_delete_path(entry.path)

    def answer_confirm(self, accepted: bool) -> None:
        confirm = self.overlay
        if not isinstance(confirm, ConfirmOverlay):
            return
        self.close_overlay()
        if accepted:
            self.perform_delete_path(confirm.path)

    def perform_delete_path(self, path: Path) -> None:
        logger.debug("delete %s", path)
        try:
            fs_ops.remove_path_all(path)
        except OSError as exc:
            self.add_message(f"Delete error: {exc}")
        else:
            self.marked.discard(path)
            self.add_message("Deleted")
        self.refresh_lists()
        self.refresh_preview()
