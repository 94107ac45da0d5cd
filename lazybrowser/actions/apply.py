"""Apply script results to the running app.

``apply_effects`` handles transient outcomes (selection, overlays, output,
entry commands, find, marks, redraw, quit). ``apply_config_overlay``
writes validated settings and does the least work the changed fields
require.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from ..config.data import ConfigOverlay
from ..overlays import MessagesOverlay, OutputOverlay
from .effects import (
    ClipboardCommand,
    ConfirmCommand,
    Effects,
    FindCommand,
    MarksCommand,
    OverlayToggle,
    PromptCommand,
    SelectCommand,
)

if TYPE_CHECKING:
    from ..app import App

logger = logging.getLogger("lazybrowser.apply")


def _apply_messages_toggle(app: App, toggle: OverlayToggle) -> None:
    if toggle is OverlayToggle.TOGGLE:
        if isinstance(app.overlay, MessagesOverlay):
            app.close_overlay()
        else:
            app.open_overlay(MessagesOverlay())
    elif toggle is OverlayToggle.SHOW:
        app.open_overlay(MessagesOverlay())
    elif toggle is OverlayToggle.HIDE and isinstance(app.overlay, MessagesOverlay):
        app.close_overlay()


def _apply_output_toggle(app: App, toggle: OverlayToggle) -> None:
    if toggle is OverlayToggle.TOGGLE:
        if isinstance(app.overlay, OutputOverlay):
            app.close_overlay()
        else:
            app.open_overlay(app.last_output_overlay())
    elif toggle is OverlayToggle.SHOW:
        app.open_overlay(app.last_output_overlay())
    elif toggle is OverlayToggle.HIDE and isinstance(app.overlay, OutputOverlay):
        app.close_overlay()


def apply_effects(app: App, fx: Effects) -> None:
    if fx.selection is not None and app.current_entries:
        idx = min(fx.selection, len(app.current_entries) - 1)
        if idx != app.selected_index:
            app.select_index(idx)

    _apply_messages_toggle(app, fx.messages)
    _apply_output_toggle(app, fx.output_overlay)

    if fx.output is not None:
        title, body = fx.output
        app.display_output(title, body)
    if fx.message_text is not None:
        app.add_message(fx.message_text)
    if fx.error_text is not None:
        app.add_message(f"Error: {fx.error_text}")
        app.open_overlay(MessagesOverlay())
    if fx.clear_messages:
        app.clear_messages()
    if fx.theme_picker:
        app.open_theme_picker()

    if fx.prompt is PromptCommand.ADD_ENTRY:
        app.open_add_entry_prompt()
    elif fx.prompt is PromptCommand.RENAME_ENTRY:
        app.open_rename_entry_prompt()

    if fx.confirm is ConfirmCommand.DELETE_SELECTED:
        logger.debug("confirm=delete_selected")
        app.request_delete_selected()

    if fx.clipboard is ClipboardCommand.COPY_ARM:
        app.copy_selection()
    elif fx.clipboard is ClipboardCommand.MOVE_ARM:
        app.move_selection()
    elif fx.clipboard is ClipboardCommand.PASTE:
        app.paste_clipboard()
    elif fx.clipboard is ClipboardCommand.CLEAR:
        app.clear_clipboard()

    if fx.select is SelectCommand.TOGGLE_CURRENT:
        app.toggle_select_current()
    elif fx.select is SelectCommand.CLEAR_ALL:
        app.clear_all_selected()

    if fx.find is FindCommand.OPEN:
        app.open_search()
    elif fx.find is FindCommand.NEXT:
        app.search_next()
    elif fx.find is FindCommand.PREV:
        app.search_prev()

    if fx.select_paths is not None:
        app.select_paths(Path(path) for path in fx.select_paths)
    if fx.marks is MarksCommand.ADD_WAIT:
        app.begin_add_mark()
    elif fx.marks is MarksCommand.GOTO_WAIT:
        app.begin_goto_mark()

    if fx.redraw:
        app.force_full_redraw = True
    if fx.quit:
        app.should_quit = True


def apply_config_overlay(app: App, overlay: ConfigOverlay) -> None:
    """Write ``overlay`` into live state and refresh only what changed.

    A relist (hidden files, list cap, sort) implies a preview refresh and a
    redraw and ends processing. A preview line cap change refreshes the
    preview without a redraw. Layout and styling changes force a redraw.
    """
    ui = app.config.ui
    current_theme_path = str(ui.theme_path) if ui.theme_path is not None else None

    relist = (
        overlay.show_hidden != ui.show_hidden
        or overlay.max_list_items != ui.max_list_items
        or overlay.sort_key != app.sort_key
        or overlay.sort_reverse != app.sort_reverse
    )
    preview_only = overlay.preview_lines != ui.preview_lines
    layout = overlay.panes != ui.panes
    redraw = (
        overlay.date_format != ui.date_format
        or overlay.display_mode != app.display_mode
        or overlay.row != ui.row
        or overlay.row_widths != ui.row_widths
        or overlay.theme != ui.theme
        or overlay.theme_path != current_theme_path
        or overlay.show_field != app.info_mode
    )

    entry = app.selected_entry() if relist else None
    selected_name = entry.name if entry is not None else None

    app.config.keys.sequence_timeout_ms = overlay.keys_sequence_timeout_ms
    ui.panes = overlay.panes
    ui.show_hidden = overlay.show_hidden
    ui.date_format = overlay.date_format
    ui.preview_lines = overlay.preview_lines
    ui.max_list_items = overlay.max_list_items
    ui.confirm_delete = overlay.confirm_delete
    ui.row = overlay.row
    ui.row_widths = overlay.row_widths
    ui.theme = overlay.theme
    ui.theme_path = Path(overlay.theme_path) if overlay.theme_path is not None else None
    ui.display_mode = overlay.display_mode.value
    ui.sort = overlay.sort_key.value
    ui.sort_reverse = overlay.sort_reverse
    ui.show = overlay.show_field.value
    app.display_mode = overlay.display_mode
    app.sort_key = overlay.sort_key
    app.sort_reverse = overlay.sort_reverse
    app.info_mode = overlay.show_field

    if relist:
        logger.debug("overlay: relist (keep %r)", selected_name)
        app.refresh_lists()
        if selected_name is not None:
            idx = app.lister.find_index_by_name(app.current_entries, selected_name)
            if idx is not None:
                app.selected_index = idx
        app.refresh_preview()
        app.force_full_redraw = True
        return

    if preview_only:
        logger.debug("overlay: preview refresh")
        app.refresh_preview()
    if layout or redraw:
        logger.debug("overlay: redraw")
        app.force_full_redraw = True
