"""Built-in action verbs: parsing of action strings and their execution.

Grammar (case-insensitive, surrounding whitespace ignored)::

    quit | q
    sort:<key> | sort:reverse:toggle | sort:rev:toggle
    show:<info-mode> | show:friendly
    display:<display-mode>
    nav:top | top | gg | nav:bottom | bottom | g$

Only the first argument counts: ``sort:size:x`` reads as ``sort:size``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from ..enums import (
    DisplayMode,
    InfoMode,
    SortKey,
    display_mode_from_str,
    info_mode_from_str,
    sort_key_from_str,
)

if TYPE_CHECKING:
    from ..app import App

logger = logging.getLogger("lazybrowser.actions")


@dataclass(frozen=True)
class Quit:
    pass


@dataclass(frozen=True)
class Sort:
    key: SortKey


@dataclass(frozen=True)
class ToggleSortReverse:
    pass


@dataclass(frozen=True)
class SetInfo:
    mode: InfoMode


@dataclass(frozen=True)
class SetDisplayMode:
    mode: DisplayMode


@dataclass(frozen=True)
class GoTop:
    pass


@dataclass(frozen=True)
class GoBottom:
    pass


InternalAction = Union[Quit, Sort, ToggleSortReverse, SetInfo, SetDisplayMode, GoTop, GoBottom]


def parse_internal_action(text: str) -> InternalAction | None:
    """Parse one action string into a built-in verb, or ``None``."""
    action = text.strip().lower()
    if action in ("quit", "q"):
        return Quit()
    if action in ("sort:reverse:toggle", "sort:rev:toggle"):
        return ToggleSortReverse()
    if action in ("nav:top", "top", "gg"):
        return GoTop()
    if action in ("nav:bottom", "bottom", "g$"):
        return GoBottom()

    parts = action.split(":")
    if len(parts) < 2:
        return None
    verb, arg = parts[0], parts[1]
    if verb == "sort":
        key = sort_key_from_str(arg)
        return Sort(key) if key is not None else None
    if verb == "show":
        if arg.strip() == "friendly":
            return SetDisplayMode(DisplayMode.FRIENDLY)
        mode = info_mode_from_str(arg)
        return SetInfo(mode) if mode is not None else None
    if verb == "display":
        display = display_mode_from_str(arg)
        return SetDisplayMode(display) if display is not None else None
    return None


def _relist_keeping_selection(app: App) -> None:
    entry = app.selected_entry()
    name = entry.name if entry is not None else None
    app.refresh_lists()
    if name is not None:
        idx = app.lister.find_index_by_name(app.current_entries, name)
        if idx is not None:
            app.selected_index = idx
    app.refresh_preview()


def execute_internal_action(app: App, action: InternalAction) -> None:
    """Apply ``action`` directly to live application state."""
    logger.debug("internal action %r", action)
    if isinstance(action, Quit):
        app.should_quit = True
    elif isinstance(action, Sort):
        app.sort_key = action.key
        _relist_keeping_selection(app)
        app.force_full_redraw = True
    elif isinstance(action, ToggleSortReverse):
        app.sort_reverse = not app.sort_reverse
        _relist_keeping_selection(app)
        app.force_full_redraw = True
    elif isinstance(action, SetInfo):
        app.info_mode = action.mode
        app.force_full_redraw = True
    elif isinstance(action, SetDisplayMode):
        app.display_mode = action.mode
        if app.info_mode is InfoMode.NONE:
            app.info_mode = InfoMode.MODIFIED
        app.force_full_redraw = True
    elif isinstance(action, GoTop):
        if app.current_entries:
            app.select_index(0)
    elif isinstance(action, GoBottom):
        if app.current_entries:
            app.select_index(len(app.current_entries) - 1)
