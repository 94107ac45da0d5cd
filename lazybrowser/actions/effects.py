"""Transient, one-shot outcomes of a script call.

``parse_effects`` reads the tags that helpers (or the returned dict) left
on the candidate tree. Unknown tag values are ignored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

DEFAULT_OUTPUT_TITLE = "Output"


class OverlayToggle(Enum):
    NONE = "none"
    TOGGLE = "toggle"
    SHOW = "show"
    HIDE = "hide"


class PromptCommand(Enum):
    NONE = "none"
    ADD_ENTRY = "add_entry"
    RENAME_ENTRY = "rename_entry"


class ConfirmCommand(Enum):
    NONE = "none"
    DELETE_SELECTED = "delete_selected"


class ClipboardCommand(Enum):
    NONE = "none"
    COPY_ARM = "copy_arm"
    MOVE_ARM = "move_arm"
    PASTE = "paste"
    CLEAR = "clear"


class SelectCommand(Enum):
    NONE = "none"
    TOGGLE_CURRENT = "toggle_current"
    CLEAR_ALL = "clear_all"


class FindCommand(Enum):
    NONE = "none"
    OPEN = "open"
    NEXT = "next"
    PREV = "prev"


class MarksCommand(Enum):
    NONE = "none"
    ADD_WAIT = "add_wait"
    GOTO_WAIT = "goto_wait"


@dataclass
class Effects:
    selection: int | None = None
    quit: bool = False
    redraw: bool = False
    messages: OverlayToggle = OverlayToggle.NONE
    output_overlay: OverlayToggle = OverlayToggle.NONE
    output: tuple[str, str] | None = None
    message_text: str | None = None
    error_text: str | None = None
    clear_messages: bool = False
    theme_picker: bool = False
    prompt: PromptCommand = PromptCommand.NONE
    confirm: ConfirmCommand = ConfirmCommand.NONE
    clipboard: ClipboardCommand = ClipboardCommand.NONE
    select: SelectCommand = SelectCommand.NONE
    find: FindCommand = FindCommand.NONE
    marks: MarksCommand = MarksCommand.NONE
    select_paths: list[str] | None = None


def _enum_tag(tbl: Mapping[str, Any], key: str, enum_cls, default):
    value = tbl.get(key)
    if not isinstance(value, str):
        return default
    wanted = value.strip().lower()
    for member in enum_cls:
        if member is not default and member.value == wanted:
            return member
    return default


def _text(tbl: Mapping[str, Any], key: str) -> str | None:
    value = tbl.get(key)
    return value if isinstance(value, str) else None


def _output_from(tbl: Mapping[str, Any]) -> tuple[str, str] | None:
    body = _text(tbl, "output_text")
    if body is None:
        return None
    title = _text(tbl, "output_title") or DEFAULT_OUTPUT_TITLE
    return title, body


def _paths_from(tbl: Mapping[str, Any]) -> list[str] | None:
    value = tbl.get("select_paths")
    if isinstance(value, str) or not isinstance(value, (list, tuple)):
        return None
    return [item for item in value if isinstance(item, str) and item]


def _selection_from(tbl: Mapping[str, Any]) -> int | None:
    context = tbl.get("context")
    if not isinstance(context, Mapping):
        return None
    value = context.get("selected_index")
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 0:
        return value
    return None


def parse_effects(candidate: Mapping[str, Any], original: Mapping[str, Any] | None = None) -> Effects:
    """Extract ``Effects`` from ``candidate``.

    When the candidate carries no output but ``original`` (the pre-merge
    snapshot) does, the original output is used. No other field falls back.
    """
    output = _output_from(candidate)
    if output is None and original is not None:
        output = _output_from(original)

    return Effects(
        selection=_selection_from(candidate),
        quit=candidate.get("quit") is True,
        redraw=candidate.get("redraw") is True,
        messages=_enum_tag(candidate, "messages", OverlayToggle, OverlayToggle.NONE),
        output_overlay=_enum_tag(candidate, "output", OverlayToggle, OverlayToggle.NONE),
        output=output,
        message_text=_text(candidate, "message_text"),
        error_text=_text(candidate, "error_text"),
        clear_messages=candidate.get("clear_messages") is True,
        theme_picker=candidate.get("theme_picker") == "open",
        prompt=_enum_tag(candidate, "prompt", PromptCommand, PromptCommand.NONE),
        confirm=_enum_tag(candidate, "confirm", ConfirmCommand, ConfirmCommand.NONE),
        clipboard=_enum_tag(candidate, "clipboard", ClipboardCommand, ClipboardCommand.NONE),
        select=_enum_tag(candidate, "select", SelectCommand, SelectCommand.NONE),
        find=_enum_tag(candidate, "find", FindCommand, FindCommand.NONE),
        marks=_enum_tag(candidate, "marks", MarksCommand, MarksCommand.NONE),
        select_paths=_paths_from(candidate),
    )
