"""Built-in settings and key bindings, registered before the user script.

Defaults go through the same ``lb`` API that ``init.py`` uses, so a user
binding for the same sequence simply overwrites the built-in one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .types import DEFAULT_DATE_FORMAT, DEFAULT_MAX_LIST_ITEMS, DEFAULT_PREVIEW_LINES

if TYPE_CHECKING:
    from .loader import ConfigApi

DEFAULT_SETTINGS = {
    "config_version": 1,
    "keys": {"sequence_timeout_ms": 0},
    "ui": {
        "panes": {"parent": 20, "current": 30, "preview": 50},
        "show_hidden": False,
        "date_format": DEFAULT_DATE_FORMAT,
        "display_mode": "absolute",
        "preview_lines": DEFAULT_PREVIEW_LINES,
        "max_list_items": DEFAULT_MAX_LIST_ITEMS,
        "confirm_delete": True,
        "sort": "name",
        "sort_reverse": False,
        "show": "none",
        "row": {"icon": " ", "left": "{name}", "middle": "", "right": "{info}"},
        "theme": {
            "border_fg": "gray",
            "item_fg": "white",
            "selected_item_fg": "black",
            "selected_item_bg": "cyan",
            "title_fg": "gray",
            "info_fg": "gray",
            "dir_fg": "cyan",
            "file_fg": "white",
            "hidden_fg": "darkgray",
            "exec_fg": "green",
            "selection_bar_fg": "yellow",
            "selection_bar_copy_fg": "green",
            "selection_bar_move_fg": "magenta",
        },
    },
}

# (sequence, action, description) bound to built-in action strings.
DEFAULT_KEYMAPS: tuple[tuple[str, str, str], ...] = (
    ("q", "quit", "Quit"),
    ("sn", "sort:name", "Sort by name"),
    ("ss", "sort:size", "Sort by size"),
    ("sm", "sort:mtime", "Sort by modified time"),
    ("sc", "sort:created", "Sort by created time"),
    ("sr", "sort:reverse:toggle", "Toggle reverse sort"),
    ("gg", "nav:top", "Go to top"),
    ("G", "nav:bottom", "Go to bottom"),
    ("zn", "show:none", "Info: none"),
    ("zs", "show:size", "Info: size"),
    ("zc", "show:created", "Info: created date"),
    ("zf", "display:friendly", "Display: friendly"),
    ("za", "display:absolute", "Display: absolute"),
)


def _toggle_hidden(lb, config):
    config["ui"]["show_hidden"] = config["ui"].get("show_hidden") is not True


def _toggle_messages(lb, config):
    return {"messages": "toggle"}


def _toggle_output(lb, config):
    return {"output": "toggle"}


def register_defaults(lb: ConfigApi) -> None:
    lb.config(DEFAULT_SETTINGS)
    for sequence, action, description in DEFAULT_KEYMAPS:
        lb.mapkey(sequence, action, description)

    lb.map_action("zh", "Toggle show hidden", _toggle_hidden)
    lb.map_action("zm", "Show messages", _toggle_messages)
    lb.map_action("zo", "Show output", _toggle_output)
    picker = lb.map_action("ut", "UI theme picker", lambda lb, config: lb.open_theme_picker())
    # "u" alone clears the selection, so "Ut" is the reachable spelling.
    lb.mapkey("Ut", f"run_script:{picker}", "UI theme picker")
    lb.map_action("a", "Add file/folder", lambda lb, config: lb.add_entry())
    lb.map_action("r", "Rename", lambda lb, config: lb.rename_item())
    lb.map_action("D", "Delete", lambda lb, config: lb.delete_selected())
    lb.map_action(" ", "Toggle selection", lambda lb, config: lb.toggle_select())
    lb.map_action("u", "Clear selection", lambda lb, config: lb.clear_selection())
    lb.map_action("c", "Copy selection", lambda lb, config: lb.copy_selection())
    lb.map_action("x", "Move selection", lambda lb, config: lb.move_selection())
    lb.map_action("v", "Paste", lambda lb, config: lb.paste_clipboard())
    lb.map_action("/", "Find in current", lambda lb, config: lb.open_search())
    lb.map_action("n", "Find next", lambda lb, config: lb.search_next())
    lb.map_action("b", "Find previous", lambda lb, config: lb.search_prev())
    lb.map_action("m", "Mark directory", lambda lb, config: lb.add_mark())
    lb.map_action("'", "Go to mark", lambda lb, config: lb.goto_mark())
