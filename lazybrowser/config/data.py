"""Values-only configuration snapshots and validated config overlays.

Script callbacks receive a plain ``dict`` tree built by ``build_snapshot``.
After the call, ``parse_config_overlay`` turns the (merged) tree back into a
typed ``ConfigOverlay`` with a two-tier policy:

* structural problems (missing ``keys``/``ui``/``ui.panes``/``ui.row``
  tables) and unknown enumerated values (``ui.display_mode``, ``ui.sort``)
  reject the whole overlay;
* any other scalar with the wrong type silently keeps its current value.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any

from ..enums import (
    DisplayMode,
    InfoMode,
    SortKey,
    display_mode_from_str,
    info_mode_from_str,
    sort_key_from_str,
)
from .theme import theme_from_mapping
from .types import (
    DEFAULT_DATE_FORMAT,
    DEFAULT_MAX_LIST_ITEMS,
    DEFAULT_PREVIEW_LINES,
    UiPanes,
    UiRowFormat,
    UiRowWidths,
    UiTheme,
)

if TYPE_CHECKING:
    from ..app import App


class ConfigValidationError(ValueError):
    """Raised when a returned snapshot cannot become a config overlay."""


@dataclass(frozen=True)
class ConfigOverlay:
    """Validated persisted-settings delta produced by a script call."""

    keys_sequence_timeout_ms: int = 0
    panes: UiPanes = UiPanes()
    show_hidden: bool = False
    date_format: str | None = None
    display_mode: DisplayMode = DisplayMode.ABSOLUTE
    preview_lines: int = DEFAULT_PREVIEW_LINES
    max_list_items: int = DEFAULT_MAX_LIST_ITEMS
    confirm_delete: bool = True
    row: UiRowFormat = UiRowFormat()
    row_widths: UiRowWidths | None = None
    theme: UiTheme | None = None
    theme_path: str | None = None
    sort_key: SortKey = SortKey.NAME
    sort_reverse: bool = False
    show_field: InfoMode = InfoMode.NONE


def overlay_from_app(app: App) -> ConfigOverlay:
    """Describe the live settings of ``app`` as an overlay (no changes)."""
    ui = app.config.ui
    return ConfigOverlay(
        keys_sequence_timeout_ms=app.config.keys.sequence_timeout_ms,
        panes=ui.panes,
        show_hidden=ui.show_hidden,
        date_format=ui.date_format,
        display_mode=app.display_mode,
        preview_lines=ui.preview_lines,
        max_list_items=ui.max_list_items,
        confirm_delete=ui.confirm_delete,
        row=ui.row,
        row_widths=ui.row_widths,
        theme=ui.theme,
        theme_path=str(ui.theme_path) if ui.theme_path is not None else None,
        sort_key=app.sort_key,
        sort_reverse=app.sort_reverse,
        show_field=app.info_mode,
    )


def format_timestamp(timestamp: float | None, date_format: str | None) -> str | None:
    if timestamp is None:
        return None
    try:
        return datetime.fromtimestamp(timestamp).strftime(date_format or DEFAULT_DATE_FORMAT)
    except (OverflowError, OSError, ValueError):
        return None


def build_snapshot(app: App) -> dict[str, Any]:
    """Build the fresh, values-only tree handed to one script call."""
    ui_cfg = app.config.ui
    ui: dict[str, Any] = {
        "panes": {
            "parent": ui_cfg.panes.parent,
            "current": ui_cfg.panes.current,
            "preview": ui_cfg.panes.preview,
        },
        "show_hidden": ui_cfg.show_hidden,
        "display_mode": app.display_mode.value,
        "preview_lines": ui_cfg.preview_lines,
        "max_list_items": ui_cfg.max_list_items,
        "confirm_delete": ui_cfg.confirm_delete,
        "row": {
            "icon": ui_cfg.row.icon,
            "left": ui_cfg.row.left,
            "middle": ui_cfg.row.middle,
            "right": ui_cfg.row.right,
        },
        "sort": app.sort_key.value,
        "sort_reverse": app.sort_reverse,
        "show": app.info_mode.value,
    }
    if ui_cfg.date_format is not None:
        ui["date_format"] = ui_cfg.date_format
    if ui_cfg.row_widths is not None:
        ui["row_widths"] = {
            "icon": ui_cfg.row_widths.icon,
            "left": ui_cfg.row_widths.left,
            "middle": ui_cfg.row_widths.middle,
            "right": ui_cfg.row_widths.right,
        }
    if ui_cfg.theme is not None:
        ui["theme"] = ui_cfg.theme.as_dict()
    if ui_cfg.theme_path is not None:
        ui["theme_path"] = str(ui_cfg.theme_path)

    return {
        "keys": {"sequence_timeout_ms": app.config.keys.sequence_timeout_ms},
        "ui": ui,
        "context": _build_context(app),
    }


def _build_context(app: App) -> dict[str, Any]:
    entry = app.selected_entry()
    context: dict[str, Any] = {
        "cwd": str(app.cwd),
        "selected_index": app.selected_index if entry is not None else None,
        "current_len": len(app.current_entries),
    }
    if entry is None:
        context.update(
            current_file=str(app.cwd),
            current_file_dir=str(app.cwd),
            current_file_name=app.cwd.name,
            current_file_extension="",
        )
        return context

    date_format = app.config.ui.date_format
    context.update(
        current_file=str(entry.path),
        current_file_dir=str(entry.path.parent),
        current_file_name=entry.path.name,
        current_file_extension=entry.path.suffix.lstrip("."),
    )
    ctime = format_timestamp(entry.ctime, date_format)
    if ctime is not None:
        context["current_file_ctime"] = ctime
    mtime = format_timestamp(entry.mtime, date_format)
    if mtime is not None:
        context["current_file_mtime"] = mtime
    return context


_MISSING = object()


def _table(tbl: Mapping[str, Any], key: str) -> Mapping[str, Any] | None:
    value = tbl.get(key)
    return value if isinstance(value, Mapping) else None


def _require_table(tbl: Mapping[str, Any], key: str, label: str) -> Mapping[str, Any]:
    value = _table(tbl, key)
    if value is None:
        raise ConfigValidationError(f"missing or invalid table: {label}")
    return value


def _get_bool(tbl: Mapping[str, Any], key: str, fallback: bool) -> bool:
    value = tbl.get(key)
    return value if isinstance(value, bool) else fallback


def _get_int(tbl: Mapping[str, Any], key: str, fallback: int) -> int:
    """Return a non-negative integer; integral floats are accepted."""
    value = tbl.get(key)
    if isinstance(value, bool):
        return fallback
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int) or value < 0:
        return fallback
    return value


def _get_str(tbl: Mapping[str, Any], key: str, fallback: str) -> str:
    value = tbl.get(key)
    return value if isinstance(value, str) else fallback


def _get_optional_str(tbl: Mapping[str, Any], key: str, fallback: str | None) -> str | None:
    """Missing or wrong-typed keeps ``fallback``; an explicit ``None`` clears."""
    value = tbl.get(key, _MISSING)
    if value is None:
        return None
    return value if isinstance(value, str) else fallback


def _parse_row_widths(ui: Mapping[str, Any], fallback: UiRowWidths | None) -> UiRowWidths | None:
    value = ui.get("row_widths", _MISSING)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        return fallback
    base = fallback or UiRowWidths()
    return UiRowWidths(
        icon=_get_int(value, "icon", base.icon),
        left=_get_int(value, "left", base.left),
        middle=_get_int(value, "middle", base.middle),
        right=_get_int(value, "right", base.right),
    )


def _parse_theme(ui: Mapping[str, Any], fallback: UiTheme | None) -> UiTheme | None:
    value = ui.get("theme", _MISSING)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        return fallback
    return theme_from_mapping(value)


def parse_config_overlay(
    candidate: Mapping[str, Any],
    current: ConfigOverlay | None = None,
) -> ConfigOverlay:
    """Validate ``candidate`` and convert it into a ``ConfigOverlay``.

    ``current`` supplies the value kept for any wrong-typed scalar; it
    defaults to built-in defaults.
    """
    base = current if current is not None else ConfigOverlay()

    keys = _require_table(candidate, "keys", "keys")
    ui = _require_table(candidate, "ui", "ui")
    panes = _require_table(ui, "panes", "ui.panes")
    row = _require_table(ui, "row", "ui.row")

    display_mode = base.display_mode
    if "display_mode" in ui:
        raw = ui["display_mode"]
        parsed_mode = display_mode_from_str(raw) if isinstance(raw, str) else None
        if parsed_mode is None:
            raise ConfigValidationError("ui.display_mode must be one of: absolute|friendly")
        display_mode = parsed_mode

    sort_key = base.sort_key
    if "sort" in ui:
        raw = ui["sort"]
        parsed_key = sort_key_from_str(raw) if isinstance(raw, str) else None
        if parsed_key is None:
            raise ConfigValidationError("ui.sort must be one of: name|size|mtime|created")
        sort_key = parsed_key

    show_field = base.show_field
    raw_show = ui.get("show")
    if isinstance(raw_show, str):
        show_field = info_mode_from_str(raw_show) or base.show_field

    return ConfigOverlay(
        keys_sequence_timeout_ms=_get_int(keys, "sequence_timeout_ms", base.keys_sequence_timeout_ms),
        panes=UiPanes(
            parent=_get_int(panes, "parent", base.panes.parent),
            current=_get_int(panes, "current", base.panes.current),
            preview=_get_int(panes, "preview", base.panes.preview),
        ),
        show_hidden=_get_bool(ui, "show_hidden", base.show_hidden),
        date_format=_get_optional_str(ui, "date_format", base.date_format),
        display_mode=display_mode,
        preview_lines=_get_int(ui, "preview_lines", base.preview_lines),
        max_list_items=_get_int(ui, "max_list_items", base.max_list_items),
        confirm_delete=_get_bool(ui, "confirm_delete", base.confirm_delete),
        row=UiRowFormat(
            icon=_get_str(row, "icon", base.row.icon),
            left=_get_str(row, "left", base.row.left),
            middle=_get_str(row, "middle", base.row.middle),
            right=_get_str(row, "right", base.row.right),
        ),
        row_widths=_parse_row_widths(ui, base.row_widths),
        theme=_parse_theme(ui, base.theme),
        theme_path=_get_optional_str(ui, "theme_path", base.theme_path),
        sort_key=sort_key,
        sort_reverse=_get_bool(ui, "sort_reverse", base.sort_reverse),
        show_field=show_field,
    )
