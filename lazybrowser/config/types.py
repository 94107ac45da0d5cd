"""Typed configuration blocks assembled from the user configuration script."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path

DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M"
DEFAULT_MAX_LIST_ITEMS = 5000
DEFAULT_PREVIEW_LINES = 100


@dataclass
class KeysConfig:
    sequence_timeout_ms: int = 0


@dataclass(frozen=True)
class UiPanes:
    """Pane split percentages for the parent/current/preview columns."""

    parent: int = 20
    current: int = 30
    preview: int = 50


@dataclass(frozen=True)
class UiRowFormat:
    """Template strings used to render each row in the directory panes."""

    icon: str = " "
    left: str = "{name}"
    middle: str = ""
    right: str = "{info}"


@dataclass(frozen=True)
class UiRowWidths:
    """Fixed column widths for row segments; ``0`` means automatic."""

    icon: int = 0
    left: int = 0
    middle: int = 0
    right: int = 0


@dataclass(frozen=True)
class UiTheme:
    """Theme colours. Unset fields fall back to renderer defaults."""

    pane_bg: str | None = None
    border_fg: str | None = None
    item_fg: str | None = None
    item_bg: str | None = None
    selected_item_fg: str | None = None
    selected_item_bg: str | None = None
    title_fg: str | None = None
    title_bg: str | None = None
    info_fg: str | None = None
    dir_fg: str | None = None
    dir_bg: str | None = None
    file_fg: str | None = None
    file_bg: str | None = None
    hidden_fg: str | None = None
    hidden_bg: str | None = None
    exec_fg: str | None = None
    exec_bg: str | None = None
    selection_bar_fg: str | None = None
    selection_bar_copy_fg: str | None = None
    selection_bar_move_fg: str | None = None

    @classmethod
    def field_names(cls) -> tuple[str, ...]:
        return tuple(item.name for item in fields(cls))

    def as_dict(self) -> dict[str, str]:
        """Return only the colours that are set."""
        out: dict[str, str] = {}
        for name in self.field_names():
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out


@dataclass
class UiConfig:
    panes: UiPanes = field(default_factory=UiPanes)
    show_hidden: bool = False
    max_list_items: int = DEFAULT_MAX_LIST_ITEMS
    preview_lines: int = DEFAULT_PREVIEW_LINES
    date_format: str | None = None
    row: UiRowFormat = field(default_factory=UiRowFormat)
    row_widths: UiRowWidths | None = None
    display_mode: str | None = None
    sort: str | None = None
    sort_reverse: bool | None = None
    show: str | None = None
    theme_path: Path | None = None
    theme: UiTheme | None = None
    confirm_delete: bool = True


@dataclass
class Config:
    """Top-level configuration composed by the configuration script."""

    config_version: int = 0
    keys: KeysConfig = field(default_factory=KeysConfig)
    ui: UiConfig = field(default_factory=UiConfig)
