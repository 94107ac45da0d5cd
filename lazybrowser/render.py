"""Screen composition for the three-pane browser.

Builds a list of ANSI-styled rows (one per terminal line) from app state.
The runtime writes them out; nothing here touches the terminal directly.
"""

from __future__ import annotations

import re
import time
import unicodedata
from datetime import datetime
from typing import TYPE_CHECKING

from .config.types import DEFAULT_DATE_FORMAT, UiRowFormat, UiRowWidths, UiTheme
from .enums import DisplayMode, InfoMode
from .listing import DirEntryInfo
from .overlays import (
    ConfirmOverlay,
    MessagesOverlay,
    OutputOverlay,
    PromptOverlay,
    SearchOverlay,
    ThemePickerOverlay,
    WhichKeyOverlay,
)

if TYPE_CHECKING:
    from .app import App

ANSI_ESCAPE_RE = re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]")
RESET = "\033[0m"

_NAMED_COLORS = {
    "black": 0,
    "red": 1,
    "green": 2,
    "yellow": 3,
    "blue": 4,
    "magenta": 5,
    "cyan": 6,
    "white": 7,
    "gray": 8,
    "grey": 8,
    "darkgray": 8,
    "darkgrey": 8,
    "lightred": 9,
    "lightgreen": 10,
    "lightyellow": 11,
    "lightblue": 12,
    "lightmagenta": 13,
    "lightcyan": 14,
}


def color_sgr(color: str | None, background: bool = False) -> str:
    """Return the SGR parameter string for ``color`` or ``""`` when unknown.

    Accepts named colours, ``#rrggbb`` and 256-colour indexes.
    """
    if not color:
        return ""
    value = color.strip().lower()
    if value.startswith("#") and len(value) == 7:
        try:
            r, g, b = (int(value[i : i + 2], 16) for i in (1, 3, 5))
        except ValueError:
            return ""
        return f"{48 if background else 38};2;{r};{g};{b}"
    if value.isdigit() and int(value) < 256:
        return f"{48 if background else 38};5;{int(value)}"
    index = _NAMED_COLORS.get(value.replace("_", "").replace(" ", ""))
    if index is None:
        return ""
    return f"{48 if background else 38};5;{index}"


def styled(text: str, fg: str | None = None, bg: str | None = None, bold: bool = False) -> str:
    params = [p for p in ("1" if bold else "", color_sgr(fg), color_sgr(bg, background=True)) if p]
    if not params or not text:
        return text
    return f"\033[{';'.join(params)}m{text}{RESET}"


def char_width(ch: str) -> int:
    if unicodedata.combining(ch):
        return 0
    if unicodedata.east_asian_width(ch) in {"W", "F"}:
        return 2
    return 1


def display_width(text: str) -> int:
    return sum(char_width(ch) for ch in ANSI_ESCAPE_RE.sub("", text))


def clip_ansi(text: str, max_cols: int) -> str:
    """Trim a styled line to ``max_cols`` columns, keeping escape sequences."""
    if max_cols <= 0 or not text:
        return ""
    out: list[str] = []
    col = 0
    i = 0
    while i < len(text) and col < max_cols:
        if text[i] == "\x1b":
            match = ANSI_ESCAPE_RE.match(text, i)
            if match:
                out.append(match.group(0))
                i = match.end()
                continue
        ch = text[i]
        if ch == "\t":
            ch = " " * min(4, max_cols - col)
        w = sum(char_width(c) for c in ch)
        if col + w > max_cols:
            break
        out.append(ch)
        col += w
        i += 1
    return "".join(out)


def fit(text: str, width: int) -> str:
    """Clip then pad ``text`` to exactly ``width`` columns."""
    clipped = clip_ansi(text, width)
    pad = width - display_width(clipped)
    suffix = RESET if "\x1b" in clipped else ""
    return clipped + suffix + " " * max(0, pad)


def human_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "K", "M", "G", "T"):
        if value < 1024 or unit == "T":
            return f"{int(value)}{unit}" if unit == "B" else f"{value:.1f}{unit}"
        value /= 1024
    return f"{size}B"


def friendly_time(timestamp: float, now: float | None = None) -> str:
    delta = max(0, int((now if now is not None else time.time()) - timestamp))
    if delta < 60:
        return "just now"
    if delta < 3600:
        return f"{delta // 60}m ago"
    if delta < 86400:
        return f"{delta // 3600}h ago"
    return f"{delta // 86400}d ago"


def format_info(
    entry: DirEntryInfo,
    info_mode: InfoMode,
    display_mode: DisplayMode,
    date_format: str | None,
    now: float | None = None,
) -> str:
    if info_mode is InfoMode.SIZE:
        return "" if entry.is_dir else human_size(entry.size)
    if info_mode is InfoMode.NONE:
        return ""
    stamp = entry.ctime if info_mode is InfoMode.CREATED else entry.mtime
    if stamp is None:
        return ""
    if display_mode is DisplayMode.FRIENDLY:
        return friendly_time(stamp, now)
    try:
        return datetime.fromtimestamp(stamp).strftime(date_format or DEFAULT_DATE_FORMAT)
    except (OverflowError, OSError, ValueError):
        return ""


_PLACEHOLDER_RE = re.compile(r"\{(icon|name|info)\}")


def _segment(template: str, values: dict[str, str]) -> str:
    return _PLACEHOLDER_RE.sub(lambda match: values[match.group(1)], template)


def format_row(
    entry: DirEntryInfo,
    row: UiRowFormat,
    widths: UiRowWidths | None,
    info: str,
    width: int,
) -> str:
    """Lay out one plain-text row from the row templates."""
    values = {
        "icon": "/" if entry.is_dir else "",
        "name": entry.name,
        "info": info,
    }
    icon = _segment(row.icon, values)
    left = _segment(row.left, values)
    middle = _segment(row.middle, values)
    right = _segment(row.right, values)
    if widths is not None:
        if widths.icon:
            icon = fit(icon, widths.icon)
        if widths.left:
            left = fit(left, widths.left)
        if widths.middle:
            middle = fit(middle, widths.middle)
        if widths.right:
            right = fit(right, widths.right)
    head = icon + left
    if middle:
        head = f"{head} {middle}"
    gap = width - display_width(head) - display_width(right)
    if gap < 1:
        return fit(head, max(0, width - display_width(right) - 1)) + " " + right if right else fit(head, width)
    return head + " " * gap + right


def _entry_colors(entry: DirEntryInfo, theme: UiTheme) -> tuple[str | None, str | None]:
    if entry.is_dir:
        return theme.dir_fg or theme.item_fg, theme.dir_bg or theme.item_bg
    if entry.is_hidden:
        return theme.hidden_fg or theme.item_fg, theme.hidden_bg or theme.item_bg
    if entry.is_exec:
        return theme.exec_fg or theme.item_fg, theme.exec_bg or theme.item_bg
    return theme.file_fg or theme.item_fg, theme.file_bg or theme.item_bg


def _selection_bar(app: App, entry: DirEntryInfo, theme: UiTheme) -> str:
    if entry.path not in app.marked:
        return " "
    color = theme.selection_bar_fg
    clipboard = app.clipboard
    if clipboard is not None and entry.path in clipboard.items:
        color = theme.selection_bar_move_fg if clipboard.move else theme.selection_bar_copy_fg
    return styled("▌", fg=color or "yellow")


def render_entries(
    app: App,
    entries: list[DirEntryInfo],
    selected: int | None,
    width: int,
    height: int,
    with_info: bool,
) -> list[str]:
    if width <= 0:
        return [""] * height
    theme = app.config.ui.theme or UiTheme()
    start = 0
    if selected is not None and selected >= height:
        start = selected - height + 1
    rows: list[str] = []
    for idx in range(start, min(len(entries), start + height)):
        entry = entries[idx]
        info = ""
        if with_info:
            info = format_info(entry, app.info_mode, app.display_mode, app.config.ui.date_format)
        text = format_row(entry, app.config.ui.row, app.config.ui.row_widths, info, width - 1)
        if idx == selected:
            body = styled(fit(text, width - 1), fg=theme.selected_item_fg, bg=theme.selected_item_bg) or fit(text, width - 1)
            if not (theme.selected_item_fg or theme.selected_item_bg):
                body = "\033[7m" + fit(text, width - 1) + RESET
        else:
            fg, bg = _entry_colors(entry, theme)
            body = styled(fit(text, width - 1), fg=fg, bg=bg)
        rows.append(_selection_bar(app, entry, theme) + body)
    while len(rows) < height:
        rows.append(" " * width)
    return rows


def overlay_lines(app: App) -> tuple[str, list[str]] | None:
    """Return ``(title, lines)`` for the active overlay, if any."""
    overlay = app.overlay
    if overlay is None:
        return None
    if isinstance(overlay, MessagesOverlay):
        return "Messages", list(app.messages) or ["(no messages)"]
    if isinstance(overlay, OutputOverlay):
        return overlay.title, overlay.lines or ["(no output)"]
    if isinstance(overlay, WhichKeyOverlay):
        hints = [
            f"{mapping.sequence[len(overlay.prefix):]:<6} {mapping.description or mapping.action}"
            for mapping in app.resolver.mappings_with_prefix(overlay.prefix)
        ]
        return f"Keys {overlay.prefix}".rstrip(), hints or ["(no bindings)"]
    if isinstance(overlay, PromptOverlay):
        return overlay.title, [overlay.text + "█"]
    if isinstance(overlay, SearchOverlay):
        return "Find", ["/" + overlay.text + "█"]
    if isinstance(overlay, ConfirmOverlay):
        return overlay.title, [overlay.question]
    if isinstance(overlay, ThemePickerOverlay):
        lines = [
            ("> " if idx == overlay.selected else "  ") + entry.name
            for idx, entry in enumerate(overlay.entries)
        ]
        return "Themes (j/k, Enter, Esc)", lines
    return None


def pane_widths(app: App, total: int) -> tuple[int, int, int]:
    panes = app.config.ui.panes
    weights = [max(0, panes.parent), max(0, panes.current), max(0, panes.preview)]
    weight_sum = sum(weights) or 1
    usable = max(0, total - 2)
    parent = usable * weights[0] // weight_sum
    current = usable * weights[1] // weight_sum
    preview = usable - parent - current
    return parent, current, preview


def render_screen(app: App, width: int, height: int) -> list[str]:
    """Compose the whole screen as ``height`` rows of ``width`` columns."""
    theme = app.config.ui.theme or UiTheme()
    body_rows = max(0, height - 2)
    parent_w, current_w, preview_w = pane_widths(app, width)
    border = styled("│", fg=theme.border_fg)

    parent_selected = None
    for idx, entry in enumerate(app.parent_entries):
        if entry.path == app.cwd:
            parent_selected = idx
            break
    parent_rows = render_entries(app, app.parent_entries, parent_selected, parent_w, body_rows, with_info=False)
    current_rows = render_entries(app, app.current_entries, app.selected_index, current_w, body_rows, with_info=True)

    overlay = overlay_lines(app)
    if overlay is not None:
        title, lines = overlay
        right_rows = [styled(fit(f" {title} ", preview_w), fg=theme.title_fg, bold=True)]
        right_rows.extend(fit(line, preview_w) for line in lines[-(body_rows - 1) :] if body_rows > 1)
    else:
        right_rows = [fit(line, preview_w) for line in app.preview.lines[:body_rows]]
    while len(right_rows) < body_rows:
        right_rows.append(" " * preview_w)

    header = styled(fit(f" {app.cwd}", width), fg=theme.title_fg, bg=theme.title_bg, bold=True)
    rows = [header]
    for idx in range(body_rows):
        rows.append(parent_rows[idx] + border + current_rows[idx] + border + right_rows[idx])
    rows.append(styled(fit(status_text(app), width), fg=theme.info_fg))
    return rows[:height]


def status_text(app: App) -> str:
    parts = [f" {len(app.current_entries)} items", f"sort:{app.sort_key.value}{' rev' if app.sort_reverse else ''}"]
    if app.marked:
        parts.append(f"marked:{len(app.marked)}")
    if app.resolver.pending:
        parts.append(f"keys:{app.resolver.pending}")
    if app.search_query:
        parts.append(f"find:{app.search_query}")
    if app.messages:
        parts.append(app.messages[-1])
    return "  ".join(parts)
