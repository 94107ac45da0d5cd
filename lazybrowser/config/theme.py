"""Theme files: JSON objects mapping theme colour keys to colour strings.

A theme file is either a flat object (``{"dir_fg": "cyan", ...}``) or wraps
the colours under a ``"theme"`` key. Unknown keys and non-string values are
ignored.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path

from .types import UiTheme

THEME_SUFFIX = ".json"


class ThemeError(Exception):
    """Raised when a theme file cannot be read or decoded."""


def theme_from_mapping(data: Mapping[str, object]) -> UiTheme:
    """Build a ``UiTheme`` from string-valued entries of ``data``."""
    values: dict[str, str] = {}
    for name in UiTheme.field_names():
        value = data.get(name)
        if isinstance(value, str):
            values[name] = value
    return UiTheme(**values)


def load_theme_from_file(path: Path) -> UiTheme:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ThemeError(f"{path}: {exc}") from exc
    if isinstance(data, dict) and isinstance(data.get("theme"), dict):
        data = data["theme"]
    if not isinstance(data, dict):
        raise ThemeError(f"{path}: theme must be a JSON object")
    return theme_from_mapping(data)


def list_theme_files(themes_dir: Path) -> list[tuple[str, Path]]:
    """Return ``(name, path)`` pairs for theme files, sorted by name."""
    try:
        candidates = [path for path in themes_dir.iterdir() if path.is_file()]
    except OSError:
        return []
    themes = [
        (path.stem, path)
        for path in candidates
        if path.suffix.lower() == THEME_SUFFIX
    ]
    themes.sort(key=lambda item: item[0].lower())
    return themes


def find_theme_file(themes_dir: Path, name: str) -> Path | None:
    """Return the theme file whose stem matches ``name`` case-insensitively."""
    wanted = name.strip().lower()
    if not wanted:
        return None
    for stem, path in list_theme_files(themes_dir):
        if stem.lower() == wanted:
            return path
    return None
