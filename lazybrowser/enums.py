"""Listing and display enums plus their string aliases.

Action strings, the configuration script and the snapshot all spell these
values as text; this module is the single place that maps text to enums.
"""

from __future__ import annotations

from enum import Enum


class SortKey(Enum):
    NAME = "name"
    SIZE = "size"
    MTIME = "mtime"
    CTIME = "created"


class InfoMode(Enum):
    NONE = "none"
    SIZE = "size"
    CREATED = "created"
    MODIFIED = "modified"


class DisplayMode(Enum):
    ABSOLUTE = "absolute"
    FRIENDLY = "friendly"


_SORT_KEY_ALIASES: dict[str, SortKey] = {
    "name": SortKey.NAME,
    "n": SortKey.NAME,
    "size": SortKey.SIZE,
    "s": SortKey.SIZE,
    "mtime": SortKey.MTIME,
    "modified": SortKey.MTIME,
    "time": SortKey.MTIME,
    "date": SortKey.MTIME,
    "t": SortKey.MTIME,
    "created": SortKey.CTIME,
    "ctime": SortKey.CTIME,
    "birth": SortKey.CTIME,
    "c": SortKey.CTIME,
}

_INFO_MODE_ALIASES: dict[str, InfoMode] = {
    "none": InfoMode.NONE,
    "off": InfoMode.NONE,
    "size": InfoMode.SIZE,
    "bytes": InfoMode.SIZE,
    "created": InfoMode.CREATED,
    "ctime": InfoMode.CREATED,
    "birth": InfoMode.CREATED,
    "modified": InfoMode.MODIFIED,
    "mtime": InfoMode.MODIFIED,
}

_DISPLAY_MODE_ALIASES: dict[str, DisplayMode] = {
    "absolute": DisplayMode.ABSOLUTE,
    "abs": DisplayMode.ABSOLUTE,
    "friendly": DisplayMode.FRIENDLY,
    "ago": DisplayMode.FRIENDLY,
    "human": DisplayMode.FRIENDLY,
}


def sort_key_from_str(value: str) -> SortKey | None:
    """Return the sort key named by ``value`` (case-insensitive alias)."""
    return _SORT_KEY_ALIASES.get(value.strip().lower())


def info_mode_from_str(value: str) -> InfoMode | None:
    """Return the info column mode named by ``value``."""
    return _INFO_MODE_ALIASES.get(value.strip().lower())


def display_mode_from_str(value: str) -> DisplayMode | None:
    """Return the date display mode named by ``value``."""
    return _DISPLAY_MODE_ALIASES.get(value.strip().lower())
