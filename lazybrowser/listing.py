"""Directory scanning and ordering for the parent and current panes."""

from __future__ import annotations

import os
import stat as stat_mod
from dataclasses import dataclass
from pathlib import Path

from .enums import SortKey


@dataclass(frozen=True)
class DirEntryInfo:
    """One listed directory child plus cached stat metadata."""

    name: str
    path: Path
    is_dir: bool
    size: int = 0
    mtime: float | None = None
    ctime: float | None = None
    is_exec: bool = False

    @property
    def is_hidden(self) -> bool:
        return self.name.startswith(".")


def _created_time(st: os.stat_result) -> float:
    birth = getattr(st, "st_birthtime", None)
    return float(birth) if birth is not None else float(st.st_ctime)


def scan_directory(directory: Path, show_hidden: bool) -> list[DirEntryInfo]:
    """Return unsorted visible children of ``directory``.

    Unreadable directories yield an empty list; children whose metadata
    cannot be read are kept with empty metadata.
    """
    entries: list[DirEntryInfo] = []
    try:
        with os.scandir(directory) as it:
            for child in it:
                name = child.name
                if not show_hidden and name.startswith("."):
                    continue
                try:
                    is_dir = child.is_dir()
                except OSError:
                    is_dir = False

                size = 0
                mtime: float | None = None
                ctime: float | None = None
                is_exec = False
                try:
                    st = child.stat()
                    size = int(st.st_size)
                    mtime = float(st.st_mtime)
                    ctime = _created_time(st)
                    is_exec = not is_dir and bool(st.st_mode & (stat_mod.S_IXUSR | stat_mod.S_IXGRP | stat_mod.S_IXOTH))
                except OSError:
                    pass

                entries.append(
                    DirEntryInfo(
                        name=name,
                        path=Path(child.path),
                        is_dir=is_dir,
                        size=size,
                        mtime=mtime,
                        ctime=ctime,
                        is_exec=is_exec,
                    )
                )
    except OSError:
        return []
    return entries


def sort_entries(entries: list[DirEntryInfo], sort_key: SortKey, reverse: bool) -> list[DirEntryInfo]:
    """Order entries with directories first, then by ``sort_key``.

    ``reverse`` flips the order within the directory and file groups only.
    Directories have no meaningful size, so size ordering keeps them by name.
    """

    def key(entry: DirEntryInfo):
        if sort_key is SortKey.SIZE:
            return entry.size if not entry.is_dir else 0, entry.name.lower()
        if sort_key is SortKey.MTIME:
            return entry.mtime or 0.0, entry.name.lower()
        if sort_key is SortKey.CTIME:
            return entry.ctime or 0.0, entry.name.lower()
        return entry.name.lower(), entry.name

    dirs = sorted((entry for entry in entries if entry.is_dir), key=key, reverse=reverse)
    files = sorted((entry for entry in entries if not entry.is_dir), key=key, reverse=reverse)
    return dirs + files


class DirectoryLister:
    """Listing provider used by the app for both directory panes."""

    def refresh_entries(
        self,
        directory: Path,
        sort_key: SortKey,
        reverse: bool,
        show_hidden: bool,
        max_items: int,
    ) -> list[DirEntryInfo]:
        entries = sort_entries(scan_directory(directory, show_hidden), sort_key, reverse)
        if max_items > 0 and len(entries) > max_items:
            del entries[max_items:]
        return entries

    def find_index_by_name(self, entries: list[DirEntryInfo], name: str) -> int | None:
        for idx, entry in enumerate(entries):
            if entry.name == name:
                return idx
        return None
