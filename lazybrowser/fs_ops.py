"""Filesystem operations behind paste, delete, add and rename.

Batch operations continue past failures and report a tally plus one
message per skipped or failed item.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class BatchReport:
    ok: int = 0
    skipped: int = 0
    errors: int = 0
    messages: list[str] = field(default_factory=list)

    def summary(self, label: str) -> str:
        return f"{label}: ok={self.ok} skipped={self.skipped} errors={self.errors}"


def copy_path_recursive(src: Path, dst: Path) -> None:
    if src.is_dir() and not src.is_symlink():
        shutil.copytree(src, dst, symlinks=True)
    else:
        shutil.copy2(src, dst, follow_symlinks=False)


def move_path_with_fallback(src: Path, dst: Path) -> None:
    """Move via rename; copy then remove when crossing filesystems."""
    try:
        src.rename(dst)
    except OSError:
        copy_path_recursive(src, dst)
        remove_path_all(src)


def remove_path_all(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()


def _is_within(path: Path, parent: Path) -> bool:
    try:
        path.resolve().relative_to(parent.resolve())
    except ValueError:
        return False
    return True


def paste_items(items: Iterable[Path], dest_dir: Path, move: bool) -> BatchReport:
    """Copy or move ``items`` into ``dest_dir`` without overwriting."""
    report = BatchReport()
    for src in items:
        if move and _is_within(dest_dir, src):
            report.messages.append(f"Skip (move into subdir): {src}")
            report.skipped += 1
            continue
        if not src.name:
            report.skipped += 1
            continue
        dest = dest_dir / src.name
        if dest.exists() or dest.is_symlink():
            report.messages.append(f"Skip (exists): {dest}")
            report.skipped += 1
            continue
        try:
            if move:
                move_path_with_fallback(src, dest)
            else:
                copy_path_recursive(src, dest)
        except OSError as exc:
            report.errors += 1
            report.messages.append(f"Error: {src} -> {dest}: {exc}")
        else:
            report.ok += 1
    return report


def create_entry(directory: Path, name: str) -> Path:
    """Create a file, or a directory when ``name`` ends with ``/``.

    Raises ``FileExistsError`` when the target exists and ``ValueError`` for
    an empty or escaping name.
    """
    is_dir = name.endswith("/")
    clean = name.strip().strip("/")
    if not clean:
        raise ValueError("empty name")
    target = directory / clean
    if not _is_within(target, directory):
        raise ValueError(f"name escapes directory: {name}")
    if target.exists():
        raise FileExistsError(f"already exists: {target}")
    if is_dir:
        target.mkdir(parents=True)
    else:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.touch(exist_ok=False)
    return target


def rename_entry(src: Path, new_name: str) -> Path:
    clean = new_name.strip()
    if not clean or "/" in clean:
        raise ValueError(f"invalid name: {new_name!r}")
    target = src.with_name(clean)
    if target == src:
        return src
    if target.exists():
        raise FileExistsError(f"already exists: {target}")
    src.rename(target)
    return target
