"""Preview pane contents for the selected entry.

Files show their first lines, highlighted with Pygments, or the output of a
configured previewer command; directories show their children. Terminal
control bytes are escaped before display.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from itertools import islice
from pathlib import Path
from typing import Any

from pygments import highlight
from pygments.formatters import TerminalFormatter
from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.util import ClassNotFound

from . import process
from .enums import SortKey
from .listing import DirEntryInfo, scan_directory, sort_entries

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_SGR_RE = re.compile(r"\x1b\[[0-9;]*m")
_COMMAND_PLACEHOLDER_RE = re.compile(r"\{(path|directory|dir|name|extension|height)\}")
BINARY_SNIFF_BYTES = 1024

_FORMATTER = TerminalFormatter()

logger = logging.getLogger("lazybrowser.preview")

Previewer = Callable[[dict[str, Any]], Any]


def sanitize_terminal_text(source: str) -> str:
    """Escape terminal control bytes to avoid side effects (bell, cursor moves, etc.)."""
    if _CONTROL_RE.search(source) is None:
        return source
    out: list[str] = []
    for ch in source:
        code = ord(ch)
        if ch in {"\n", "\r", "\t"}:
            out.append(ch)
            continue
        # C0 controls + DEL + C1 controls.
        if code < 32 or code == 127 or 0x80 <= code <= 0x9F:
            out.append(f"\\x{code:02x}")
            continue
        out.append(ch)
    return "".join(out)


def read_head(path: Path, line_limit: int) -> list[str]:
    """Read at most ``line_limit`` lines; raises ``OSError`` on failure."""
    with path.open("rb") as handle:
        sniff = handle.read(BINARY_SNIFF_BYTES)
        if b"\x00" in sniff:
            return ["<binary file>"]
        handle.seek(0)
        raw_lines = list(islice(handle, line_limit))
    return [raw.decode("utf-8", errors="replace").rstrip("\r\n") for raw in raw_lines]


def highlight_lines(lines: list[str], path: Path) -> list[str]:
    if not lines:
        return []
    source = sanitize_terminal_text("\n".join(lines)) + "\n"
    try:
        lexer = get_lexer_for_filename(path.name, source)
    except ClassNotFound:
        lexer = TextLexer()
    rendered = highlight(source, lexer, _FORMATTER)
    return rendered.rstrip("\n").split("\n")


def sanitize_command_output(line: str) -> str:
    """Like ``sanitize_terminal_text`` but keeps SGR colour sequences."""
    parts: list[str] = []
    last = 0
    for match in _SGR_RE.finditer(line):
        parts.append(sanitize_terminal_text(line[last : match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(sanitize_terminal_text(line[last:]))
    return "".join(parts)


def is_binary_file(path: Path) -> bool:
    try:
        with path.open("rb") as handle:
            return b"\x00" in handle.read(BINARY_SNIFF_BYTES)
    except OSError:
        return False


def previewer_context(path: Path, line_limit: int) -> dict[str, Any]:
    return {
        "path": str(path),
        "directory": str(path.parent),
        "name": path.name,
        "extension": path.suffix[1:],
        "is_binary": is_binary_file(path),
        "height": line_limit,
    }


def expand_command(cmd: str, ctx: dict[str, Any]) -> str:
    """Substitute ``{path}``-style placeholders with shell-quoted values, in one pass."""
    values = {
        "path": ctx["path"],
        "directory": ctx["directory"],
        "dir": ctx["directory"],
        "name": ctx["name"],
        "extension": ctx["extension"],
    }

    def replace(match: re.Match[str]) -> str:
        key = match.group(1)
        if key == "height":
            return str(ctx["height"])
        return process.quote(values[key])

    return _COMMAND_PLACEHOLDER_RE.sub(replace, cmd)


class PreviewPane:
    """Holds the rendered preview lines for the current selection.

    A configured ``previewer(ctx)`` may return a shell command for a file;
    its output replaces the built-in head preview. Command output is cached
    per file state and line limit.
    """

    def __init__(self, show_hidden: bool = False, previewer: Previewer | None = None) -> None:
        self.lines: list[str] = []
        self.path: Path | None = None
        self.show_hidden = show_hidden
        self.previewer = previewer
        self._command_cache: dict[tuple[Path, int, int, int], list[str]] = {}

    def clear(self) -> None:
        self.lines = []
        self.path = None

    def invalidate_and_recompute(self, entry: DirEntryInfo | None, line_limit: int) -> None:
        if entry is None:
            self.clear()
            return
        self.path = entry.path
        if entry.is_dir:
            children = sort_entries(scan_directory(entry.path, self.show_hidden), SortKey.NAME, False)
            self.lines = [
                sanitize_terminal_text(child.name + ("/" if child.is_dir else ""))
                for child in children[:line_limit]
            ]
            return
        if self.previewer is not None:
            lines = self._previewer_lines(entry, line_limit)
            if lines is not None:
                self.lines = lines
                return
        try:
            lines = read_head(entry.path, line_limit)
        except OSError as exc:
            self.lines = [f"<error reading file: {exc}>"]
            return
        self.lines = highlight_lines(lines, entry.path)

    def _previewer_lines(self, entry: DirEntryInfo, line_limit: int) -> list[str] | None:
        path = entry.path
        try:
            st = path.stat()
        except OSError:
            return None
        key = (path, st.st_mtime_ns, st.st_size, line_limit)
        cached = self._command_cache.get(key)
        if cached is not None:
            return list(cached)

        ctx = previewer_context(path, line_limit)
        try:
            cmd = self.previewer(ctx)
        except Exception:
            logger.exception("previewer failed for %s", path)
            return None
        if not isinstance(cmd, str) or not cmd.strip():
            return None

        cmd = expand_command(cmd, ctx)
        logger.debug("previewer cmd=%r cwd=%s", cmd, ctx["directory"])
        env = {
            "LAZYBROWSER_PATH": ctx["path"],
            "LAZYBROWSER_DIR": ctx["directory"],
            "LAZYBROWSER_NAME": ctx["name"],
            "FORCE_COLOR": "1",
            "CLICOLOR_FORCE": "1",
        }
        try:
            result = process.run_captured(cmd, path.parent, env)
        except OSError as exc:
            logger.warning("previewer command failed to start: %s", exc)
            return None
        if result.returncode != 0:
            logger.debug("previewer exit %d for %r", result.returncode, cmd)
        lines = [sanitize_command_output(line) for line in result.text.replace("\r", "").splitlines()[:line_limit]]
        self._command_cache[key] = lines
        return list(lines)
