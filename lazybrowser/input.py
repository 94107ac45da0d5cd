"""Low-level terminal input decoding.

Reads raw bytes from stdin and translates them into key tokens: printable
characters as themselves, control and Alt combinations in bracket form
(``<C-x>``, ``<M-x>``), and named keys (``UP``, ``ENTER``, ``ESC`` ...).
"""

from __future__ import annotations

import os
import select

from .keymap import build_token

ESC_SEQUENCE_TIMEOUT_MS = 25
_PENDING_BYTES: list[bytes] = []

NAMED_KEYS = frozenset({"UP", "DOWN", "LEFT", "RIGHT", "ENTER", "ESC", "BACKSPACE", "TAB"})

_CSI_KEYS = {b"A": "UP", b"B": "DOWN", b"C": "RIGHT", b"D": "LEFT"}


def is_named_key(key: str) -> bool:
    return key in NAMED_KEYS


def _read_ready_byte(fd: int, timeout_ms: int) -> bytes | None:
    if _PENDING_BYTES:
        return _PENDING_BYTES.pop(0)
    ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
    if not ready:
        return None
    ch = os.read(fd, 1)
    if not ch:
        return None
    return ch


def _utf8_length(lead: int) -> int:
    if lead >= 0xF0:
        return 4
    if lead >= 0xE0:
        return 3
    if lead >= 0xC0:
        return 2
    return 1


def _decode_char(fd: int, first: bytes) -> str:
    data = first
    for _ in range(_utf8_length(first[0]) - 1):
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        data += nxt
    return data.decode("utf-8", errors="replace")


def _control_token(ch: bytes) -> str | None:
    code = ch[0]
    if ch == b"\t":
        return "TAB"
    if ch in {b"\x08", b"\x7f"}:
        return "BACKSPACE"
    if ch in {b"\r", b"\n"}:
        return "ENTER"
    if 1 <= code <= 26:
        return build_token(chr(code + 96), ctrl=True)
    return None


def read_key(fd: int, timeout_ms: int | None = None) -> str:
    """Read one key token from ``fd``; ``""`` on timeout or EOF."""
    if _PENDING_BYTES:
        ch = _PENDING_BYTES.pop(0)
    else:
        if timeout_ms is not None:
            ready, _, _ = select.select([fd], [], [], max(0.0, timeout_ms / 1000.0))
            if not ready:
                return ""
        ch = os.read(fd, 1)
        if not ch:
            return ""

    if ch != b"\x1b":
        control = _control_token(ch)
        if control is not None:
            return control
        return _decode_char(fd, ch)

    seq = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if seq is None:
        return "ESC"
    if seq == b"\x1b":
        _PENDING_BYTES.append(seq)
        return "ESC"
    if seq not in {b"[", b"O"}:
        if seq[0] < 0x20 or seq == b"\x7f":
            _PENDING_BYTES.append(seq)
            return "ESC"
        # Alt+key arrives as ESC followed by the key.
        return build_token(_decode_char(fd, seq), alt=True)

    final = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
    if final is None:
        return "ESC"
    if final in _CSI_KEYS:
        return _CSI_KEYS[final]
    # Swallow the rest of an unknown CSI sequence up to its final byte.
    part = final
    for _ in range(16):
        if 0x40 <= part[0] <= 0x7E:
            break
        nxt = _read_ready_byte(fd, ESC_SEQUENCE_TIMEOUT_MS)
        if nxt is None:
            break
        part = nxt
    return "ESC"
