"""Key-sequence tokens, bindings, and the multi-key sequence resolver.

Bindings map token strings such as ``"gg"`` or ``"<C-x>s"`` to action
strings. ``SequenceResolver`` accumulates typed tokens and decides whether
the pending input is a complete binding, a prefix of one, or nothing.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

MATCHED = "matched"
PENDING = "pending"
NO_MATCH = "no_match"


@dataclass(frozen=True)
class KeyMapping:
    """One key sequence bound to an action string."""

    sequence: str
    action: str
    description: str | None = None


@dataclass(frozen=True)
class Resolution:
    """Outcome of feeding one token into the resolver."""

    kind: str
    action: str | None = None
    prefix: str = ""

    @property
    def matched(self) -> bool:
        return self.kind == MATCHED

    @property
    def pending(self) -> bool:
        return self.kind == PENDING


def tokenize_sequence(sequence: str) -> list[str]:
    """Split ``sequence`` into tokens, keeping ``<...>`` forms as one unit.

    A ``<`` without a closing ``>`` is an ordinary character token.
    """
    tokens: list[str] = []
    idx = 0
    while idx < len(sequence):
        if sequence[idx] == "<":
            end = sequence.find(">", idx + 1)
            if end != -1:
                tokens.append(sequence[idx : end + 1])
                idx = end + 1
                continue
        tokens.append(sequence[idx])
        idx += 1
    return tokens


def build_token(
    ch: str,
    *,
    ctrl: bool = False,
    alt: bool = False,
    super_: bool = False,
    shift: bool = False,
) -> str:
    """Build the canonical token for ``ch`` pressed with modifiers.

    Shifted letters are plain upper-case tokens; shift is only spelled out
    (``<Sh-x>``) for non-alphabetic characters.
    """
    shift_marker = shift and not (ch.isascii() and ch.isalpha())
    if not (ctrl or alt or super_ or shift_marker):
        return ch
    parts = ["<"]
    if ctrl:
        parts.append("C-")
    if alt:
        parts.append("M-")
    if super_:
        parts.append("S-")
    if shift_marker:
        parts.append("Sh-")
    parts.append(ch)
    parts.append(">")
    return "".join(parts)


def sequence_prefixes(sequence: str) -> list[str]:
    """Return every proper token prefix of ``sequence`` (shortest first)."""
    tokens = tokenize_sequence(sequence)
    prefixes: list[str] = []
    acc = ""
    for token in tokens[:-1]:
        acc += token
        prefixes.append(acc)
    return prefixes


class SequenceResolver:
    """Prefix-matching state machine over registered key sequences."""

    def __init__(
        self,
        mappings: Iterable[KeyMapping] = (),
        timeout_ms: Callable[[], int] | int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._timeout_ms = timeout_ms if callable(timeout_ms) else (lambda value=timeout_ms: value)
        self._clock = clock
        self.maps: list[KeyMapping] = []
        self.lookup: dict[str, str] = {}
        self.prefixes: set[str] = set()
        self.pending = ""
        self.last_input_at: float | None = None
        self.set_keymaps(mappings)

    def set_keymaps(self, mappings: Iterable[KeyMapping]) -> None:
        """Replace all bindings and rebuild lookup tables.

        Later mappings for the same sequence overwrite earlier ones.
        """
        self.maps = list(mappings)
        self.lookup = {}
        self.prefixes = set()
        for mapping in self.maps:
            self.lookup[mapping.sequence] = mapping.action
            self.prefixes.update(sequence_prefixes(mapping.sequence))
        self.reset()

    def reset(self) -> None:
        self.pending = ""
        self.last_input_at = None

    def action_for(self, sequence: str) -> str | None:
        return self.lookup.get(sequence)

    def has_prefix(self, sequence: str) -> bool:
        return sequence in self.prefixes

    def mappings_with_prefix(self, prefix: str) -> list[KeyMapping]:
        """Return bindings continuing ``prefix``, for which-key style hints."""
        seen: dict[str, KeyMapping] = {}
        for mapping in self.maps:
            if mapping.sequence.startswith(prefix) and mapping.sequence != prefix:
                seen[mapping.sequence] = mapping
        return sorted(seen.values(), key=lambda mapping: mapping.sequence)

    def feed(self, token: str) -> Resolution:
        """Consume one token and report whether a binding resolved."""
        now = self._clock()
        timeout_ms = self._timeout_ms()
        if timeout_ms > 0 and self.last_input_at is not None:
            if (now - self.last_input_at) * 1000.0 > timeout_ms:
                self.pending = ""
        self.last_input_at = now

        self.pending += token
        sequence = self.pending
        action = self.lookup.get(sequence)
        if action is not None:
            self.pending = ""
            return Resolution(MATCHED, action=action)
        if sequence in self.prefixes:
            return Resolution(PENDING, prefix=sequence)

        # Whole sequence missed: retry the last token alone, then its case variants.
        self.pending = ""
        tried: set[str] = set()
        for candidate in (token, token.lower(), token.upper()):
            if candidate in tried:
                continue
            tried.add(candidate)
            action = self.lookup.get(candidate)
            if action is not None:
                return Resolution(MATCHED, action=action)
        return Resolution(NO_MATCH)
