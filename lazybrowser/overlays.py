"""Modal UI overlays. ``App.overlay`` holds at most one of these, or ``None``."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union

from .config.types import UiTheme


@dataclass
class MessagesOverlay:
    pass


@dataclass
class OutputOverlay:
    title: str = "Output"
    lines: list[str] = field(default_factory=list)


@dataclass
class WhichKeyOverlay:
    prefix: str = ""


class PromptKind(Enum):
    ADD_ENTRY = "add_entry"
    RENAME_ENTRY = "rename_entry"


@dataclass
class PromptOverlay:
    title: str
    kind: PromptKind
    text: str = ""
    target: Path | None = None

    def insert(self, ch: str) -> None:
        self.text += ch

    def backspace(self) -> None:
        self.text = self.text[:-1]


@dataclass
class SearchOverlay:
    """Find-in-directory input; ``origin`` is the selection before it opened."""

    text: str = ""
    origin: int | None = None

    def insert(self, ch: str) -> None:
        self.text += ch

    def backspace(self) -> None:
        self.text = self.text[:-1]


@dataclass
class ConfirmOverlay:
    title: str
    question: str
    path: Path
    default_yes: bool = False


@dataclass(frozen=True)
class ThemePickerEntry:
    name: str
    path: Path
    theme: UiTheme


@dataclass
class ThemePickerOverlay:
    """Theme list plus the theme that was active when the picker opened."""

    entries: list[ThemePickerEntry]
    selected: int = 0
    original_theme: UiTheme | None = None
    original_theme_path: Path | None = None

    def current(self) -> ThemePickerEntry | None:
        if 0 <= self.selected < len(self.entries):
            return self.entries[self.selected]
        return None


Overlay = Union[
    MessagesOverlay,
    OutputOverlay,
    WhichKeyOverlay,
    PromptOverlay,
    SearchOverlay,
    ConfirmOverlay,
    ThemePickerOverlay,
]


def split_output_lines(text: str) -> list[str]:
    return text.replace("\r", "").splitlines()
