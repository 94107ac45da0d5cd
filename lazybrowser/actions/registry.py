"""Write-once table of script callbacks addressed by integer handles."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

ScriptCallback = Callable[[Any, dict], Any]


class ScriptRegistry:
    """Callbacks registered while the configuration script runs.

    Handles are assigned in registration order. Once ``freeze`` is called the
    table is read-only for the rest of the session.
    """

    def __init__(self) -> None:
        self._callbacks: list[ScriptCallback] = []
        self._descriptions: list[str | None] = []
        self._frozen = False

    def register(self, callback: ScriptCallback, description: str | None = None) -> int:
        if self._frozen:
            raise RuntimeError("script registry is frozen")
        if not callable(callback):
            raise TypeError(f"script callback must be callable, got {type(callback).__name__}")
        self._callbacks.append(callback)
        self._descriptions.append(description)
        return len(self._callbacks) - 1

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, index: int) -> ScriptCallback | None:
        """Return the callback for ``index``, or ``None`` when out of range."""
        if 0 <= index < len(self._callbacks):
            return self._callbacks[index]
        return None

    def description(self, index: int) -> str | None:
        if 0 <= index < len(self._descriptions):
            return self._descriptions[index]
        return None

    def __len__(self) -> int:
        return len(self._callbacks)
