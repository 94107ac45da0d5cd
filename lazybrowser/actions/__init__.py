"""Action dispatch, script bridge, and application of script results."""

from __future__ import annotations

from .bridge import ScriptError
from .dispatcher import dispatch_action

__all__ = ["ScriptError", "dispatch_action"]
