"""Route action strings to script callbacks or built-in verbs."""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from .apply import apply_config_overlay, apply_effects
from .bridge import call_script_action
from .internal import execute_internal_action, parse_internal_action

if TYPE_CHECKING:
    from ..app import App

logger = logging.getLogger("lazybrowser.dispatch")

_RUN_SCRIPT_RE = re.compile(r"run_script:(\S+)")
_SCRIPT_INDEX_RE = re.compile(r"[0-9]+")


def dispatch_action(app: App, action: str) -> bool:
    """Execute ``action`` and return whether anything ran.

    ``;`` joins several actions, run in order until one requests quit.
    ``ScriptError`` from a callback propagates to the caller.
    """
    parts = [part.strip() for part in action.split(";")]
    parts = [part for part in parts if part]
    if not parts:
        return False
    if len(parts) > 1:
        ran_any = False
        for part in parts:
            if dispatch_action(app, part):
                ran_any = True
            if app.should_quit:
                break
        return ran_any
    return _dispatch_single(app, parts[0])


def _dispatch_single(app: App, action: str) -> bool:
    match = _RUN_SCRIPT_RE.fullmatch(action)
    if match is not None:
        if _SCRIPT_INDEX_RE.fullmatch(match.group(1)) is None:
            logger.debug("unparsable script reference %r", action)
            return False
        index = int(match.group(1))
        if index < 0 or index >= len(app.registry):
            logger.debug("script index %d out of range", index)
            return False
        effects, overlay = call_script_action(app, index)
        apply_effects(app, effects)
        if overlay is not None:
            apply_config_overlay(app, overlay)
        return True

    verb = parse_internal_action(action)
    if verb is None:
        logger.debug("unknown action %r", action)
        return False
    execute_internal_action(app, verb)
    return True
