"""Interactive event loop and per-key handling.

``handle_key`` is the single entry point for a decoded key token. A pending
mark letter and the overlays that capture input (prompt, find, confirm,
theme picker) see the key first; everything else goes through the
key-sequence resolver and then the built-in navigation fallbacks.
"""

from __future__ import annotations

import logging
import shutil
from typing import TYPE_CHECKING

from .actions import ScriptError, dispatch_action
from .input import is_named_key, read_key
from .overlays import ConfirmOverlay, PromptOverlay, SearchOverlay, ThemePickerOverlay, WhichKeyOverlay
from .render import render_screen

if TYPE_CHECKING:
    from .app import App
    from .terminal import TerminalController

logger = logging.getLogger("lazybrowser.app")

READ_TIMEOUT_MS = 120


def _handle_prompt_key(app: App, prompt: PromptOverlay, key: str) -> None:
    if key == "ESC":
        app.close_overlay()
    elif key == "ENTER":
        app.submit_prompt()
    elif key == "BACKSPACE":
        prompt.backspace()
        app.force_full_redraw = True
    elif not is_named_key(key) and len(key) == 1 and key.isprintable():
        prompt.insert(key)
        app.force_full_redraw = True


def _handle_confirm_key(app: App, confirm: ConfirmOverlay, key: str) -> None:
    if key in {"y", "Y"} or (key == "ENTER" and confirm.default_yes):
        app.answer_confirm(True)
    elif key in {"n", "N", "ESC", "ENTER"}:
        app.answer_confirm(False)


def _handle_search_key(app: App, search: SearchOverlay, key: str) -> None:
    if key == "ESC":
        app.cancel_search()
    elif key == "ENTER":
        app.submit_search()
    elif key == "BACKSPACE":
        search.backspace()
        app.update_search_live()
    elif not is_named_key(key) and len(key) == 1 and key.isprintable():
        search.insert(key)
        app.update_search_live()


def _handle_pending_mark_key(app: App, key: str) -> None:
    adding = app.pending_mark
    app.cancel_pending_mark()
    if is_named_key(key) or len(key) != 1 or not key.isprintable():
        return
    if adding:
        app.add_mark(key)
    else:
        app.goto_mark(key)


def _handle_theme_picker_key(app: App, key: str) -> None:
    if key in {"j", "DOWN"}:
        app.theme_picker_move(1)
    elif key in {"k", "UP"}:
        app.theme_picker_move(-1)
    elif key == "ENTER":
        app.confirm_theme_picker()
    elif key in {"ESC", "q"}:
        app.cancel_theme_picker()


def _run_action(app: App, action: str) -> None:
    try:
        dispatch_action(app, action)
    except ScriptError as exc:
        app.show_error(str(exc.cause))


def _fallback_key(app: App, key: str) -> None:
    if key == "q":
        app.should_quit = True
    elif key == "ESC":
        app.resolver.reset()
        app.close_overlay()
    elif key in {"UP", "k"}:
        app.move_cursor(-1)
    elif key in {"DOWN", "j"}:
        app.move_cursor(1)
    elif key in {"ENTER", "RIGHT", "l"}:
        app.enter_selected()
    elif key in {"BACKSPACE", "LEFT", "h"}:
        app.go_parent()
    else:
        return
    app.force_full_redraw = True


def handle_key(app: App, key: str) -> bool:
    """Process one key token. Returns ``True`` when the app should quit."""
    if not key:
        return app.should_quit
    if app.pending_mark or app.pending_goto:
        _handle_pending_mark_key(app, key)
        return app.should_quit
    overlay = app.overlay
    if isinstance(overlay, PromptOverlay):
        _handle_prompt_key(app, overlay, key)
        return app.should_quit
    if isinstance(overlay, SearchOverlay):
        _handle_search_key(app, overlay, key)
        return app.should_quit
    if isinstance(overlay, ConfirmOverlay):
        _handle_confirm_key(app, overlay, key)
        return app.should_quit
    if isinstance(overlay, ThemePickerOverlay):
        _handle_theme_picker_key(app, key)
        return app.should_quit

    if key == "?" and not app.resolver.pending:
        app.toggle_which_key()
        return app.should_quit

    if not is_named_key(key):
        resolution = app.resolver.feed(key)
        if resolution.matched:
            if isinstance(app.overlay, WhichKeyOverlay):
                app.close_overlay()
            if resolution.action is None:
                return app.should_quit
            logger.debug("key %r -> %s", key, resolution.action)
            _run_action(app, resolution.action)
            return app.should_quit
        if resolution.pending:
            app.open_overlay(WhichKeyOverlay(prefix=resolution.prefix))
            return app.should_quit
        if isinstance(app.overlay, WhichKeyOverlay):
            app.close_overlay()
    else:
        app.resolver.reset()
        if isinstance(app.overlay, WhichKeyOverlay) and key != "ESC":
            app.close_overlay()

    _fallback_key(app, key)
    return app.should_quit


def run(app: App, terminal: TerminalController, stdin_fd: int) -> None:
    """Drive render/input until a quit is requested."""
    last_size: tuple[int, int] | None = None
    with terminal.raw_mode():
        while not app.should_quit:
            term = shutil.get_terminal_size((80, 24))
            size = (term.columns, term.lines)
            if size != last_size:
                last_size = size
                app.force_full_redraw = True
            if app.force_full_redraw or not terminal.active:
                if not terminal.active:
                    terminal.restore()
                rows = render_screen(app, term.columns, term.lines)
                terminal.write("\033[H\033[2J" + "\r\n".join(rows))
                app.force_full_redraw = False

            try:
                key = read_key(stdin_fd, timeout_ms=READ_TIMEOUT_MS)
            except KeyboardInterrupt:
                continue
            if key == "":
                continue
            if handle_key(app, key):
                break
