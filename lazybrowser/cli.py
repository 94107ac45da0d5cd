"""Command-line front door for lazybrowser.

Parses CLI options, resolves the start directory and loads the
configuration script. Then hands control to the interactive runtime.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .app import App
from .config.loader import ConfigLoadError, LoadedConfig, load_config
from .config.paths import ConfigPaths, discover_config_paths
from .runtime import run
from .terminal import TerminalController
from .trace import init_tracing

logger = logging.getLogger("lazybrowser.app")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="lazybrowser",
        description="Browse directories in a three-pane terminal file manager.",
    )
    parser.add_argument("path", nargs="?", default=None, help="Directory to open. Defaults to current directory.")
    parser.add_argument("--config-dir", metavar="DIR", default=None, help="Configuration directory holding init.py.")
    parser.add_argument("--trace", metavar="FILE", default=None, help="Append debug logging to FILE.")
    parser.add_argument("--no-config", action="store_true", help="Ignore init.py and start with defaults.")
    return parser


def resolve_start(path_arg: str | None, default_path: Path | None = None) -> tuple[Path, str | None]:
    """Return ``(directory, name_to_select)`` for the positional argument.

    A file argument opens its parent directory with the file selected.
    """
    path = Path(path_arg) if path_arg else (default_path or Path.cwd())
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    path = path.absolute()
    if path.is_dir():
        return path, None
    return path.parent, path.name


def load_startup_config(paths: ConfigPaths, use_user_config: bool) -> LoadedConfig:
    """Load ``init.py``; on failure report to stderr and fall back to defaults."""
    try:
        return load_config(paths, use_user_config=use_user_config)
    except ConfigLoadError as exc:
        logger.error("%s", exc)
        print(f"lazybrowser: {exc}", file=sys.stderr)
        return load_config(paths, use_user_config=False)


def main(argv: list[str] | None = None, default_path: Path | None = None) -> None:
    """Parse CLI arguments and launch the browser.

    ``default_path`` is primarily for tests; when omitted the current working
    directory is used.
    """
    args = build_parser().parse_args(argv)
    init_tracing(args.trace)

    cwd, select_name = resolve_start(args.path, default_path)
    config_dir = Path(args.config_dir) if args.config_dir else None
    paths = discover_config_paths(config_dir)
    loaded = load_startup_config(paths, use_user_config=not args.no_config)

    if not sys.stdin.isatty():
        raise SystemExit("lazybrowser needs an interactive terminal.")

    terminal = TerminalController(sys.stdin.fileno(), sys.stdout.fileno())
    app = App(loaded, cwd, terminal=terminal)
    app.set_cwd(app.cwd, select_name=select_name)
    logger.info("starting in %s", app.cwd)
    run(app, terminal, sys.stdin.fileno())


if __name__ == "__main__":
    main()
