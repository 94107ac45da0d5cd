"""Configuration directory discovery.

``LAZYBROWSER_CONFIG_DIR`` wins; otherwise the platform user config dir is
used. The entry point is ``init.py`` and themes live under ``themes/``.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from platformdirs import user_config_dir

APP_NAME = "lazybrowser"
CONFIG_DIR_ENV = "LAZYBROWSER_CONFIG_DIR"
ENTRY_FILENAME = "init.py"
THEMES_DIRNAME = "themes"


@dataclass(frozen=True)
class ConfigPaths:
    root: Path
    entry: Path

    @property
    def exists(self) -> bool:
        return self.entry.is_file()

    @property
    def themes_dir(self) -> Path:
        return self.root / THEMES_DIRNAME


def default_config_root() -> Path:
    return Path(user_config_dir(APP_NAME, appauthor=False))


def discover_config_paths(override: Path | None = None) -> ConfigPaths:
    """Resolve the effective configuration directory and ``init.py`` path."""
    if override is not None:
        root = Path(override).expanduser()
    else:
        env_dir = os.environ.get(CONFIG_DIR_ENV, "").strip()
        root = Path(env_dir).expanduser() if env_dir else default_config_root()
    return ConfigPaths(root=root, entry=root / ENTRY_FILENAME)
