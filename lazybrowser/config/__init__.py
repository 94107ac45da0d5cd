"""Typed configuration, discovery of the config directory, and loading.

The loader lives in ``lazybrowser.config.loader``; it is not re-exported
here because it depends on the action registry.
"""

from __future__ import annotations

from .paths import CONFIG_DIR_ENV, ConfigPaths, discover_config_paths
from .types import (
    Config,
    KeysConfig,
    UiConfig,
    UiPanes,
    UiRowFormat,
    UiRowWidths,
    UiTheme,
)

__all__ = [
    "CONFIG_DIR_ENV",
    "Config",
    "ConfigPaths",
    "KeysConfig",
    "UiConfig",
    "UiPanes",
    "UiRowFormat",
    "UiRowWidths",
    "UiTheme",
    "discover_config_paths",
]
