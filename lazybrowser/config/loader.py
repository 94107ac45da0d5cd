"""Load ``init.py`` into a typed ``Config`` plus key bindings and callbacks.

The configuration script runs once, with a ``ConfigApi`` instance bound to
the global name ``lb``. Every ``lb`` call writes into one ``ConfigBuilder``;
nothing else is shared with the script after loading finishes.
"""

from __future__ import annotations

import logging
import runpy
from collections.abc import Callable, Mapping
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .. import process
from ..actions.registry import ScriptRegistry
from ..enums import display_mode_from_str, info_mode_from_str, sort_key_from_str
from ..keymap import KeyMapping
from .defaults import register_defaults
from .paths import ConfigPaths
from .theme import ThemeError, find_theme_file, load_theme_from_file, theme_from_mapping
from .types import Config, UiPanes, UiRowFormat, UiRowWidths

logger = logging.getLogger("lazybrowser.config")
trace_logger = logging.getLogger("lazybrowser.script.trace")

INIT_MODULE_NAME = "__lazybrowser_init__"


class ConfigLoadError(Exception):
    """Raised when ``init.py`` cannot be read or fails while running."""

    def __init__(self, path: Path | str, cause: BaseException) -> None:
        super().__init__(f"{path}: {cause}")
        self.path = path
        self.cause = cause


@dataclass
class ConfigBuilder:
    config: Config = field(default_factory=Config)
    keymaps: list[KeyMapping] = field(default_factory=list)
    registry: ScriptRegistry = field(default_factory=ScriptRegistry)
    root: Path | None = None
    previewer: Callable[[dict[str, Any]], Any] | None = None

    @property
    def themes_dir(self) -> Path | None:
        return self.root / "themes" if self.root is not None else None


@dataclass
class LoadedConfig:
    config: Config
    keymaps: list[KeyMapping]
    registry: ScriptRegistry
    paths: ConfigPaths | None = None
    previewer: Callable[[dict[str, Any]], Any] | None = None


def _non_negative_int(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value >= 0:
        return value
    return None


def _ignored(key: str, value: object, expected: str) -> None:
    logger.warning("ignoring %s=%r: expected %s", key, value, expected)


class _SettingsWriter:
    """Applies one ``lb.config`` table onto the builder."""

    def __init__(self, builder: ConfigBuilder) -> None:
        self.builder = builder

    def apply(self, table: Mapping[str, Any]) -> None:
        cfg = self.builder.config
        if "config_version" in table:
            version = _non_negative_int(table["config_version"])
            if version is None:
                _ignored("config_version", table["config_version"], "a non-negative integer")
            else:
                cfg.config_version = version

        keys = table.get("keys")
        if isinstance(keys, Mapping) and "sequence_timeout_ms" in keys:
            timeout = _non_negative_int(keys["sequence_timeout_ms"])
            if timeout is None:
                _ignored("keys.sequence_timeout_ms", keys["sequence_timeout_ms"], "milliseconds")
            else:
                cfg.keys.sequence_timeout_ms = timeout

        ui = table.get("ui")
        if isinstance(ui, Mapping):
            self._apply_ui(ui)

    def _apply_ui(self, ui: Mapping[str, Any]) -> None:
        cfg = self.builder.config.ui

        panes = ui.get("panes")
        if isinstance(panes, Mapping):
            cfg.panes = UiPanes(**self._ints(panes, "ui.panes", asdict(cfg.panes)))

        for key in ("show_hidden", "sort_reverse", "confirm_delete"):
            if key in ui:
                if isinstance(ui[key], bool):
                    setattr(cfg, key, ui[key])
                else:
                    _ignored(f"ui.{key}", ui[key], "a boolean")

        for key in ("preview_lines", "max_list_items"):
            if key in ui:
                number = _non_negative_int(ui[key])
                if number is None:
                    _ignored(f"ui.{key}", ui[key], "a non-negative integer")
                else:
                    setattr(cfg, key, number)

        if "date_format" in ui:
            value = ui["date_format"]
            if value is None or isinstance(value, str):
                cfg.date_format = value
            else:
                _ignored("ui.date_format", value, "a strftime string")

        for key, parse in (
            ("display_mode", display_mode_from_str),
            ("sort", sort_key_from_str),
            ("show", info_mode_from_str),
        ):
            if key in ui:
                value = ui[key]
                if isinstance(value, str) and parse(value) is not None:
                    setattr(cfg, key, value.strip().lower())
                else:
                    _ignored(f"ui.{key}", value, "a known mode name")

        row = ui.get("row")
        if isinstance(row, Mapping):
            values = asdict(cfg.row)
            for key in values:
                if isinstance(row.get(key), str):
                    values[key] = row[key]
            cfg.row = UiRowFormat(**values)

        if "row_widths" in ui:
            widths = ui["row_widths"]
            if widths is None:
                cfg.row_widths = None
            elif isinstance(widths, Mapping):
                base = asdict(cfg.row_widths or UiRowWidths())
                cfg.row_widths = UiRowWidths(**self._ints(widths, "ui.row_widths", base))

        if "theme_path" in ui:
            self._apply_theme_path(ui["theme_path"])
        if "theme" in ui:
            self._apply_theme(ui["theme"])

    def _ints(self, table: Mapping[str, Any], label: str, base: Mapping[str, int]) -> dict[str, int]:
        values = dict(base)
        for key in values:
            if key in table:
                number = _non_negative_int(table[key])
                if number is None:
                    _ignored(f"{label}.{key}", table[key], "a non-negative integer")
                else:
                    values[key] = number
        return values

    def _apply_theme(self, value: object) -> None:
        cfg = self.builder.config.ui
        if value is None:
            cfg.theme = None
            cfg.theme_path = None
            return
        if isinstance(value, str):
            themes_dir = self.builder.themes_dir
            path = find_theme_file(themes_dir, value) if themes_dir is not None else None
            if path is None:
                logger.warning("theme %r not found", value)
                return
            self._apply_theme_path(str(path))
            return
        if not isinstance(value, Mapping):
            _ignored("ui.theme", value, "a table or theme name")
            return
        merged: dict[str, Any] = cfg.theme.as_dict() if cfg.theme is not None else {}
        for key, colour in value.items():
            if colour is None:
                merged.pop(key, None)
            else:
                merged[key] = colour
        cfg.theme = theme_from_mapping(merged)

    def _apply_theme_path(self, value: object) -> None:
        cfg = self.builder.config.ui
        if value is None:
            cfg.theme_path = None
            return
        if not isinstance(value, str):
            _ignored("ui.theme_path", value, "a path string")
            return
        path = Path(value).expanduser()
        if not path.is_absolute() and self.builder.root is not None:
            path = self.builder.root / path
        try:
            cfg.theme = load_theme_from_file(path)
        except ThemeError as exc:
            logger.warning("cannot load theme: %s", exc)
            return
        cfg.theme_path = path


class ConfigApi:
    """The ``lb`` object visible to ``init.py``."""

    def __init__(self, builder: ConfigBuilder) -> None:
        self._builder = builder
        self._settings = _SettingsWriter(builder)

    def config(self, table: Mapping[str, Any]) -> None:
        """Merge ``table`` into the configuration being built."""
        if not isinstance(table, Mapping):
            raise TypeError("lb.config expects a dict")
        self._settings.apply(table)

    def mapkey(self, keys: str, action: str, description: str | None = None) -> None:
        """Bind ``keys`` to a built-in action string."""
        if not isinstance(keys, str) or not keys:
            raise ValueError("lb.mapkey: key sequence must be a non-empty string")
        if not isinstance(action, str):
            raise TypeError("lb.mapkey: action must be a string")
        self._builder.keymaps.append(KeyMapping(keys, action, description))

    def map_action(self, keys: str, description: str | None, fn: Callable[..., Any]) -> int:
        """Register ``fn(lb, config)`` and bind ``keys`` to it."""
        if not isinstance(keys, str) or not keys:
            raise ValueError("lb.map_action: key sequence must be a non-empty string")
        index = self._builder.registry.register(fn, description)
        self._builder.keymaps.append(KeyMapping(keys, f"run_script:{index}", description))
        return index

    def set_previewer(self, fn: Callable[[dict[str, Any]], Any]) -> None:
        """Register ``fn(ctx)`` returning a shell command whose output is the preview.

        ``ctx`` carries ``path``, ``directory``, ``name``, ``extension``,
        ``is_binary`` and ``height``. Returning ``None`` keeps the built-in
        preview for that file.
        """
        if not callable(fn):
            raise TypeError("lb.set_previewer expects a function")
        self._builder.previewer = fn

    def quote(self, value: str) -> str:
        return process.quote(value)

    def get_os_name(self) -> str:
        return process.os_name()

    def getenv(self, name: str, default: str | None = None) -> str | None:
        return process.getenv(name, default)

    def trace(self, text: object) -> None:
        trace_logger.info("%s", text)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        raise AttributeError(f"lb.{name} is not a configuration function")


def _finish(builder: ConfigBuilder, paths: ConfigPaths | None) -> LoadedConfig:
    builder.registry.freeze()
    return LoadedConfig(
        config=builder.config,
        keymaps=list(builder.keymaps),
        registry=builder.registry,
        paths=paths,
        previewer=builder.previewer,
    )


def _run_source(api: ConfigApi, source: str, filename: str) -> None:
    namespace: dict[str, Any] = {"__name__": INIT_MODULE_NAME, "__file__": filename, "lb": api}
    try:
        exec(compile(source, filename, "exec"), namespace)
    except Exception as exc:
        raise ConfigLoadError(filename, exc) from exc


def _run_file(api: ConfigApi, path: Path) -> None:
    try:
        runpy.run_path(str(path), init_globals={"lb": api}, run_name=INIT_MODULE_NAME)
    except Exception as exc:
        raise ConfigLoadError(path, exc) from exc


def _defaults_builder(paths: ConfigPaths | None) -> tuple[ConfigBuilder, ConfigApi]:
    builder = ConfigBuilder(root=paths.root if paths is not None else None)
    api = ConfigApi(builder)
    register_defaults(api)
    return builder, api


def load_config_from_code(code: str, paths: ConfigPaths | None = None, filename: str = "<init.py>") -> LoadedConfig:
    """Run ``code`` as a configuration script on top of the defaults."""
    builder, api = _defaults_builder(paths)
    _run_source(api, code, filename)
    logger.debug("loaded %d key bindings, %d scripts", len(builder.keymaps), len(builder.registry))
    return _finish(builder, paths)


def load_config(paths: ConfigPaths | None, *, use_user_config: bool = True) -> LoadedConfig:
    """Load defaults, then run ``paths.entry`` when it exists and is enabled."""
    builder, api = _defaults_builder(paths)
    if paths is None or not use_user_config or not paths.exists:
        return _finish(builder, paths)

    logger.info("loading %s", paths.entry)
    _run_file(api, paths.entry)
    logger.debug("loaded %d key bindings, %d scripts", len(builder.keymaps), len(builder.registry))
    return _finish(builder, paths)
