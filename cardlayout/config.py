from __future__ import annotations

import copy
import os
import platform
from pathlib import Path
from typing import Any

import yaml

from cardlayout.layout.engine import DEFAULT_EXPORT_SIZE, DEFAULT_PERCENT_PRECISION
from cardlayout.layout.verify import DEFAULT_ASPECT_TOLERANCE, DEFAULT_FRACTION_MAX, DEFAULT_FRACTION_MIN

CONFIG_ENV_VAR = "CARDLAYOUT_CONFIG"

# The reference-size fallback lives in cardlayout.constants and is not
# configurable: preview and export must always agree on it.
DEFAULT_CONFIG: dict[str, Any] = {
    "context": "preview",
    "export_width": DEFAULT_EXPORT_SIZE[0],
    "export_height": DEFAULT_EXPORT_SIZE[1],
    "percent_precision": DEFAULT_PERCENT_PRECISION,
    "font_path": None,
    "log_level": "info",
    "verify": {
        "fraction_min": DEFAULT_FRACTION_MIN,
        "fraction_max": DEFAULT_FRACTION_MAX,
        "aspect_tolerance": DEFAULT_ASPECT_TOLERANCE,
    },
}


def get_user_data_dir() -> Path:
    system_name = platform.system().lower()
    if system_name == "windows":
        base = (
            os.environ.get("APPDATA")
            or os.environ.get("LOCALAPPDATA")
            or str(Path.home() / "AppData" / "Roaming")
        )
        return Path(base) / "CardLayout"
    if system_name == "darwin":
        return Path.home() / "Library" / "Application Support" / "CardLayout"

    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return Path(xdg_config_home) / "CardLayout"
    return Path.home() / ".config" / "CardLayout"


def get_config_path() -> Path:
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return get_user_data_dir() / "config.yaml"


def _deep_merge(base: dict[str, Any], incoming: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in incoming.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(path: Path | None = None) -> dict[str, Any]:
    cfg_path = path or get_config_path()
    if not cfg_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    text = cfg_path.read_text(encoding="utf-8")
    loaded = yaml.safe_load(text) or {}
    if not isinstance(loaded, dict):
        loaded = {}
    return _deep_merge(DEFAULT_CONFIG, loaded)


def write_default_config(path: Path | None = None, force: bool = False) -> Path:
    cfg_path = path or get_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    if cfg_path.exists() and not force:
        return cfg_path
    cfg_path.write_text(yaml.safe_dump(DEFAULT_CONFIG, sort_keys=False, allow_unicode=True), encoding="utf-8")
    return cfg_path


def verify_options(cfg: dict[str, Any]) -> dict[str, float]:
    section = cfg.get("verify") or {}
    defaults = DEFAULT_CONFIG["verify"]
    options: dict[str, float] = {}
    for key in ("fraction_min", "fraction_max", "aspect_tolerance"):
        try:
            options[key] = float(section.get(key, defaults[key]))
        except (TypeError, ValueError):
            options[key] = float(defaults[key])
    return options


def export_size(cfg: dict[str, Any]) -> tuple[int, int]:
    try:
        width = int(cfg.get("export_width") or DEFAULT_EXPORT_SIZE[0])
        height = int(cfg.get("export_height") or DEFAULT_EXPORT_SIZE[1])
    except (TypeError, ValueError):
        return DEFAULT_EXPORT_SIZE
    return (max(1, width), max(1, height))
