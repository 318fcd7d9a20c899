#!/usr/bin/env python3
# ascii_mosaic/config.py
"""
Persistent settings for ASCII Mosaic.

One JSON document per user holds the conversion defaults (mode, color,
character subset, worker count), the font used to build glyphs, and logging
options. User values are merged over DEFAULT_CONFIG and every field is
validated on load, update and save, so callers can index sections directly.

    cfg = Config.load()
    cfg.update({"convert": {"subset": "classic"}})
    cfg["font"]["size"]          # -> 5
    cfg.save()

The file lives under the OS config home unless ASCII_MOSAIC_CONFIG points
elsewhere. Writes go through a temp file and os.replace.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import platform
import shutil
import tempfile
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Tuple

log = logging.getLogger(__name__)

ENV_CONFIG_PATH = "ASCII_MOSAIC_CONFIG"
CONFIG_FILENAME = "ascii_mosaic.json"

# ----------------------------
# Defaults
# ----------------------------

# Ordered lightest to darkest glyph
SUBSET_PRESETS: Dict[str, str] = {
    "classic": " .,:;ox%#@",
    "short": " o@",
}

MODES = ("ascii", "pixelization")
LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG", "NOTSET")

DEFAULT_CONFIG: Dict[str, Any] = {
    "convert": {
        "mode": "ascii",                  # ascii | pixelization
        "color": False,                   # tint glyph ink with block color
        "subset": None,                   # None = every printable ASCII char
        "workers": 1,                     # threads for block scoring
    },
    "font": {
        "path": None,                     # TrueType file; None = Pillow default font
        "size": 5,                        # also the pixelization block size
        "glyph_width": None,              # None = font size
        "glyph_height": None,             # None = font line height
    },
    "logging": {
        "level": "INFO",
        "file": None,
        "rotate_bytes": 5 * 1024 * 1024,
        "rotate_keep": 3,
    },
}

# ----------------------------
# Location
# ----------------------------

def _os_config_home() -> str:
    system = platform.system()
    if system == "Windows":
        appdata = os.environ.get("APPDATA") or os.path.join(os.path.expanduser("~"), "AppData", "Roaming")
        return os.path.join(appdata, "AsciiMosaic")
    if system == "Darwin":
        return os.path.join(os.path.expanduser("~/Library/Application Support"), "AsciiMosaic")
    xdg = os.environ.get("XDG_CONFIG_HOME") or os.path.expanduser("~/.config")
    return os.path.join(xdg, "ascii_mosaic")

def _default_config_path() -> str:
    """Config file path; ASCII_MOSAIC_CONFIG wins over the OS default."""
    override = os.environ.get(ENV_CONFIG_PATH)
    if override:
        return os.path.expanduser(override)
    return os.path.join(_os_config_home(), CONFIG_FILENAME)

# ----------------------------
# File I/O
# ----------------------------

def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    """New dict with `over` layered onto `base`, recursing into nested sections."""
    merged = dict(base)
    for key, value in over.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged

def _atomic_write_json(path: str, data: Dict[str, Any]) -> None:
    folder = os.path.dirname(path) or "."
    os.makedirs(folder, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(prefix=".ascii_mosaic_", suffix=".json", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
            fh.write("\n")
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise

def _read_user_config(path: str) -> Dict[str, Any]:
    """Parsed JSON object from path. Unreadable files are kept aside as *.corrupt.bak."""
    try:
        with open(path, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, ValueError) as exc:
        backup = path + ".corrupt.bak"
        log.warning("Config %s unreadable (%s), moving it to %s", path, exc, backup)
        try:
            shutil.copyfile(path, backup)
        except OSError:
            log.warning("Could not back up %s", path)
        return {}
    if not isinstance(raw, dict):
        log.warning("Config %s is not a JSON object, using defaults", path)
        return {}
    return raw

# ----------------------------
# Coercion
# ----------------------------

def _coerce_int(v: Any, default: int, bounds: Optional[Tuple[int, int]] = None) -> int:
    try:
        n = int(v)
    except (TypeError, ValueError):
        n = int(default)
    if bounds is not None:
        n = min(bounds[1], max(bounds[0], n))
    return n

def _coerce_opt_int(v: Any, bounds: Tuple[int, int]) -> Optional[int]:
    return None if v is None else _coerce_int(v, bounds[0], bounds)

def _coerce_bool(v: Any, default: bool) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, str):
        word = v.strip().lower()
        if word in ("1", "true", "yes", "on"):
            return True
        if word in ("0", "false", "no", "off"):
            return False
    return default

def _coerce_choice(v: Any, choices: Tuple[str, ...], default: str) -> str:
    return v if v in choices else default

def _coerce_subset(v: Any) -> Optional[str]:
    """None or '' -> full range; preset names resolve to their string."""
    if not v or not isinstance(v, str):
        return None
    return SUBSET_PRESETS.get(v, v)

def _coerce_path(v: Any) -> Optional[str]:
    return os.path.expanduser(str(v)) if v else None

# ----------------------------
# Validation
# ----------------------------

def _check_convert(sec: Dict[str, Any], dflt: Dict[str, Any]) -> None:
    sec["mode"] = _coerce_choice(sec.get("mode"), MODES, dflt["mode"])
    sec["color"] = _coerce_bool(sec.get("color"), dflt["color"])
    sec["subset"] = _coerce_subset(sec.get("subset"))
    sec["workers"] = _coerce_int(sec.get("workers"), dflt["workers"], (1, 32))

def _check_font(sec: Dict[str, Any], dflt: Dict[str, Any]) -> None:
    sec["path"] = _coerce_path(sec.get("path"))
    sec["size"] = _coerce_int(sec.get("size"), dflt["size"], (2, 256))
    sec["glyph_width"] = _coerce_opt_int(sec.get("glyph_width"), (1, 1024))
    sec["glyph_height"] = _coerce_opt_int(sec.get("glyph_height"), (1, 1024))

def _check_logging(sec: Dict[str, Any], dflt: Dict[str, Any]) -> None:
    level = sec.get("level")
    sec["level"] = _coerce_choice(level.upper() if isinstance(level, str) else level, LOG_LEVELS, dflt["level"])
    sec["file"] = _coerce_path(sec.get("file"))
    sec["rotate_bytes"] = _coerce_int(sec.get("rotate_bytes"), dflt["rotate_bytes"], (64 * 1024, 100 * 1024 * 1024))
    sec["rotate_keep"] = _coerce_int(sec.get("rotate_keep"), dflt["rotate_keep"], (0, 50))

_SECTION_CHECKS: Dict[str, Callable[[Dict[str, Any], Dict[str, Any]], None]] = {
    "convert": _check_convert,
    "font": _check_font,
    "logging": _check_logging,
}

def _validate(cfg: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Defaults merged with cfg, every known field coerced into range."""
    out = _deep_merge(copy.deepcopy(DEFAULT_CONFIG), cfg or {})
    for name, check in _SECTION_CHECKS.items():
        if not isinstance(out.get(name), dict):
            out[name] = copy.deepcopy(DEFAULT_CONFIG[name])
        check(out[name], DEFAULT_CONFIG[name])
    return out

# ----------------------------
# Public API
# ----------------------------

@dataclass
class Config:
    """Validated settings document bound to the file it was loaded from."""
    data: Dict[str, Any] = field(default_factory=lambda: _validate(None))
    path: str = field(default_factory=_default_config_path)

    def __getitem__(self, section: str) -> Any:
        return self.data[section]

    def __setitem__(self, section: str, value: Any) -> None:
        self.data[section] = value

    def get(self, section: str, default: Any = None) -> Any:
        return self.data.get(section, default)

    @classmethod
    def load(cls, path: Optional[str] = None, create_if_missing: bool = True) -> "Config":
        """
        Read and validate the config at path (default location when None).
        A missing file yields defaults, written out when create_if_missing.
        """
        cfg_path = os.path.expanduser(path) if path else _default_config_path()
        if os.path.exists(cfg_path):
            return cls(_validate(_read_user_config(cfg_path)), cfg_path)

        cfg = cls(_validate(None), cfg_path)
        if create_if_missing:
            cfg.save()
        return cfg

    def save(self) -> None:
        self.data = _validate(self.data)
        _atomic_write_json(self.path, self.data)

    def update(self, partial: Dict[str, Any]) -> None:
        """Layer partial over the current values and revalidate."""
        self.data = _validate(_deep_merge(self.data, partial))

    @property
    def mode(self) -> str:
        return self.data["convert"]["mode"]

    @property
    def subset(self) -> Optional[str]:
        return self.data["convert"]["subset"]


__all__ = [
    "Config",
    "DEFAULT_CONFIG",
    "SUBSET_PRESETS",
]
