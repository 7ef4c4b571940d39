from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigError
from .log import get_logger

log = get_logger(__name__)

INPUT_MODES = ("auto", "line", "char")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in ("1", "true", "yes", "y", "on")


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    v = os.getenv(name)
    return default if v is None or v == "" else v


@dataclass
class Settings:
    # Source
    database: Optional[str] = None
    include_tag_entries: bool = True
    max_depth: int = 256

    # Paging
    per_page: int = 25
    input_mode: str = "auto"  # auto | line | char

    # Logging / UX
    log_level: str = "WARNING"
    no_color: bool = False

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        s.database = _env_str("BOOKMARKER_DATABASE", s.database)
        s.include_tag_entries = _env_bool("BOOKMARKER_INCLUDE_TAG_ENTRIES", s.include_tag_entries)
        s.max_depth = _env_int("BOOKMARKER_MAX_DEPTH", s.max_depth)

        s.per_page = _env_int("BOOKMARKER_PER_PAGE", s.per_page)
        s.input_mode = _env_str("BOOKMARKER_INPUT_MODE", s.input_mode) or "auto"

        s.log_level = _env_str("BOOKMARKER_LOG_LEVEL", s.log_level) or "WARNING"
        s.no_color = _env_bool("BOOKMARKER_NO_COLOR", s.no_color)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        s = Settings.from_env()
        known = {f.name for f in fields(Settings)}
        for k, v in data.items():
            if k in known:
                setattr(s, k, v)
            else:
                log.warning("Ignoring unknown config key %r in %s", k, path)
        return s


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        s = Settings.from_file(Path(config_path))
    else:
        s = Settings.from_env()
    validate(s)
    return s


def validate(s: Settings) -> None:
    """Raise ConfigError for a value the store or pager cannot use."""
    for name in ("per_page", "max_depth"):
        v = getattr(s, name)
        if isinstance(v, bool) or not isinstance(v, int) or v < 1:
            raise ConfigError(f"{name} must be a positive integer, got {v!r}")
    if s.input_mode not in INPUT_MODES:
        raise ConfigError(f"input_mode must be one of {', '.join(INPUT_MODES)}, got {s.input_mode!r}")
