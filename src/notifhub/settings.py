"""Configuration loading for notifhub.

All user-editable settings (database, event source, app labels, retention,
logging) live in a single JSON file for quick edits without touching Python.
The parsed ``Settings`` object is passed explicitly to whatever needs it.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from typing import Any, Optional

from dotenv import load_dotenv

from notifhub.core.config import RetentionConfig, SourceConfig

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# Default config location; NOTIFHUB_CONFIG or --config override it.
CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

SOURCE_TYPES = {"adb", "telegram"}
THEMES = {"dark", "light"}


@dataclass(frozen=True)
class Settings:
    """Parsed config.json."""

    db_path: str
    own_id: str = ""
    source: SourceConfig = field(default_factory=SourceConfig)
    app_labels: dict[str, str] = field(default_factory=dict)
    retention: RetentionConfig = field(default_factory=RetentionConfig)
    theme: str = "dark"
    logging: dict[str, Any] = field(default_factory=dict)
    config_path: str = CONFIG_PATH

    @property
    def exports_dir(self) -> str:
        return os.path.join(os.path.dirname(self.config_path), "exports")


def resolve_config_path(explicit: Optional[str] = None) -> str:
    """Pick the config path: explicit argument, then NOTIFHUB_CONFIG, then default."""

    if explicit:
        return os.path.abspath(explicit)
    load_dotenv()
    return os.path.abspath(os.getenv("NOTIFHUB_CONFIG") or CONFIG_PATH)


def _load_json_config(path: str) -> dict:
    if not os.path.exists(path):
        raise FileNotFoundError(
            f"Config file not found: {path} (pass --config or set NOTIFHUB_CONFIG)"
        )

    with open(path, "r", encoding="utf-8") as handle:
        loaded = json.load(handle)
    if not isinstance(loaded, dict):
        raise ValueError("config root must be an object")
    return loaded


def _parse_source(raw: dict) -> SourceConfig:
    source_type = str(raw.get("type", "adb")).lower()
    if source_type not in SOURCE_TYPES:
        raise ValueError(f"source.type must be one of {sorted(SOURCE_TYPES)}, got {source_type!r}")
    poll_interval = float(raw.get("poll_interval", 5.0))
    if poll_interval <= 0:
        raise ValueError("source.poll_interval must be positive")
    return SourceConfig(
        type=source_type,
        adb_serial=raw.get("adb_serial") or None,
        poll_interval=poll_interval,
    )


def _parse_retention(raw: dict) -> RetentionConfig:
    days = int(raw.get("days", RetentionConfig.days))
    if days <= 0:
        raise ValueError("retention.days must be positive")
    return RetentionConfig(
        days=days,
        sweep_interval_minutes=max(0, int(raw.get("sweep_interval_minutes", 0))),
    )


def _resolve_db_path(raw_path: str, config_path: str) -> str:
    if os.path.isabs(raw_path):
        return raw_path
    return os.path.join(os.path.dirname(config_path), raw_path)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load and validate config.json into a Settings object."""

    config_path = resolve_config_path(path)
    config = _load_json_config(config_path)

    # Relative paths are anchored at the config file, not the working dir.
    db_path = _resolve_db_path(str(config.get("db_path", "data/notifhub.db")), config_path)

    theme = str(config.get("ui", {}).get("theme", "dark")).lower()
    if theme not in THEMES:
        theme = "dark"

    app_labels = {str(key): str(value) for key, value in (config.get("app_labels") or {}).items()}

    return Settings(
        db_path=db_path,
        own_id=str(config.get("own_id", "")),
        source=_parse_source(config.get("source", {})),
        app_labels=app_labels,
        retention=_parse_retention(config.get("retention", {})),
        theme=theme,
        logging=config.get("logging", {}),
        config_path=config_path,
    )


def save_theme(config_path: str, theme: str) -> None:
    """Persist the viewer theme into the ui section of config.json."""

    config = _load_json_config(config_path)
    ui = config.get("ui")
    if not isinstance(ui, dict):
        ui = {}
    ui["theme"] = theme
    config["ui"] = ui
    with open(config_path, "w", encoding="utf-8") as handle:
        handle.write(json.dumps(config, indent=2, ensure_ascii=True) + "\n")
