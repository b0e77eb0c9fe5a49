from __future__ import annotations

import json
import os

import pytest

from notifhub.settings import load_settings, save_theme


def _write_config(tmp_path, payload: dict) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(payload), encoding="utf-8")
    return str(path)


def test_defaults_for_minimal_config(tmp_path) -> None:
    settings = load_settings(_write_config(tmp_path, {}))

    assert settings.db_path == os.path.join(str(tmp_path), "data/notifhub.db")
    assert settings.source.type == "adb"
    assert settings.source.poll_interval == 5.0
    assert settings.retention.days == 7
    assert settings.retention.sweep_interval_minutes == 0
    assert settings.theme == "dark"
    assert settings.own_id == ""
    assert settings.exports_dir == os.path.join(str(tmp_path), "exports")


def test_full_config(tmp_path) -> None:
    path = _write_config(
        tmp_path,
        {
            "db_path": "/var/lib/notifhub/hub.db",
            "own_id": "io.notifhub",
            "source": {"type": "Telegram", "poll_interval": 2},
            "app_labels": {"com.acme.chat": "Acme Chat"},
            "retention": {"days": 3, "sweep_interval_minutes": 60},
            "ui": {"theme": "light"},
            "logging": {"enabled": True},
        },
    )
    settings = load_settings(path)

    assert settings.db_path == "/var/lib/notifhub/hub.db"
    assert settings.own_id == "io.notifhub"
    assert settings.source.type == "telegram"
    assert settings.app_labels == {"com.acme.chat": "Acme Chat"}
    assert settings.retention.days == 3
    assert settings.retention.sweep_interval_minutes == 60
    assert settings.theme == "light"
    assert settings.logging == {"enabled": True}


def test_missing_config_raises(tmp_path) -> None:
    with pytest.raises(FileNotFoundError, match="NOTIFHUB_CONFIG"):
        load_settings(str(tmp_path / "nope.json"))


def test_invalid_source_type_raises(tmp_path) -> None:
    with pytest.raises(ValueError, match="source.type"):
        load_settings(_write_config(tmp_path, {"source": {"type": "pager"}}))


def test_non_positive_retention_raises(tmp_path) -> None:
    with pytest.raises(ValueError, match="retention.days"):
        load_settings(_write_config(tmp_path, {"retention": {"days": 0}}))


def test_unknown_theme_falls_back_to_dark(tmp_path) -> None:
    settings = load_settings(_write_config(tmp_path, {"ui": {"theme": "neon"}}))
    assert settings.theme == "dark"


def test_save_theme_keeps_other_sections(tmp_path) -> None:
    path = _write_config(tmp_path, {"own_id": "io.notifhub", "ui": {"theme": "dark"}})
    save_theme(path, "light")

    settings = load_settings(path)
    assert settings.theme == "light"
    assert settings.own_id == "io.notifhub"
