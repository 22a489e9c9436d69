"""Tests for settings persistence."""

import json

import pytest

from nav_tracker.services.storage import (
    get_default_settings,
    has_credentials,
    infer_environment,
    load_settings,
    save_settings,
)


def test_load_settings_missing_file(tmp_path) -> None:
    """A missing settings file yields the defaults."""
    settings = load_settings(str(tmp_path / "settings.json"))
    assert settings == get_default_settings()
    assert not has_credentials(settings)


def test_save_then_load(tmp_path) -> None:
    """Saved settings are read back with defaults filled in."""
    path = str(tmp_path / "settings.json")
    save_settings({"oanda_api_key": " key ", "oanda_account_id": "101-004-1234-001"}, path)
    settings = load_settings(path)
    assert settings["oanda_api_key"] == "key"
    assert settings["oanda_account_id"] == "101-004-1234-001"
    assert settings["oanda_env"] == "practice"
    assert settings["currency"] == "USD"
    assert has_credentials(settings)


def test_save_switches_environment_from_account_prefix(tmp_path) -> None:
    """A 001 account id forces the live environment when saving."""
    path = tmp_path / "settings.json"
    written = save_settings({"oanda_account_id": "001-001-999-001", "oanda_env": "practice"}, str(path))
    assert written["oanda_env"] == "live"
    assert json.loads(path.read_text(encoding="utf-8"))["oanda_env"] == "live"


@pytest.mark.parametrize(
    "account_id, env, expected",
    [
        ("001-002", "practice", "live"),
        ("101-002", "live", "practice"),
        ("555", "live", "live"),
        ("", "bogus", "practice"),
    ],
)
def test_infer_environment(account_id, env, expected) -> None:
    """Known prefixes pin the environment; others keep a valid env."""
    assert infer_environment(account_id, env) == expected


def test_load_settings_invalid_json_raises(tmp_path) -> None:
    """Corrupt settings are reported rather than silently reset."""
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_settings(str(path))
