"""Tests for app config loading and per-board settings (trellops.config)."""

import pytest

from trellops.config import (
    ConfigError,
    cli_key,
    coerce_board_value,
    convert_interval_to_seconds,
    load_config,
    python_key,
    read_board_settings,
    validate_refresh,
    write_board_setting,
)
from trellops.models import Coordinates


def test_load_config_missing_file_uses_defaults(tmp_path):
    config = load_config(tmp_path / "nope.yaml", env={})
    assert config.api_key == ""
    assert config.geocode_delay == 1.1


def test_load_config_yaml_and_env(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("api-key: from-file\ntoken: file-token\nboard_id: B1\ngeocode-delay: 2\nsurprise: 1\n")
    config = load_config(path, env={"TRELLO_TOKEN": "env-token", "TRELLO_API_KEY": ""})
    assert config.api_key == "from-file"
    assert config.token == "env-token"
    assert config.board_id == "B1"
    assert config.geocode_delay == 2.0


def test_load_config_rejects_non_mapping(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError):
        load_config(path, env={})


def test_load_config_rejects_bad_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("key: [unclosed\n")
    with pytest.raises(ConfigError):
        load_config(path, env={})


def test_key_conversion():
    assert python_key("refresh-interval") == "refresh_interval"
    assert cli_key("enable_map_view") == "enable-map-view"


def test_coerce_board_value():
    assert coerce_board_value("exclude-templates", "no") is False
    assert coerce_board_value("enable-map-view", "true") is True
    assert coerce_board_value("refresh-interval", "5") == 5
    assert coerce_board_value("time-window", "7d") == "7d"
    with pytest.raises(ConfigError):
        coerce_board_value("refresh-interval", "soon")
    with pytest.raises(ConfigError):
        coerce_board_value("colour", "red")


def test_convert_interval_to_seconds():
    assert convert_interval_to_seconds(2, "minutes") == 120
    assert convert_interval_to_seconds(1, "hours") == 3600
    assert convert_interval_to_seconds(1, "fortnights") == 30


def test_validate_refresh_bounds():
    validate_refresh(10, "seconds")
    validate_refresh(24, "hours")
    with pytest.raises(ConfigError):
        validate_refresh(9, "seconds")
    with pytest.raises(ConfigError):
        validate_refresh(25, "hours")
    with pytest.raises(ConfigError):
        validate_refresh(1, "days")


def test_read_board_settings_defaults(repos):
    settings = read_board_settings(repos, "B1")
    assert settings.time_window == "all"
    assert settings.refresh_seconds == 60
    assert [b.id for b in settings.blocks] == ["all"]
    assert settings.marker_rules == []


def test_read_board_settings_bad_stored_value_falls_back(repos):
    repos.settings.set("B1", {"refresh_interval": "often"})
    assert read_board_settings(repos, "B1").refresh_interval == 1


def test_write_board_setting_round_trip(repos):
    write_board_setting(repos, "B1", "time-window", "last_month")
    write_board_setting(repos, "B1", "exclude-completed", "yes")
    settings = read_board_settings(repos, "B1")
    assert settings.filters.time_window == "last_month"
    assert settings.filters.exclude_completed is True


def test_write_board_setting_validates(repos):
    with pytest.raises(ConfigError):
        write_board_setting(repos, "B1", "time-window", "fortnight")
    with pytest.raises(ConfigError):
        write_board_setting(repos, "B1", "refresh-unit", "seconds")  # 1 second
    assert repos.settings.get("B1") == {}


def test_write_board_setting_unit_checks_stored_interval(repos):
    write_board_setting(repos, "B1", "refresh-interval", "30")
    write_board_setting(repos, "B1", "refresh-unit", "seconds")
    assert read_board_settings(repos, "B1").refresh_seconds == 30


def test_enabling_write_back_clears_geocode_cache(repos):
    repos.geocode.put("B1", "c1", Coordinates(1, 2))
    write_board_setting(repos, "B1", "write-back-coordinates", "true")
    assert repos.geocode.count("B1") == 0

    repos.geocode.put("B1", "c1", Coordinates(1, 2))
    write_board_setting(repos, "B1", "write-back-coordinates", "true")
    assert repos.geocode.count("B1") == 1
