"""Application config file and per-board settings.

App config comes from YAML with environment overrides. Board settings
live in the key/value store; keys are hyphenated on the command line
and underscored in Python, and values are coerced using the defaults.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from trellops.cache import Repositories
from trellops.models import Block, Filters, MarkerRule
from trellops.store import DEFAULT_STORE_PATH
from trellops.timewindows import TIME_WINDOWS

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/trellops/config.yaml")

APP_DEFAULTS = {
    "api_key": "",
    "token": "",
    "board_id": "",
    "board_name": "",
    "store_path": str(DEFAULT_STORE_PATH),
    "user_agent": "trellops/0.3 (operational dashboard)",
    "geocode_delay": 1.1,
}

ENV_OVERRIDES = {
    "TRELLO_API_KEY": "api_key",
    "TRELLO_TOKEN": "token",
    "TRELLOPS_BOARD": "board_id",
}

BOARD_DEFAULTS = {
    "time-window": "all",
    "exclude-templates": True,
    "exclude-completed": False,
    "refresh-interval": 1,
    "refresh-unit": "minutes",
    "write-back-coordinates": False,
    "enable-map-view": False,
}

REFRESH_UNITS = {"seconds": 1, "minutes": 60, "hours": 3600}
MIN_REFRESH_SECONDS = 10
MAX_REFRESH_SECONDS = 24 * 3600
FALLBACK_REFRESH_SECONDS = 30


class ConfigError(Exception):
    """Invalid configuration value."""


@dataclass
class AppConfig:
    api_key: str = ""
    token: str = ""
    board_id: str = ""
    board_name: str = ""
    store_path: str = str(DEFAULT_STORE_PATH)
    user_agent: str = APP_DEFAULTS["user_agent"]
    geocode_delay: float = 1.1


@dataclass
class BoardSettings:
    time_window: str = "all"
    exclude_templates: bool = True
    exclude_completed: bool = False
    refresh_interval: int = 1
    refresh_unit: str = "minutes"
    write_back_coordinates: bool = False
    enable_map_view: bool = False
    blocks: list[Block] = field(default_factory=list)
    marker_rules: list[MarkerRule] = field(default_factory=list)

    @property
    def filters(self) -> Filters:
        return Filters(self.time_window, self.exclude_templates, self.exclude_completed)

    @property
    def refresh_seconds(self) -> int:
        return convert_interval_to_seconds(self.refresh_interval, self.refresh_unit)


def python_key(cli_key: str) -> str:
    """Convert CLI-style key (hyphenated) to Python-style (underscored)."""
    return cli_key.replace("-", "_")


def cli_key(py_key: str) -> str:
    """Convert Python-style key (underscored) to CLI-style (hyphenated)."""
    return py_key.replace("_", "-")


def coerce_board_value(key: str, raw: Any):
    """Type-coerce a board setting using its default. Unknown keys raise ConfigError."""
    if key not in BOARD_DEFAULTS:
        raise ConfigError(f"Unknown setting '{key}'. Known: {', '.join(BOARD_DEFAULTS)}")
    default = BOARD_DEFAULTS[key]
    if not isinstance(raw, str):
        return raw
    if isinstance(default, bool):
        return raw.lower() in ("true", "yes", "1", "on")
    if isinstance(default, int):
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"'{key}' must be a whole number, got '{raw}'") from None
    return raw


def convert_interval_to_seconds(value, unit: str) -> int:
    """Refresh interval in seconds. Unknown units fall back to 30 seconds.

    (2, "minutes") → 120, (1, "fortnights") → 30
    """
    multiplier = REFRESH_UNITS.get(unit)
    if multiplier is None:
        return FALLBACK_REFRESH_SECONDS
    try:
        return int(value) * multiplier
    except (TypeError, ValueError):
        return FALLBACK_REFRESH_SECONDS


def validate_refresh(interval, unit: str) -> None:
    """Reject intervals outside 10 seconds to 24 hours."""
    if unit not in REFRESH_UNITS:
        raise ConfigError(f"Unknown refresh unit '{unit}'. Use seconds, minutes or hours.")
    seconds = convert_interval_to_seconds(interval, unit)
    if seconds < MIN_REFRESH_SECONDS:
        raise ConfigError(f"Refresh interval must be at least {MIN_REFRESH_SECONDS} seconds.")
    if seconds > MAX_REFRESH_SECONDS:
        raise ConfigError("Refresh interval must be at most 24 hours.")


def load_config(path: str | Path | None = None, env: dict[str, str] | None = None) -> AppConfig:
    """Read the YAML config file, apply defaults and environment overrides.

    A missing file is fine; a malformed one raises ConfigError.
    """
    env = os.environ if env is None else env
    config_path = Path(path or DEFAULT_CONFIG_PATH).expanduser()
    values = dict(APP_DEFAULTS)
    try:
        text = config_path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("no config file at %s", config_path)
        text = ""
    if text.strip():
        try:
            data = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{config_path} must contain a mapping")
        for key, value in data.items():
            py_key = python_key(str(key))
            if py_key not in APP_DEFAULTS:
                logger.warning("ignoring unknown config key '%s'", key)
                continue
            values[py_key] = value

    for env_key, py_key in ENV_OVERRIDES.items():
        if env.get(env_key):
            values[py_key] = env[env_key]

    try:
        values["geocode_delay"] = float(values["geocode_delay"])
    except (TypeError, ValueError):
        raise ConfigError(f"geocode_delay must be a number, got {values['geocode_delay']!r}") from None
    return AppConfig(**{k: values[k] for k in APP_DEFAULTS})


def read_board_settings(repos: Repositories, board_id: str) -> BoardSettings:
    """Board settings merged over defaults, with layout and marker rules."""
    raw = repos.settings.get(board_id)
    values = {}
    for key, default in BOARD_DEFAULTS.items():
        value = raw.get(python_key(key), default)
        try:
            values[python_key(key)] = coerce_board_value(key, value)
        except ConfigError as exc:
            logger.warning("using default for %s: %s", key, exc)
            values[python_key(key)] = default
    return BoardSettings(
        **values,
        blocks=repos.layout.get(board_id),
        marker_rules=repos.marker_rules.get(board_id),
    )


def write_board_setting(repos: Repositories, board_id: str, key: str, raw) -> Any:
    """Validate and store one board setting. key is CLI-style (hyphens).

    Turning coordinate write-back on clears the board's geocode cache, so
    every card is geocoded (and written) again.
    """
    value = coerce_board_value(key, raw)
    stored = repos.settings.get(board_id)
    py_key = python_key(key)

    if key == "time-window":
        if value not in TIME_WINDOWS:
            raise ConfigError(f"Unknown time window '{value}'. Known: {', '.join(TIME_WINDOWS)}")
    if key in ("refresh-interval", "refresh-unit"):
        interval = value if key == "refresh-interval" else stored.get("refresh_interval", BOARD_DEFAULTS["refresh-interval"])
        unit = value if key == "refresh-unit" else stored.get("refresh_unit", BOARD_DEFAULTS["refresh-unit"])
        validate_refresh(interval, unit)

    was_enabled = bool(stored.get("write_back_coordinates", False))
    stored[py_key] = value
    repos.settings.set(board_id, stored)

    if key == "write-back-coordinates" and value and not was_enabled:
        logger.info("write-back enabled for %s, clearing geocode cache", board_id)
        repos.geocode.clear(board_id)
    return value
