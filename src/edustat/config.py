"""Configuration file management for edustat.

Reads and writes ~/.edustat/config.json for settings that don't belong in the DB
(roster location, window sizes, week start, staleness threshold).
"""
from __future__ import annotations

import json
from pathlib import Path

from edustat.aggregate import WEEK_STARTS
from edustat.normalizer import DAILY_WINDOW_DAYS, WEEKLY_WINDOW_DAYS

DEFAULT_CONFIG_PATH: Path = Path.home() / ".edustat" / "config.json"

DEFAULT_STALE_AFTER_HOURS = 24.0


def load_config(config_path: Path | None = None) -> dict:
    """Load config from JSON file. Returns {} if file missing or invalid."""
    path = config_path or DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError):
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict, config_path: Path | None = None) -> None:
    """Write config dict to JSON file. Creates parent dirs if needed."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")


def _positive_int(value: object, default: int) -> int:
    if isinstance(value, int) and not isinstance(value, bool) and value > 0:
        return value
    return default


def get_roster_path(config_path: Path | None = None) -> Path | None:
    """Return the configured roster file, or None if not set."""
    raw = load_config(config_path).get("roster_path")
    if raw:
        return Path(raw)
    return None


def set_roster_path(roster: Path, config_path: Path | None = None) -> None:
    """Persist the roster path to config."""
    config = load_config(config_path)
    config["roster_path"] = str(roster)
    save_config(config, config_path)


def get_window_days(config_path: Path | None = None) -> int:
    return _positive_int(load_config(config_path).get("window_days"), DAILY_WINDOW_DAYS)


def get_timeline_days(config_path: Path | None = None) -> int:
    return _positive_int(load_config(config_path).get("timeline_days"), WEEKLY_WINDOW_DAYS)


def get_week_start(config_path: Path | None = None) -> str:
    value = load_config(config_path).get("week_start")
    return value if value in WEEK_STARTS else "sunday"


def get_stale_after_hours(config_path: Path | None = None) -> float:
    value = load_config(config_path).get("stale_after_hours")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
        return float(value)
    return DEFAULT_STALE_AFTER_HOURS


def set_setting(key: str, value: object, config_path: Path | None = None) -> None:
    """Persist a single setting, keeping the other keys."""
    config = load_config(config_path)
    config[key] = value
    save_config(config, config_path)
