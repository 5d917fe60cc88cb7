"""Configuration file management for habit-insights.

Reads and writes ~/.habit-insights/config.json for settings such as the
snapshot path and the orphan-session policy.
"""
from __future__ import annotations

import json
import os
from pathlib import Path

from habit_insights.models import OrphanPolicy

DEFAULT_CONFIG_PATH: Path = Path.home() / ".habit-insights" / "config.json"
DEFAULT_DATA_PATH: Path = Path.home() / ".habit-insights" / "snapshot.json"
DATA_PATH_ENV = "HABIT_INSIGHTS_DATA"


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


def get_data_path(config_path: Path | None = None) -> Path:
    """Return the snapshot path: $HABIT_INSIGHTS_DATA, then config, then default."""
    env = os.environ.get(DATA_PATH_ENV)
    if env:
        return Path(env).expanduser()
    raw = load_config(config_path).get("data_path")
    if raw:
        return Path(raw).expanduser()
    return DEFAULT_DATA_PATH


def set_data_path(path: Path, config_path: Path | None = None) -> None:
    """Persist the snapshot path to config."""
    config = load_config(config_path)
    config["data_path"] = str(path)
    save_config(config, config_path)


def get_orphan_policy(config_path: Path | None = None) -> OrphanPolicy:
    """Return the configured orphan policy, BREAKDOWN_ONLY if unset or unknown."""
    raw = load_config(config_path).get("orphan_policy")
    try:
        return OrphanPolicy(raw)
    except ValueError:
        return OrphanPolicy.BREAKDOWN_ONLY
