"""Configuration loading."""

from __future__ import annotations

import json
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from relaybot.config.schema import Config


def get_config_path() -> Path:
    """Default location of the config file."""
    return Path.home() / ".relaybot" / "config.json"


def load_config(path: Path | str | None = None) -> Config:
    """Load configuration from a JSON file, falling back to defaults.

    Environment variables (``RELAYBOT_TELEGRAM__TOKEN`` etc.) fill in anything
    the file does not set.
    """
    config_path = Path(path) if path else get_config_path()
    if not config_path.exists():
        logger.debug(f"No config at {config_path}, using defaults")
        return Config()

    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
        return Config(**data)
    except (json.JSONDecodeError, ValidationError) as e:
        logger.error(f"Failed to load config from {config_path}: {e}")
        raise
