import json

import pytest
from pydantic import ValidationError

from relaybot.config import Config, SplitterConfig, TelegramConfig, load_config


def test_defaults():
    cfg = Config()
    assert cfg.telegram.hard_limit == 4096
    assert cfg.telegram.chunk_delay_ms == 100
    assert cfg.telegram.splitter.max_length == 4000
    assert cfg.telegram.splitter.min_ratio == 0.7
    assert cfg.telegram.splitter.fallback_ratio == 0.8
    assert cfg.telegram.splitter.max_shrink_attempts == 5


def test_camel_case_keys():
    cfg = Config(telegram={"chunkDelayMs": 0, "splitter": {"maxLength": 3000, "minRatio": 0.5}})
    assert cfg.telegram.chunk_delay_ms == 0
    assert cfg.telegram.splitter.max_length == 3000
    assert cfg.telegram.splitter.min_ratio == 0.5


def test_fallback_ratio_below_floor_rejected():
    with pytest.raises(ValidationError):
        SplitterConfig(min_ratio=0.9, fallback_ratio=0.8)


def test_budget_over_hard_limit_rejected():
    with pytest.raises(ValidationError):
        TelegramConfig(hard_limit=1000)


def test_load_missing_file(tmp_path):
    cfg = load_config(tmp_path / "missing.json")
    assert cfg.telegram.token == ""


def test_load_from_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"telegram": {"enabled": True, "token": "123:abc", "partIndicators": False}}))

    cfg = load_config(path)

    assert cfg.telegram.enabled is True
    assert cfg.telegram.token == "123:abc"
    assert cfg.telegram.part_indicators is False


def test_load_bad_json(tmp_path):
    path = tmp_path / "config.json"
    path.write_text("{not json")
    with pytest.raises(json.JSONDecodeError):
        load_config(path)


def test_env_override(tmp_path, monkeypatch):
    monkeypatch.setenv("RELAYBOT_TELEGRAM__TOKEN", "999:env")
    cfg = load_config(tmp_path / "missing.json")
    assert cfg.telegram.token == "999:env"
