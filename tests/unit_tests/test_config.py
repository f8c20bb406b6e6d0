#!/usr/bin/env python3
"""
Configuration Test Suite

Checks defaults and environment overrides for the client settings.

Usage: pytest tests/unit_tests/test_config.py
"""

from pathlib import Path

import pytest

from securechat.config import load_settings


ENV_VARS = [
    "SECURECHAT_STORE_PATH",
    "SECURECHAT_POLL_INTERVAL",
    "SECURECHAT_SESSION_TIMEOUT",
    "SECURECHAT_MAX_MESSAGES",
    "SECURECHAT_LOG_LEVEL",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # keep load_dotenv() from picking up a developer's .env
    monkeypatch.chdir(tmp_path)


def test_defaults():
    settings = load_settings(env_file=Path("missing.env"))
    assert settings.store_path == Path(".securechat") / "local_storage.json"
    assert settings.poll_interval == 2.0
    assert settings.session_timeout == 1800
    assert settings.max_messages == 100
    assert settings.log_level == "WARNING"


def test_environment_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("SECURECHAT_STORE_PATH", str(tmp_path / "s.json"))
    monkeypatch.setenv("SECURECHAT_POLL_INTERVAL", "0.5")
    monkeypatch.setenv("SECURECHAT_SESSION_TIMEOUT", "60")
    monkeypatch.setenv("SECURECHAT_MAX_MESSAGES", "10")
    monkeypatch.setenv("SECURECHAT_LOG_LEVEL", "debug")

    settings = load_settings(env_file=Path("missing.env"))
    assert settings.store_path == tmp_path / "s.json"
    assert settings.poll_interval == 0.5
    assert settings.session_timeout == 60
    assert settings.max_messages == 10
    assert settings.log_level == "DEBUG"


def test_env_file_is_read(monkeypatch, tmp_path):
    # register the variable with monkeypatch so the value load_dotenv sets is undone
    monkeypatch.setenv("SECURECHAT_MAX_MESSAGES", "1")
    monkeypatch.delenv("SECURECHAT_MAX_MESSAGES")
    env_file = tmp_path / ".env"
    env_file.write_text("SECURECHAT_MAX_MESSAGES=42\n", encoding="utf-8")
    assert load_settings(env_file=env_file).max_messages == 42


@pytest.mark.parametrize("name,value", [
    ("SECURECHAT_POLL_INTERVAL", "fast"),
    ("SECURECHAT_SESSION_TIMEOUT", "0"),
    ("SECURECHAT_MAX_MESSAGES", "-5"),
    ("SECURECHAT_MAX_MESSAGES", "1.5"),
    ("SECURECHAT_POLL_INTERVAL", "inf"),
    ("SECURECHAT_POLL_INTERVAL", "nan"),
    ("SECURECHAT_SESSION_TIMEOUT", "-inf"),
])
def test_invalid_values_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(ValueError, match=name):
        load_settings(env_file=Path("missing.env"))
