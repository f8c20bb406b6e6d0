"""
Runtime configuration for the SecureChat demo client.

Settings are read from environment variables (a .env file is honoured):
    SECURECHAT_STORE_PATH: File backing the local store (default: .securechat/local_storage.json)
    SECURECHAT_POLL_INTERVAL: Seconds between message reloads (default: 2)
    SECURECHAT_SESSION_TIMEOUT: Inactivity auto-logout in seconds (default: 1800)
    SECURECHAT_MAX_MESSAGES: Number of messages retained (default: 100)
    SECURECHAT_LOG_LEVEL: Logging level name (default: WARNING)
"""

import math
import os
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv


DEFAULT_STORE_PATH = Path(".securechat") / "local_storage.json"
DEFAULT_POLL_INTERVAL = 2.0
DEFAULT_SESSION_TIMEOUT = 30 * 60
DEFAULT_MAX_MESSAGES = 100
MIN_PASSWORD_LENGTH = 8


@dataclass
class Settings:
    """Resolved client settings."""

    store_path: Path = DEFAULT_STORE_PATH
    poll_interval: float = DEFAULT_POLL_INTERVAL
    session_timeout: float = DEFAULT_SESSION_TIMEOUT
    max_messages: int = DEFAULT_MAX_MESSAGES
    log_level: str = "WARNING"


def _positive(name: str, raw: str, cast):
    """Parse an environment value and require it to be finite and > 0."""
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid value for {name}: {raw!r}")
    if not math.isfinite(value) or value <= 0:
        raise ValueError(f"{name} must be a positive finite number, got {raw!r}")
    return value


def load_settings(env_file=None) -> Settings:
    """
    Build Settings from the environment.

    Args:
        env_file: Optional path to a .env file (default: search from cwd)

    Returns:
        Settings instance

    Raises:
        ValueError: If a numeric setting is malformed or not positive
    """
    load_dotenv(env_file)

    store_path = Path(os.getenv("SECURECHAT_STORE_PATH", str(DEFAULT_STORE_PATH))).expanduser()
    poll_interval = _positive(
        "SECURECHAT_POLL_INTERVAL",
        os.getenv("SECURECHAT_POLL_INTERVAL", str(DEFAULT_POLL_INTERVAL)),
        float,
    )
    session_timeout = _positive(
        "SECURECHAT_SESSION_TIMEOUT",
        os.getenv("SECURECHAT_SESSION_TIMEOUT", str(DEFAULT_SESSION_TIMEOUT)),
        float,
    )
    max_messages = _positive(
        "SECURECHAT_MAX_MESSAGES",
        os.getenv("SECURECHAT_MAX_MESSAGES", str(DEFAULT_MAX_MESSAGES)),
        int,
    )
    log_level = os.getenv("SECURECHAT_LOG_LEVEL", "WARNING").upper()

    return Settings(
        store_path=store_path,
        poll_interval=poll_interval,
        session_timeout=session_timeout,
        max_messages=max_messages,
        log_level=log_level,
    )
