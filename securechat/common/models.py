"""
Record types shared by the SecureChat storage and client.

Defines dataclasses for users and chat messages, with dict conversion
matching the JSON stored in the local store.
"""

import time
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Iterable


@dataclass
class StoredUser:
    """
    Credentials record kept under chat_users.

    Fields:
        password: Placeholder password hash
        key: Placeholder per-user message key
    """

    password: str
    key: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass
class User:
    """Signed-in identity held by a session."""

    username: str
    key: str


@dataclass
class ChatMessage:
    """
    A chat message.

    Fields:
        id: Millisecond timestamp-derived identifier, increasing
        user: Author username
        text: Placeholder ciphertext in the store, plaintext once decrypted
        timestamp: ISO-8601 UTC time of sending
    """

    id: int
    user: str
    text: str
    timestamp: str

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, record: dict) -> "ChatMessage":
        """
        Build a ChatMessage from a stored record.

        Raises: ValueError if the record is not a dict or lacks a field
        """
        if not isinstance(record, dict):
            raise ValueError(f"Message record must be dict, got {type(record).__name__}")
        try:
            return cls(
                id=record["id"],
                user=record["user"],
                text=record["text"],
                timestamp=record["timestamp"],
            )
        except KeyError as e:
            raise ValueError(f"Message record missing field: {e}") from e

    def local_time(self) -> str:
        """Format the timestamp as local HH:MM:SS (empty if unparseable)."""
        try:
            ts = datetime.fromisoformat(self.timestamp.replace("Z", "+00:00"))
        except (AttributeError, ValueError):
            return ""
        return ts.astimezone().strftime("%H:%M:%S")


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-01-01T12:00:00.000Z"""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def new_message_id(existing_ids: Iterable[int] = ()) -> int:
    """
    Millisecond clock id, bumped past any id already in use.

    Two sends within the same millisecond would otherwise collide.
    """
    candidate = int(time.time() * 1000)
    highest = max((i for i in existing_ids if isinstance(i, int)), default=0)
    return max(candidate, highest + 1)
