"""
Chat data kept in the local store.

Three JSON blobs, each stored as text under its own key:
    chat_users     {"<username>": {"password": "<hash>", "key": "<user key>"}}
    chat_online    ["<username>", ...]
    chat_messages  [{"id": 1, "user": "...", "text": "<ct>", "timestamp": "..."}, ...]

Every operation is a plain read -> parse -> mutate -> serialize -> write.
Nothing here is atomic across processes.
"""

import json
import logging
from typing import Any, Dict, List

from securechat.config import DEFAULT_MAX_MESSAGES
from securechat.storage.local_storage import LocalStorage, StorageError


logger = logging.getLogger(__name__)

USERS_KEY = "chat_users"
ONLINE_KEY = "chat_online"
MESSAGES_KEY = "chat_messages"


class ChatStore:
    """Users, online list and message log on top of a LocalStorage."""

    def __init__(self, storage: LocalStorage, max_messages: int = DEFAULT_MAX_MESSAGES):
        if max_messages <= 0:
            raise ValueError(f"max_messages must be positive, got {max_messages}")
        self.storage = storage
        self.max_messages = max_messages

    def _load(self, key: str, expected_type: type, empty):
        raw = self.storage.get_item(key)
        if raw is None:
            return empty
        try:
            value = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageError(f"Invalid JSON under {key!r}: {e}") from e
        if not isinstance(value, expected_type):
            raise StorageError(
                f"Expected {expected_type.__name__} under {key!r}, got {type(value).__name__}"
            )
        return value

    def _save(self, key: str, value) -> None:
        self.storage.set_item(key, json.dumps(value, ensure_ascii=False))

    def initialize(self) -> None:
        """Create any missing blob with its empty value."""
        for key, empty in ((USERS_KEY, {}), (ONLINE_KEY, []), (MESSAGES_KEY, [])):
            if self.storage.get_item(key) is None:
                self._save(key, empty)
                logger.debug(f"Initialized {key}")

    # Users

    def load_users(self) -> Dict[str, Dict[str, str]]:
        return self._load(USERS_KEY, dict, {})

    def save_users(self, users: Dict[str, Dict[str, str]]) -> None:
        self._save(USERS_KEY, users)

    # Online list

    def load_online(self) -> List[str]:
        return self._load(ONLINE_KEY, list, [])

    def set_online(self, username: str, is_online: bool) -> List[str]:
        """
        Add or remove username from the online list.

        Adding is skipped when the name is already listed; removing drops
        every occurrence.

        Returns: the updated list
        """
        online = self.load_online()
        if is_online:
            if username not in online:
                online.append(username)
        else:
            online = [u for u in online if u != username]
        self._save(ONLINE_KEY, online)
        return online

    def clear_online(self) -> None:
        self._save(ONLINE_KEY, [])

    # Messages

    def load_messages(self) -> List[Dict[str, Any]]:
        return self._load(MESSAGES_KEY, list, [])

    def append_message(self, record: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Append a message record, evicting the oldest beyond max_messages.

        Returns: the stored list after truncation
        """
        messages = self.load_messages()
        messages.append(record)
        overflow = len(messages) - self.max_messages
        if overflow > 0:
            del messages[:overflow]
            logger.debug(f"Evicted {overflow} old message(s)")
        self._save(MESSAGES_KEY, messages)
        return messages
