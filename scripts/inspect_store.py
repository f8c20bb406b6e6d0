#!/usr/bin/env python3
"""
Offline inspection of a SecureChat local store.

Prints registered users, the online list and stored message records.
Optionally decrypts the messages readable by one user, or resets the
online list (it goes stale when a client is killed without logging out).

Usage:
    python scripts/inspect_store.py --store .securechat/local_storage.json
    python scripts/inspect_store.py --decrypt alice 'password123'
    python scripts/inspect_store.py --clear-online
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

# Add parent directory to path for securechat imports when run as a script
sys.path.insert(0, str(Path(__file__).parent.parent))

from securechat.config import load_settings
from securechat.common.models import ChatMessage
from securechat.crypto.placeholder import derive_user_key, hash_password, simple_decrypt
from securechat.storage.chat_store import ChatStore
from securechat.storage.local_storage import LocalStorage


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format='[%(asctime)s] %(levelname)s: %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)


def summarize(store: ChatStore) -> List[str]:
    """Describe the three store blobs as printable lines."""
    users = store.load_users()
    online = store.load_online()
    messages = store.load_messages()

    lines = [f"Users ({len(users)}):"]
    lines += [f"  {name}" for name in sorted(users)]
    lines.append(f"Online ({len(online)}): {', '.join(online) if online else '-'}")
    lines.append(f"Messages ({len(messages)}/{store.max_messages}):")
    for record in messages:
        try:
            msg = ChatMessage.from_dict(record)
        except ValueError as e:
            lines.append(f"  <malformed record: {e}>")
            continue
        lines.append(f"  {msg.id} {msg.timestamp} [{msg.user}] {msg.text}")
    return lines


def decrypt_for(store: ChatStore, username: str, password: str) -> List[str]:
    """
    Plaintext of every message readable by username.

    Raises: ValueError if the user is unknown or the password is wrong
    """
    users = store.load_users()
    record = users.get(username)
    if not record:
        raise ValueError(f"User not found: {username}")
    if record.get("password") != hash_password(password):
        raise ValueError(f"Incorrect password for {username}")

    key = derive_user_key(username, password)
    lines = []
    for raw in store.load_messages():
        try:
            msg = ChatMessage.from_dict(raw)
        except ValueError as e:
            logger.warning(f"Skipping malformed message record: {e}")
            continue
        text = simple_decrypt(msg.text, key)
        if text is not None:
            lines.append(f"  {msg.local_time()} [{msg.user}] {text}")
    return lines


def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments and inspect the store."""
    parser = argparse.ArgumentParser(
        description='Offline inspection of a SecureChat local store',
    )
    parser.add_argument(
        '--store',
        type=str,
        help='Path to the store file (default: SECURECHAT_STORE_PATH)'
    )
    parser.add_argument(
        '--decrypt',
        nargs=2,
        metavar=('USERNAME', 'PASSWORD'),
        help='Show plaintext of messages readable by this user'
    )
    parser.add_argument(
        '--clear-online',
        action='store_true',
        help='Reset the online user list'
    )
    args = parser.parse_args(argv)

    try:
        settings = load_settings()
        path = Path(args.store).expanduser() if args.store else settings.store_path
        if not path.exists():
            logger.error(f"Store not found: {path}")
            return 1

        store = ChatStore(LocalStorage(path), max_messages=settings.max_messages)

        for line in summarize(store):
            print(line)

        if args.decrypt:
            username, password = args.decrypt
            print(f"\nReadable by {username}:")
            for line in decrypt_for(store, username, password):
                print(line)

        if args.clear_online:
            store.clear_online()
            logger.info("Online list cleared")

    except (ValueError, OSError) as e:
        logger.error(f"Inspection failed: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
