"""
Demonstration-only message "encryption" and password "hashing".

Encryption: base64(text + "|" + key). Anyone can reverse it.
Hashing: base64(password + "salt"). Not a hash function.

These exist so the chat flow can show where real primitives would go.
Do not use them to protect anything.

Usage:
    key = derive_user_key("alice", "hunter22!")
    ct = simple_encrypt("Hello", key)
    pt = simple_decrypt(ct, key)   # "Hello"
"""

import base64
import binascii
from typing import Optional


SEPARATOR = "|"
PASSWORD_SUFFIX = "salt"


def _b64(text: str) -> str:
    """Encode text (UTF-8) to a base64 string."""
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def simple_encrypt(text: str, key: str) -> str:
    """
    Wrap text and key into a single base64 blob.

    Args: text, key
    Returns: base64 string of "text|key"
    """
    return _b64(text + SEPARATOR + key)


def simple_decrypt(encrypted: str, key: str) -> Optional[str]:
    """
    Unwrap a blob produced by simple_encrypt().

    Returns the text when the embedded key matches, otherwise None.
    Only the first two "|"-separated fields are read, so text that itself
    contains "|" never decrypts. Malformed input also yields None.
    """
    try:
        decoded = base64.b64decode(encrypted.encode("ascii"), validate=True).decode("utf-8")
    except (AttributeError, UnicodeError, binascii.Error, ValueError):
        return None

    # Text holding the separator leaves a fragment where the key should be
    parts = decoded.split(SEPARATOR)
    if len(parts) < 2:
        return None
    text, enc_key = parts[0], parts[1]
    return text if enc_key == key else None


def hash_password(password: str) -> str:
    """Placeholder password 'hash': base64(password + 'salt')."""
    return _b64(password + PASSWORD_SUFFIX)


def derive_user_key(username: str, password: str) -> str:
    """Deterministic per-user key: base64(username + password)."""
    return _b64(username + password)
