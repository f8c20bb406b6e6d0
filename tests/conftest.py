"""Shared fixtures for the SecureChat test suites."""

import pytest

from securechat.client.session import ChatSession
from securechat.storage.chat_store import ChatStore
from securechat.storage.local_storage import LocalStorage


@pytest.fixture
def memory_store():
    """Initialized ChatStore kept in memory."""
    store = ChatStore(LocalStorage())
    store.initialize()
    return store


@pytest.fixture
def file_store_path(tmp_path):
    return tmp_path / "store" / "local_storage.json"


@pytest.fixture
def make_session():
    """Factory for sessions without a background poller; logs all out on teardown."""
    sessions = []

    def _make(store, **kwargs):
        kwargs.setdefault("poll", False)
        session = ChatSession(store, **kwargs)
        session.initialize()
        sessions.append(session)
        return session

    yield _make

    for session in sessions:
        session.logout()
