#!/usr/bin/env python3
"""
Integration Test: 2-User Chat on a Shared Store File

Two independent clients (separate LocalStorage instances, one file) act
like two browser tabs:
  1. Alice and Bob register and both show as online
  2. Messages are stored encrypted with each author's key
  3. The background poller picks up new messages
  4. The message log is capped at max_messages
  5. Logout removes users from the online list
  6. The inspection script reports and resets the store

Usage:
    pytest tests/integration_tests/test_two_user_chat.py
"""

import logging
import threading

from scripts import inspect_store
from securechat.client.session import ChatSession
from securechat.storage.chat_store import ChatStore
from securechat.storage.local_storage import LocalStorage


logger = logging.getLogger(__name__)

ALICE_PW = "alice-password"
BOB_PW = "bob-password"


def _client(path, **kwargs) -> ChatSession:
    """A separate store handle per client, like a separate process."""
    store = ChatStore(LocalStorage(path), max_messages=kwargs.pop("max_messages", 100))
    session = ChatSession(store, **kwargs)
    session.initialize()
    return session


def test_two_clients_share_users_and_online_list(file_store_path):
    alice = _client(file_store_path, poll=False)
    bob = _client(file_store_path, poll=False)
    try:
        assert alice.register("alice", ALICE_PW)
        assert bob.register("bob", BOB_PW)

        alice.refresh_online()
        assert alice.online_users == ["alice", "bob"]
        assert bob.online_count == 2

        # Bob can't take Alice's name from another client
        carol = _client(file_store_path, poll=False)
        assert not carol.register("alice", "whatever-pass")
        assert carol.error == "Username already exists"

        bob.logout()
        alice.refresh_online()
        assert alice.online_users == ["alice"]
    finally:
        alice.logout()
        bob.logout()

    logger.info("✓ Shared users and online list")


def test_messages_visible_to_author_after_relogin(file_store_path):
    alice = _client(file_store_path, poll=False)
    alice.register("alice", ALICE_PW)
    alice.send_message("note to self")
    alice.logout()

    again = _client(file_store_path, poll=False)
    try:
        assert again.login("alice", ALICE_PW)
        assert [m.text for m in again.messages] == ["note to self"]
    finally:
        again.logout()


def test_poller_picks_up_messages_from_other_client(file_store_path):
    """A second client for the same account sees the first one's sends."""
    writer = _client(file_store_path, poll=False)
    writer.register("alice", ALICE_PW)

    seen = threading.Event()

    def on_update(messages):
        if any(m.text == "from tab one" for m in messages):
            seen.set()

    reader = _client(file_store_path, poll_interval=0.05, on_update=on_update)
    try:
        assert reader.login("alice", ALICE_PW)
        assert reader.messages == []

        writer.send_message("from tab one")
        assert seen.wait(5)
        assert [m.text for m in reader.messages] == ["from tab one"]
    finally:
        reader.logout()
        writer.logout()


def test_message_cap_applies_across_clients(file_store_path):
    alice = _client(file_store_path, poll=False, max_messages=5)
    bob = _client(file_store_path, poll=False, max_messages=5)
    try:
        alice.register("alice", ALICE_PW)
        bob.register("bob", BOB_PW)
        for i in range(4):
            alice.send_message(f"a{i}")
            bob.send_message(f"b{i}")

        stored = alice.store.load_messages()
        assert len(stored) == 5
        assert [r["user"] for r in stored] == ["bob", "alice", "bob", "alice", "bob"]
        alice.load_messages()
        assert [m.text for m in alice.messages] == ["a2", "a3"]
    finally:
        alice.logout()
        bob.logout()


def test_inspect_store_script(file_store_path, capsys, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    alice = _client(file_store_path, poll=False)
    alice.register("alice", ALICE_PW)
    alice.send_message("audit me")
    # simulate a killed client: online entry left behind
    alice.current_user = None
    alice._session_timer.cancel()

    code = inspect_store.main([
        "--store", str(file_store_path),
        "--decrypt", "alice", ALICE_PW,
        "--clear-online",
    ])

    out = capsys.readouterr().out
    assert code == 0
    assert "Users (1):" in out
    assert "Online (1): alice" in out
    assert "[alice] audit me" in out
    assert ChatStore(LocalStorage(file_store_path)).load_online() == []

    assert inspect_store.main(["--store", str(file_store_path), "--decrypt", "alice", "nope"]) == 1
    assert inspect_store.main(["--store", str(tmp_path / "absent.json")]) == 1


def test_inspect_store_skips_malformed_records(file_store_path, capsys, monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    alice = _client(file_store_path, poll=False)
    try:
        alice.register("alice", ALICE_PW)
        alice.store.append_message({"id": 1, "user": "alice"})
        alice.send_message("still readable")
    finally:
        alice.logout()

    code = inspect_store.main(["--store", str(file_store_path), "--decrypt", "alice", ALICE_PW])

    out = capsys.readouterr().out
    assert code == 0
    assert "<malformed record:" in out
    assert "[alice] still readable" in out
