"""
SecureChat terminal client.

This module implements a menu-driven chat client that:
    1. Opens the shared local store (a JSON file)
    2. Offers Register / Login / Exit
    3. Shows the chat: header, message list, input prompt
    4. Prints new messages picked up by the background poller
    5. Logs the user out on /logout, inactivity, Ctrl+C or EOF

Several clients pointed at the same store file behave like several
browser tabs sharing one localStorage.

Chat commands:
    /logout   Sign out and return to the menu
    /online   List online users
    /refresh  Reload and redraw messages
    anything else is sent as a message

Usage:
    python -m securechat [--store PATH] [--show-password] [-v]

Environment Variables (.env):
    SECURECHAT_STORE_PATH, SECURECHAT_POLL_INTERVAL,
    SECURECHAT_SESSION_TIMEOUT, SECURECHAT_MAX_MESSAGES, SECURECHAT_LOG_LEVEL
"""

import argparse
import getpass
import logging
import math
import shutil
import sys
import threading
from pathlib import Path
from typing import List, Optional, Set

from securechat.config import load_settings, Settings
from securechat.common.models import ChatMessage
from securechat.client.session import ChatSession
from securechat.storage.chat_store import ChatStore
from securechat.storage.local_storage import LocalStorage


logger = logging.getLogger(__name__)

SECURITY_FEATURES = [
    "End-to-end encryption",
    "Secure password hashing",
    "Auto-logout after 30min inactivity",
    "Local encrypted storage",
]
EMPTY_CHAT_TEXT = "No messages yet. Start a secure conversation!"
PROMPT = "> "


def format_message(message: ChatMessage, current_username: str, width: int = 80) -> str:
    """
    Render one message line.

    Own messages are right-aligned, everyone else's left-aligned.

    Others' messages read like "[bob] hi  (13:00:00)", time shown locally.
    """
    line = f"[{message.user}] {message.text}"
    stamp = message.local_time()
    if stamp:
        line += f"  ({stamp})"
    if message.user == current_username:
        return line.rjust(width)
    return line


def render_login_screen(error: str = "") -> str:
    lines = [
        "",
        "=" * 50,
        "SecureChat",
        "=" * 50,
        "Security Features:",
    ]
    lines += [f"  - {feature}" for feature in SECURITY_FEATURES]
    if error:
        lines += ["", f"[!] {error}"]
    lines += [
        "=" * 50,
        "1. Register",
        "2. Login",
        "3. Exit",
        "=" * 50,
        "All messages are encrypted and stored locally.",
    ]
    return "\n".join(lines)


def render_chat(session: ChatSession, width: int = 80) -> str:
    """Render the header and the full message list."""
    username = session.current_user.username if session.current_user else ""
    header = f"SecureChat | {username} | {session.online_count} online"
    lines = ["", header, "-" * min(width, max(len(header), 50))]
    if not session.messages:
        lines.append(EMPTY_CHAT_TEXT)
    else:
        lines += [format_message(m, username, width) for m in session.messages]
    lines.append("-" * min(width, max(len(header), 50)))
    return "\n".join(lines)


class ChatScreen:
    """Prints messages as they arrive and drives the chat input loop."""

    def __init__(self, session: ChatSession, out=None):
        self.session = session
        self.out = out or sys.stdout
        self._seen_ids: Set[int] = set()
        self._print_lock = threading.Lock()

    @property
    def width(self) -> int:
        return shutil.get_terminal_size((80, 24)).columns

    def _write(self, text: str) -> None:
        with self._print_lock:
            print(text, file=self.out, flush=True)

    def show_all(self) -> None:
        """Redraw the whole chat and mark every message as seen."""
        with self._print_lock:
            self._seen_ids = {m.id for m in self.session.messages}
        self._write(render_chat(self.session, self.width))

    def show_new(self, messages: List[ChatMessage]) -> None:
        """Print messages not printed before (poller callback)."""
        user = self.session.current_user
        if user is None:
            return
        with self._print_lock:
            fresh = [m for m in messages if m.id not in self._seen_ids]
            self._seen_ids.update(m.id for m in fresh)
        for message in fresh:
            self._write(format_message(message, user.username, self.width))

    def on_expire(self) -> None:
        self._write(f"\n[!] {self.session.error}")
        self._write("[*] Press Enter to return to the menu")

    def run(self, read_line=None) -> None:
        """Chat input loop; returns once the user is signed out."""
        read_line = read_line or input
        self.show_all()
        self._write("[*] Commands: /logout  /online  /refresh")

        while self.session.logged_in:
            try:
                line = read_line(PROMPT)
            except (EOFError, KeyboardInterrupt):
                self._write("\n[*] Leaving chat")
                self.session.logout()
                raise

            if not self.session.logged_in:
                break

            command = line.strip()
            if command == "/logout":
                self.session.logout()
                self._write("[*] Logged out")
            elif command == "/online":
                self.session.refresh_online()
                self._write(f"[*] {self.session.online_count} online: {', '.join(self.session.online_users)}")
            elif command == "/refresh":
                self.session.load_messages()
                self.show_all()
            elif command:
                if self.session.send_message(line):
                    self.show_new(self.session.messages)
                elif self.session.error:
                    self._write(f"[!] {self.session.error}")
                    self.session.error = ""


def main_menu(error: str = "") -> int:
    """
    Display main menu and get user choice.

    Returns:
        int: User's menu choice (1, 2, or 3)
    """
    print(render_login_screen(error))

    while True:
        try:
            choice = input("Select option (1-3): ").strip()

            if choice in ["1", "2", "3"]:
                return int(choice)
            else:
                print("Invalid choice. Please select 1, 2, or 3.")

        except EOFError:
            print("\nEOF received")
            return 3
        except KeyboardInterrupt:
            print("\nInterrupted by user")
            return 3


def prompt_credentials(show_password: bool = False):
    """
    Read username and password from the terminal.

    Returns: (username, password)
    Raises: EOFError, KeyboardInterrupt
    """
    username = input("Username: ")
    if show_password:
        password = input("Password (min 8 characters): ")
    else:
        password = getpass.getpass("Password (min 8 characters): ")
    return username, password


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="SecureChat demo client (local store, placeholder encryption)",
    )
    parser.add_argument(
        "--store",
        type=str,
        help="Path to the shared store file (overrides SECURECHAT_STORE_PATH)",
    )
    parser.add_argument(
        "--poll-interval",
        type=float,
        help="Seconds between message reloads",
    )
    parser.add_argument(
        "--session-timeout",
        type=float,
        help="Inactivity auto-logout in seconds",
    )
    parser.add_argument(
        "--show-password",
        action="store_true",
        help="Echo the password while typing",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    """Environment settings with command-line overrides applied."""
    settings = load_settings()
    if args.store:
        settings.store_path = Path(args.store).expanduser()
    if args.poll_interval is not None:
        if not math.isfinite(args.poll_interval) or args.poll_interval <= 0:
            raise ValueError("--poll-interval must be a positive finite number")
        settings.poll_interval = args.poll_interval
    if args.session_timeout is not None:
        if not math.isfinite(args.session_timeout) or args.session_timeout <= 0:
            raise ValueError("--session-timeout must be a positive finite number")
        settings.session_timeout = args.session_timeout
    if args.verbose:
        settings.log_level = "DEBUG"
    return settings


def main(argv: Optional[List[str]] = None):
    """
    Main client entry point.

    Exit codes:
        0: Normal shutdown
        1: Fatal error
    """
    args = parse_args(argv)

    try:
        settings = build_settings(args)
    except ValueError as e:
        print(f"[!] Configuration error: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="[%(asctime)s] %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    store = ChatStore(LocalStorage(settings.store_path), max_messages=settings.max_messages)
    session = ChatSession(
        store,
        session_timeout=settings.session_timeout,
        poll_interval=settings.poll_interval,
    )
    screen = ChatScreen(session)
    session.on_update = screen.show_new
    session.on_expire = screen.on_expire

    try:
        session.initialize()
        logger.info(f"Using store {settings.store_path}")

        while True:
            choice = main_menu(session.error)

            if choice == 3:
                print("\n[*] Exiting client")
                break

            try:
                username, password = prompt_credentials(args.show_password)
            except (EOFError, KeyboardInterrupt):
                print("\n[*] Cancelled")
                continue

            ok = session.register(username, password) if choice == 1 else session.login(username, password)
            if not ok:
                continue

            print(f"\n[+] Signed in as {session.current_user.username}")
            try:
                screen.run()
            except (EOFError, KeyboardInterrupt):
                break

    except Exception as e:
        logger.critical(f"Unexpected error: {e}")
        sys.exit(1)
    finally:
        if session.logged_in:
            session.logout()


if __name__ == "__main__":
    main()
