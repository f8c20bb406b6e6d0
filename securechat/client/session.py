"""
Chat session state and user actions.

ChatSession holds everything a signed-in client shows (current user,
decrypted messages, online users, last error) and implements the four
actions against the shared store:

    register  -> create credentials, sign in, go online
    login     -> check credentials, sign in, go online
    send      -> encrypt, append (capped), reload
    load      -> decrypt everything readable with the user's key

Failures are caught here, logged, and reduced to one generic message in
`error`; the caller only sees a bool.

Session lifetime:
    - A MessagePoller reloads messages every poll_interval seconds
    - An inactivity timer logs the user out after session_timeout seconds;
      every send restarts it
"""

import logging
import threading
from typing import Callable, List, Optional

from securechat.config import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_SESSION_TIMEOUT,
    MIN_PASSWORD_LENGTH,
)
from securechat.common.models import ChatMessage, StoredUser, User, new_message_id, utc_timestamp
from securechat.crypto.placeholder import derive_user_key, hash_password, simple_decrypt, simple_encrypt
from securechat.client.poller import MessagePoller
from securechat.storage.chat_store import ChatStore


logger = logging.getLogger(__name__)

# User-facing errors
ERR_REGISTER_INPUT = f"Username required and password must be at least {MIN_PASSWORD_LENGTH} characters"
ERR_USER_EXISTS = "Username already exists"
ERR_REGISTER_FAILED = "Registration failed"
ERR_LOGIN_INPUT = "Username and password required"
ERR_USER_NOT_FOUND = "User not found"
ERR_BAD_PASSWORD = "Incorrect password"
ERR_LOGIN_FAILED = "Login failed"
ERR_SEND_FAILED = "Failed to send message"
ERR_SESSION_EXPIRED = "Session expired. Please log in again."


class ChatSession:
    """State of one chat client over a ChatStore."""

    def __init__(
        self,
        store: ChatStore,
        session_timeout: float = DEFAULT_SESSION_TIMEOUT,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        on_update: Optional[Callable[[List[ChatMessage]], None]] = None,
        on_expire: Optional[Callable[[], None]] = None,
        poll: bool = True,
    ):
        """
        Args:
            store: Shared chat store
            session_timeout: Inactivity auto-logout in seconds
            poll_interval: Seconds between background reloads
            on_update: Forwarded to the poller, called after each reload
            on_expire: Called after an inactivity logout
            poll: Start a background poller on sign-in
        """
        self.store = store
        self.session_timeout = session_timeout
        self.poll_interval = poll_interval
        self.on_update = on_update
        self.on_expire = on_expire
        self.poll = poll

        self.current_user: Optional[User] = None
        self.messages: List[ChatMessage] = []
        self.online_users: List[str] = []
        self.error = ""

        self._lock = threading.RLock()
        self._session_timer: Optional[threading.Timer] = None
        self._poller: Optional[MessagePoller] = None

    @property
    def logged_in(self) -> bool:
        return self.current_user is not None

    @property
    def online_count(self) -> int:
        return len(self.online_users)

    def initialize(self) -> None:
        """Create missing store blobs and load the online list."""
        try:
            self.store.initialize()
            self.online_users = self.store.load_online()
        except (ValueError, OSError) as e:
            logger.error(f"Error loading data: {e}")

    # Session lifecycle

    def _start_session(self, user: User) -> None:
        if self.current_user is not None:
            self.logout()
        with self._lock:
            self.current_user = user
        self.reset_session_timeout()
        self.load_messages()
        if self.poll:
            self._poller = MessagePoller(self, self.poll_interval, self.on_update)
            self._poller.start()
        logger.info(f"Session started for {user.username}")

    def reset_session_timeout(self) -> None:
        """Restart the inactivity timer."""
        with self._lock:
            if self._session_timer is not None:
                self._session_timer.cancel()
            self._session_timer = threading.Timer(self.session_timeout, self._on_session_timeout)
            self._session_timer.daemon = True
            self._session_timer.start()

    def _on_session_timeout(self) -> None:
        user = self.current_user
        if user is None:
            return
        logger.info(f"Session for {user.username} expired after {self.session_timeout}s of inactivity")
        self.logout()
        self.error = ERR_SESSION_EXPIRED
        if self.on_expire is not None:
            self.on_expire()

    def logout(self) -> None:
        """Sign out: leave the online list, clear state, stop timers."""
        with self._lock:
            user = self.current_user
            self.current_user = None
            self.messages = []
            self.online_users = []
            timer, self._session_timer = self._session_timer, None
            poller, self._poller = self._poller, None

        if timer is not None:
            timer.cancel()
        if poller is not None:
            poller.stop()

        if user is not None:
            try:
                self.store.set_online(user.username, False)
            except (ValueError, OSError) as e:
                logger.error(f"Error updating online users: {e}")
            logger.info(f"{user.username} logged out")

    def _update_online(self, username: str, is_online: bool) -> None:
        try:
            online = self.store.set_online(username, is_online)
        except (ValueError, OSError) as e:
            logger.error(f"Error updating online users: {e}")
            return
        with self._lock:
            self.online_users = online

    def refresh_online(self) -> None:
        try:
            online = self.store.load_online()
        except (ValueError, OSError) as e:
            logger.error(f"Error loading online users: {e}")
            return
        with self._lock:
            if self.current_user is not None:
                self.online_users = online

    # Actions

    def register(self, username: str, password: str) -> bool:
        """
        Create an account and sign in.

        Returns: True on success; otherwise False with `error` set
        """
        if not username.strip() or len(password) < MIN_PASSWORD_LENGTH:
            self.error = ERR_REGISTER_INPUT
            return False

        try:
            users = self.store.load_users()

            if username in users:
                self.error = ERR_USER_EXISTS
                return False

            user_key = derive_user_key(username, password)
            users[username] = StoredUser(password=hash_password(password), key=user_key).to_dict()
            self.store.save_users(users)
        except (ValueError, OSError) as e:
            logger.error(f"Registration failed for {username}: {e}")
            self.error = ERR_REGISTER_FAILED
            return False

        logger.info(f"Registered {username}")
        self._start_session(User(username=username, key=user_key))
        self._update_online(username, True)
        self.error = ""
        return True

    def login(self, username: str, password: str) -> bool:
        """
        Check credentials and sign in.

        Returns: True on success; otherwise False with `error` set
        """
        if not username.strip() or not password:
            self.error = ERR_LOGIN_INPUT
            return False

        try:
            users = self.store.load_users()
            record = users.get(username)

            if not record:
                self.error = ERR_USER_NOT_FOUND
                return False

            if record.get("password") != hash_password(password):
                logger.warning(f"Incorrect password for {username}")
                self.error = ERR_BAD_PASSWORD
                return False

            user = User(username=username, key=record["key"])
        except (ValueError, OSError, KeyError, AttributeError) as e:
            logger.error(f"Login failed for {username}: {e}")
            self.error = ERR_LOGIN_FAILED
            return False

        self._start_session(user)
        self._update_online(username, True)
        self.error = ""
        return True

    def send_message(self, text: str) -> bool:
        """
        Encrypt and store a message from the current user.

        Blank text or no signed-in user is a silent no-op.

        Returns: True if the message was stored
        """
        user = self.current_user
        if not text.strip() or user is None:
            return False

        self.reset_session_timeout()

        try:
            stored = self.store.load_messages()
            message = ChatMessage(
                id=new_message_id(m.get("id") for m in stored if isinstance(m, dict)),
                user=user.username,
                text=simple_encrypt(text.strip(), user.key),
                timestamp=utc_timestamp(),
            )
            self.store.append_message(message.to_dict())
        except (ValueError, OSError) as e:
            logger.error(f"Failed to send message: {e}")
            self.error = ERR_SEND_FAILED
            return False

        logger.debug(f"Message {message.id} stored for {user.username}")
        self.load_messages()
        return True

    def load_messages(self) -> None:
        """Replace `messages` with every stored message readable by the current user."""
        user = self.current_user
        if user is None:
            return

        try:
            records = self.store.load_messages()
        except (ValueError, OSError) as e:
            logger.error(f"Error loading messages: {e}")
            return

        decrypted = []
        for record in records:
            try:
                message = ChatMessage.from_dict(record)
            except ValueError as e:
                logger.warning(f"Skipping malformed message record: {e}")
                continue
            text = simple_decrypt(message.text, user.key)
            if text is not None:
                message.text = text
                decrypted.append(message)

        with self._lock:
            if self.current_user is user:
                self.messages = decrypted
