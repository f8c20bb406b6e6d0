"""
Background polling of the message store.

While a user is signed in, a MessagePoller thread reloads the session's
messages every `interval` seconds and hands the result to an optional
callback. There is no diffing or backpressure: each tick replaces the
session's message list wholesale.
"""

import logging
import threading
from typing import Callable, List, Optional


logger = logging.getLogger(__name__)


class MessagePoller(threading.Thread):
    """Daemon thread that periodically calls session.load_messages()."""

    def __init__(self, session, interval: float, on_update: Optional[Callable[[List], None]] = None):
        """
        Args:
            session: ChatSession to refresh
            interval: Seconds between reloads (must be > 0)
            on_update: Called with the session's messages after each tick
        """
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        super().__init__(name="securechat-poller", daemon=True)
        self.session = session
        self.interval = interval
        self.on_update = on_update
        self._stop_event = threading.Event()

    def tick(self) -> None:
        """Reload messages and the online list once."""
        self.session.load_messages()
        self.session.refresh_online()
        if self.on_update is not None:
            self.on_update(list(self.session.messages))

    def run(self) -> None:
        logger.debug(f"Poller started (interval={self.interval}s)")
        while not self._stop_event.wait(self.interval):
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Polling tick failed: {e}")
        logger.debug("Poller stopped")

    @property
    def stopped(self) -> bool:
        return self._stop_event.is_set()

    def stop(self, timeout: float = 5.0) -> None:
        """Signal the thread to exit and wait for it (safe to call twice)."""
        self._stop_event.set()
        if self.is_alive() and threading.current_thread() is not self:
            self.join(timeout)
