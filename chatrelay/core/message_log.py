"""In-memory message log with reader/writer locking."""

import logging
import threading
from collections import deque
from contextlib import contextmanager
from datetime import datetime, timezone
from itertools import islice
from typing import Deque, Iterator, List, Optional

from chatrelay.models.message import Message

logger = logging.getLogger(__name__)

DEFAULT_RECENT_LIMIT = 50


class ReadWriteLock:
    """
    Many concurrent readers or a single writer.

    Writers are preferred: once a writer is waiting, new readers queue behind it.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read_locked(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write_locked(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            while self._writer or self._readers:
                self._cond.wait()
            self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class MessageLog:
    """
    Append-only store of chat messages.

    IDs start at 1 and grow by one per append. By default nothing is ever
    dropped; with ``max_messages`` set the log keeps only the newest entries,
    but IDs keep counting across evictions.
    """

    def __init__(self, max_messages: Optional[int] = None):
        """
        Initialize an empty log.

        Args:
            max_messages: Retain at most this many messages, or None for no bound
        """
        if max_messages is not None and max_messages <= 0:
            raise ValueError("max_messages must be positive or None")
        self.max_messages = max_messages
        self._messages: Deque[Message] = deque(maxlen=max_messages)
        self._next_id = 1
        self._lock = ReadWriteLock()

    def append(self, username: str, text: str) -> Message:
        """
        Store a new message stamped with the next ID and the current time.

        Args:
            username: Display name of the sender
            text: Message body, stored as-is

        Returns:
            The stored message
        """
        with self._lock.write_locked():
            message = Message(
                id=self._next_id,
                username=username,
                text=text,
                timestamp=datetime.now(timezone.utc)
            )
            self._messages.append(message)
            self._next_id += 1

        logger.info(f"Message saved: {username}: {text}")
        return message

    def recent(self, limit: int = DEFAULT_RECENT_LIMIT) -> List[Message]:
        """
        Get the newest messages in the order they were appended.

        Args:
            limit: Maximum number of messages; values <= 0 mean DEFAULT_RECENT_LIMIT

        Returns:
            A new list holding at most ``limit`` messages, oldest first
        """
        if limit <= 0:
            limit = DEFAULT_RECENT_LIMIT

        with self._lock.read_locked():
            start = max(len(self._messages) - limit, 0)
            return list(islice(self._messages, start, None))

    def count(self) -> int:
        """Get the number of stored messages."""
        with self._lock.read_locked():
            return len(self._messages)

    def __len__(self) -> int:
        return self.count()
