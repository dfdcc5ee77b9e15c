"""Registry of clients eligible to receive broadcasts."""

import logging
import threading
from typing import List, Set

from chatrelay.models.client import Client

logger = logging.getLogger(__name__)


class ClientRegistry:
    """
    Thread-safe set of connected clients.

    Both the client's own session and the broadcast hub may remove a client,
    possibly at the same time, so removal is idempotent.
    """

    def __init__(self):
        self._clients: Set[Client] = set()
        self._lock = threading.Lock()

    def add(self, client: Client) -> None:
        """Register a client for broadcasts."""
        with self._lock:
            self._clients.add(client)
            total = len(self._clients)
        logger.info(f"Client connected: {client.username} (Total clients: {total})")

    def remove(self, client: Client) -> bool:
        """
        Deregister a client.

        Returns:
            True if the client was registered, False if it was already gone
        """
        with self._lock:
            if client not in self._clients:
                return False
            self._clients.discard(client)
            total = len(self._clients)
        logger.info(f"Client disconnected: {client.username} (Total clients: {total})")
        return True

    def snapshot(self) -> List[Client]:
        """Get a copy of the current membership, safe to iterate while it changes."""
        with self._lock:
            return list(self._clients)

    def size(self) -> int:
        with self._lock:
            return len(self._clients)

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, client: Client) -> bool:
        with self._lock:
            return client in self._clients
