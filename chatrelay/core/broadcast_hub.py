"""Broadcast hub: persists inbound messages and fans them out to every client."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from chatrelay.core.client_registry import ClientRegistry
from chatrelay.core.exceptions import DeliveryError
from chatrelay.core.message_log import MessageLog
from chatrelay.models.client import Client
from chatrelay.models.message import InboundMessage, Message

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 1024
DEFAULT_SEND_TIMEOUT = 5.0


@dataclass(frozen=True)
class Stats:
    """Point-in-time counters; the two values are read independently."""

    total_messages: int
    active_clients: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_messages': self.total_messages,
            'active_clients': self.active_clients
        }


class BroadcastHub:
    """
    Single worker that turns inbound messages into stored, delivered messages.

    Messages are taken off the queue one at a time, so every client sees them
    in the order they were appended to the log. Within one message, sends run
    concurrently and each is bounded by ``send_timeout``; a client whose send
    fails is closed and removed from the registry.
    """

    def __init__(self, message_log: MessageLog, registry: ClientRegistry,
                 queue_size: int = DEFAULT_QUEUE_SIZE,
                 send_timeout: Optional[float] = DEFAULT_SEND_TIMEOUT):
        """
        Initialize the hub.

        Args:
            message_log: Log that every inbound message is appended to
            registry: Registry of clients to deliver to
            queue_size: Capacity of the inbound queue, 0 for unbounded
            send_timeout: Seconds allowed per client send, None to wait forever
        """
        self.message_log = message_log
        self.registry = registry
        self.send_timeout = send_timeout
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=queue_size)
        self._task: Optional[asyncio.Task] = None

    async def submit(self, username: str, text: str) -> None:
        """Enqueue a message for persistence and broadcast, waiting if the queue is full."""
        await self.queue.put(InboundMessage(username=username, text=text))

    async def process(self, inbound: InboundMessage) -> Message:
        """
        Store one inbound message and deliver it to every registered client.

        Args:
            inbound: Message taken off the queue

        Returns:
            The stored message with its assigned ID and timestamp
        """
        message = self.message_log.append(inbound.username, inbound.text)
        clients = self.registry.snapshot()
        if clients:
            await asyncio.gather(*(self._deliver(client, message) for client in clients))
        return message

    async def _deliver(self, client: Client, message: Message) -> None:
        try:
            await client.send(message, timeout=self.send_timeout)
        except DeliveryError as e:
            logger.error(f"WebSocket error for {client.username}: {str(e)}")
            await self.evict(client)

    async def evict(self, client: Client) -> None:
        """Drop a client from the registry and close its connection, waiting at most ``send_timeout``."""
        if self.registry.remove(client):
            logger.info(f"Client removed due to error: {client.username}")
        await client.close(timeout=self.send_timeout)

    async def run(self) -> None:
        """Consume the inbound queue until cancelled."""
        logger.info("Broadcast hub started")
        try:
            while True:
                inbound = await self.queue.get()
                try:
                    await self.process(inbound)
                except Exception as e:
                    logger.exception(f"Error broadcasting message from {inbound.username}: {str(e)}")
                finally:
                    self.queue.task_done()
        finally:
            logger.info("Broadcast hub stopped")

    def start(self) -> asyncio.Task:
        """Run the consume loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        """Cancel the consume loop and wait for it to finish."""
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def join(self) -> None:
        """
        Wait until every queued message has been processed.

        Not used by the relay itself; callers and tests use it to drain the queue.
        """
        await self.queue.join()

    def stats(self) -> Stats:
        """Get message and client counts."""
        return Stats(
            total_messages=self.message_log.count(),
            active_clients=self.registry.size()
        )
