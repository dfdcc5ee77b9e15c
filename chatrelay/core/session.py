"""Per-connection session: history replay, inbound read loop and teardown."""

import logging
from enum import Enum
from typing import Any

from starlette.websockets import WebSocketDisconnect

from chatrelay.core.broadcast_hub import BroadcastHub
from chatrelay.core.client_registry import ClientRegistry
from chatrelay.core.exceptions import DeliveryError, MalformedMessageError
from chatrelay.core.message_log import MessageLog
from chatrelay.models.client import ANONYMOUS, Client
from chatrelay.models.message import decode_inbound

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 100


class SessionState(Enum):
    """Lifecycle of a connection session."""
    CONNECTING = "connecting"
    ACTIVE = "active"
    CLOSED = "closed"


class ConnectionSession:
    """
    Drives one WebSocket connection from accept to close.

    The display name is bound once when the session is created. Every inbound
    frame is forwarded to the hub under that name, whatever the frame says.
    """

    def __init__(self, websocket: Any, username: str, message_log: MessageLog,
                 registry: ClientRegistry, hub: BroadcastHub,
                 history_limit: int = DEFAULT_HISTORY_LIMIT):
        self.websocket = websocket
        self.client = Client(username=username or ANONYMOUS, sink=websocket)
        self.message_log = message_log
        self.registry = registry
        self.hub = hub
        self.history_limit = history_limit
        self.state = SessionState.CONNECTING

    @property
    def username(self) -> str:
        return self.client.username

    async def run(self) -> None:
        """Serve the connection until the peer goes away or sends something unreadable."""
        try:
            await self.open()
            await self._read_loop()
        except WebSocketDisconnect:
            logger.info(f"Connection closed by {self.username}")
        except MalformedMessageError as e:
            logger.error(f"Error reading JSON from {self.username}: {str(e)}")
        except DeliveryError as e:
            logger.error(f"Error sending history to {self.username}: {str(e)}")
        except RuntimeError as e:
            logger.error(f"WebSocket error for {self.username}: {str(e)}")
        finally:
            await self.close()

    async def open(self) -> None:
        """
        Accept the connection, register the client and replay recent history.

        Raises:
            DeliveryError: If history cannot be pushed to the peer
        """
        await self.websocket.accept()
        self.state = SessionState.ACTIVE
        self.registry.add(self.client)

        for message in self.message_log.recent(self.history_limit):
            await self.client.send(message, timeout=self.hub.send_timeout)

    async def _read_loop(self) -> None:
        while self.state is SessionState.ACTIVE:
            frame = await self.websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))

            payload = frame.get("text")
            if payload is None:
                raise MalformedMessageError("Binary frames are not supported")

            text = decode_inbound(payload)
            await self.hub.submit(self.username, text)

    async def close(self) -> None:
        """Deregister the client and release the connection. Only the first call has any effect."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED
        self.registry.remove(self.client)
        await self.client.close()
