"""Client model for managing connected clients."""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from chatrelay.core.exceptions import DeliveryError
from chatrelay.models.message import Message

logger = logging.getLogger(__name__)

ANONYMOUS = "Anonymous"


@dataclass(eq=False)
class Client:
    """
    Represents a connected client and the sink its messages are pushed to.

    The sink is anything with ``async send_json(data)`` and ``async close()``,
    normally a Starlette WebSocket. Clients compare by identity, since display
    names are not unique.
    """

    username: str
    sink: Any

    def __post_init__(self):
        if not self.username:
            self.username = ANONYMOUS

    async def send(self, message: Message, timeout: Optional[float] = None) -> None:
        """
        Push one message to the remote peer.

        Args:
            message: Message to deliver
            timeout: Seconds to wait for the sink before giving up

        Raises:
            DeliveryError: If the sink fails or does not accept the message in time
        """
        try:
            await asyncio.wait_for(self.sink.send_json(message.to_dict()), timeout)
        except asyncio.TimeoutError as e:
            raise DeliveryError(f"Timed out sending to {self.username}") from e
        except Exception as e:
            raise DeliveryError(f"Failed to send to {self.username}: {str(e)}") from e

    async def close(self, timeout: Optional[float] = None) -> None:
        """
        Close the underlying connection; a peer that is already gone is not an error.

        Args:
            timeout: Seconds to wait for the sink to close before giving up on it
        """
        try:
            await asyncio.wait_for(self.sink.close(), timeout)
        except Exception as e:
            logger.debug(f"Close failed for {self.username}: {str(e)}")

    def __repr__(self) -> str:
        return f"Client(username={self.username!r})"
