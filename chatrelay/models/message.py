"""Message models for the chat relay."""

import json
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict

from chatrelay.core.exceptions import MalformedMessageError


@dataclass(frozen=True)
class Message:
    """A chat message as stored in the log and sent to clients."""

    id: int
    username: str
    text: str
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert message to its wire representation."""
        return {
            'id': self.id,
            'username': self.username,
            'text': self.text,
            'timestamp': self.timestamp.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Message':
        """
        Create Message instance from its wire representation.

        The relay only encodes; this is for Python clients and tests reading frames back.
        """
        return cls(
            id=data['id'],
            username=data['username'],
            text=data['text'],
            timestamp=datetime.fromisoformat(data['timestamp'].replace('Z', '+00:00'))
        )


@dataclass(frozen=True)
class InboundMessage:
    """A message waiting on the hub's queue, not yet stored."""

    username: str
    text: str


def decode_inbound(payload: str) -> str:
    """
    Extract the message text from an inbound JSON frame.

    Any username carried in the frame is ignored; the session supplies it.

    Args:
        payload: Raw text frame received from the client

    Returns:
        The message text, or an empty string if the frame has none

    Raises:
        MalformedMessageError: If the frame is not a JSON object or text is not a string
    """
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        raise MalformedMessageError(f"Invalid JSON message: {str(e)}") from e

    if not isinstance(data, dict):
        raise MalformedMessageError(f"Expected a JSON object, got {type(data).__name__}")

    text = data.get('text', '')
    if text is None:
        text = ''
    if not isinstance(text, str):
        raise MalformedMessageError(f"Message text must be a string, got {type(text).__name__}")
    return text
