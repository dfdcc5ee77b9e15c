"""Unit tests for model classes."""

import asyncio
from datetime import datetime, timezone

import pytest
from conftest import FakeWebSocket

from chatrelay.core.exceptions import DeliveryError, MalformedMessageError
from chatrelay.models.client import Client
from chatrelay.models.message import Message, decode_inbound


def test_message_wire_format():
    """Test Message serializes to exactly the four client-facing fields."""
    timestamp = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)
    message = Message(id=7, username="Alice", text="hello", timestamp=timestamp)

    assert message.to_dict() == {
        "id": 7,
        "username": "Alice",
        "text": "hello",
        "timestamp": "2024-05-01T12:30:00+00:00"
    }
    assert Message.from_dict(message.to_dict()) == message


def test_message_from_dict_accepts_zulu_suffix():
    message = Message.from_dict({
        "id": 1,
        "username": "Alice",
        "text": "hi",
        "timestamp": "2024-05-01T12:30:00Z"
    })
    assert message.timestamp == datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def test_decode_inbound():
    assert decode_inbound('{"text": "hello"}') == "hello"
    assert decode_inbound('{"username": "Mallory", "text": "hi", "id": 99}') == "hi"
    assert decode_inbound('{}') == ""
    assert decode_inbound('{"text": null}') == ""


@pytest.mark.parametrize("payload", ["", "not json", '"text"', "[]", '{"text": 1}', '{"text": ["a"]}'])
def test_decode_inbound_rejects_malformed(payload):
    with pytest.raises(MalformedMessageError):
        decode_inbound(payload)


def test_client_defaults_to_anonymous():
    assert Client(username="", sink=None).username == "Anonymous"
    assert Client(username="Bob", sink=None).username == "Bob"


def test_clients_compare_by_identity():
    first = Client(username="Bob", sink=None)
    second = Client(username="Bob", sink=None)
    assert first != second
    assert len({first, second}) == 2


@pytest.mark.asyncio
async def test_client_send():
    ws = FakeWebSocket()
    client = Client(username="Alice", sink=ws)
    message = Message(id=1, username="Bob", text="hi", timestamp=datetime.now(timezone.utc))

    await client.send(message)

    assert ws.sent == [message.to_dict()]


@pytest.mark.asyncio
async def test_client_send_failure_raises_delivery_error():
    client = Client(username="Alice", sink=FakeWebSocket(fail_send=True))
    message = Message(id=1, username="Bob", text="hi", timestamp=datetime.now(timezone.utc))

    with pytest.raises(DeliveryError):
        await client.send(message)


@pytest.mark.asyncio
async def test_client_send_timeout_raises_delivery_error():
    client = Client(username="Alice", sink=FakeWebSocket(send_delay=5))
    message = Message(id=1, username="Bob", text="hi", timestamp=datetime.now(timezone.utc))

    with pytest.raises(DeliveryError):
        await asyncio.wait_for(client.send(message, timeout=0.05), timeout=1)


@pytest.mark.asyncio
async def test_client_close_tolerates_closed_peer():
    class BrokenSink:
        async def close(self):
            raise RuntimeError("already closed")

    await Client(username="Alice", sink=BrokenSink()).close()
