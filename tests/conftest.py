"""Shared fixtures and fake connections for the relay tests."""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import pytest

from chatrelay.core.broadcast_hub import BroadcastHub
from chatrelay.core.client_registry import ClientRegistry
from chatrelay.core.message_log import MessageLog


class FakeWebSocket:
    """Stand-in for a Starlette WebSocket that records what the relay sends."""

    def __init__(self, fail_send: bool = False, send_delay: Optional[float] = None):
        self.sent: List[Dict[str, Any]] = []
        self.incoming: asyncio.Queue = asyncio.Queue()
        self.accepted = False
        self.closed = False
        self.close_calls = 0
        self.fail_send = fail_send
        self.send_delay = send_delay

    async def accept(self) -> None:
        self.accepted = True

    async def send_json(self, data: Dict[str, Any]) -> None:
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        if self.fail_send or self.closed:
            raise RuntimeError("Cannot call send once a close message has been sent.")
        self.sent.append(data)

    async def receive(self) -> Dict[str, Any]:
        if self.closed:
            raise RuntimeError('WebSocket is not connected. Need to call "accept" first.')
        return await self.incoming.get()

    async def close(self, code: int = 1000) -> None:
        self.closed = True
        self.close_calls += 1

    def push_text(self, text: str) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "text": text})

    def push_json(self, data: Any) -> None:
        self.push_text(json.dumps(data))

    def push_bytes(self, data: bytes) -> None:
        self.incoming.put_nowait({"type": "websocket.receive", "bytes": data})

    def push_disconnect(self, code: int = 1000) -> None:
        self.incoming.put_nowait({"type": "websocket.disconnect", "code": code})


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll ``predicate`` until it holds, failing the test after ``timeout`` seconds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def message_log():
    return MessageLog()


@pytest.fixture
def registry():
    return ClientRegistry()


@pytest.fixture
def hub(message_log, registry):
    return BroadcastHub(message_log, registry, send_timeout=0.5)
