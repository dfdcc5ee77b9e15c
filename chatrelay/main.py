"""Main FastAPI application with the relay WebSocket and query endpoints."""

import logging
from contextlib import asynccontextmanager
from typing import List, Optional

import uvicorn
from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware

from chatrelay import __version__
from chatrelay.config import RelayConfig
from chatrelay.core.broadcast_hub import BroadcastHub
from chatrelay.core.client_registry import ClientRegistry
from chatrelay.core.message_log import MessageLog
from chatrelay.core.session import ConnectionSession
from chatrelay.models.schemas import HealthResponse, MessageResponse, RootResponse, StatsResponse

logger = logging.getLogger(__name__)


def parse_limit(raw: Optional[str], default: int) -> int:
    """Parse a ?limit= value, falling back to ``default`` when missing or not a positive integer."""
    if not raw:
        return default
    try:
        limit = int(raw)
    except ValueError:
        return default
    return limit if limit > 0 else default


def create_app(config: Optional[RelayConfig] = None) -> FastAPI:
    """
    Build the relay application.

    The message log, client registry and broadcast hub are created here and
    kept on ``app.state``; the hub runs for the lifetime of the app.
    """
    config = config or RelayConfig()

    message_log = MessageLog(max_messages=config.max_messages)
    registry = ClientRegistry()
    hub = BroadcastHub(message_log, registry,
                       queue_size=config.queue_size,
                       send_timeout=config.send_timeout)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        hub.start()
        if config.max_messages is None:
            logger.info("Using in-memory storage - messages will be lost on server restart")
        else:
            logger.info(f"Using in-memory storage, keeping the last {config.max_messages} messages")
        try:
            yield
        finally:
            await hub.stop()

    app = FastAPI(title="Chat Relay", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.message_log = message_log
    app.state.registry = registry
    app.state.hub = hub

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/", response_model=RootResponse)
    async def root():
        """Root endpoint returning API information."""
        return {
            "message": "Chat Relay",
            "version": __version__,
            "endpoints": {
                "websocket": "/ws?username={name}",
                "messages": "/messages?limit={n}",
                "stats": "/stats",
                "health": "/health"
            }
        }

    @app.get("/messages", response_model=List[MessageResponse])
    async def get_messages(request: Request, limit: Optional[str] = None):
        """Get the most recent messages, oldest first."""
        limit = parse_limit(limit, request.app.state.config.messages_limit)
        return [message.to_dict() for message in request.app.state.message_log.recent(limit)]

    @app.get("/stats", response_model=StatsResponse)
    async def get_stats(request: Request):
        """Get message and connected client counts."""
        return request.app.state.hub.stats().to_dict()

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check endpoint."""
        stats = request.app.state.hub.stats()
        return {
            "status": "healthy" if request.app.state.hub.running else "degraded",
            "total_messages": stats.total_messages,
            "active_clients": stats.active_clients
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket, username: str = ""):
        """
        WebSocket endpoint for the relay.

        Args:
            websocket: WebSocket connection
            username: Display name bound to this connection
        """
        state = websocket.app.state
        session = ConnectionSession(
            websocket,
            username,
            state.message_log,
            state.registry,
            state.hub,
            history_limit=state.config.history_limit
        )
        await session.run()

    return app


app = create_app(RelayConfig.from_env())


def main() -> None:
    config = RelayConfig.from_env()
    logging.basicConfig(level=config.log_level)
    logger.info(f"Server starting on {config.host}:{config.port}")
    uvicorn.run(
        create_app(config),
        host=config.host,
        port=config.port,
        log_level=config.log_level.lower()
    )


if __name__ == "__main__":
    main()
