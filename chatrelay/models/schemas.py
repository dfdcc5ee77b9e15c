"""Response models for the HTTP endpoints."""

from datetime import datetime
from typing import Dict

from pydantic import BaseModel


class MessageResponse(BaseModel):
    id: int
    username: str
    text: str
    timestamp: datetime


class StatsResponse(BaseModel):
    total_messages: int
    active_clients: int


class HealthResponse(BaseModel):
    status: str
    total_messages: int
    active_clients: int


class RootResponse(BaseModel):
    message: str
    version: str
    endpoints: Dict[str, str]
