"""Pydantic schemas for the MQTT diagnostics endpoints."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class PublishRequest(BaseModel):
    topic: str | None = None
    message: Any = None


class PublishResponse(BaseModel):
    success: bool
    topic: str
    message: str


class LastMessage(BaseModel):
    """Most recent raw payload seen on a topic."""

    topic: str
    payload: str
    timestamp: datetime


class MessagesResponse(BaseModel):
    connected: bool
    messages: dict[str, LastMessage]
