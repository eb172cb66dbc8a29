"""Pydantic schemas for API request/response models."""

from smartbin.schemas.area import AreaCreate, AreaDeletionOut, AreaOut, AreaUpdate
from smartbin.schemas.bin import BinDeletionOut, BinOut
from smartbin.schemas.device import DeviceCreate, DeviceDeletionOut, DeviceOut, DeviceUpdate
from smartbin.schemas.mqtt import LastMessage, MessagesResponse, PublishRequest, PublishResponse
from smartbin.schemas.telemetry import (
    ColorUpdate,
    LevelUpdate,
    LevelUpdateOut,
    ProximityUpdate,
    StatusUpdate,
)

__all__ = [
    # Area schemas
    "AreaCreate",
    "AreaUpdate",
    "AreaOut",
    "AreaDeletionOut",
    # Device schemas
    "DeviceCreate",
    "DeviceUpdate",
    "DeviceOut",
    "DeviceDeletionOut",
    # Bin schemas
    "BinOut",
    "BinDeletionOut",
    # State update schemas
    "LevelUpdate",
    "LevelUpdateOut",
    "StatusUpdate",
    "ColorUpdate",
    "ProximityUpdate",
    # MQTT schemas
    "PublishRequest",
    "PublishResponse",
    "LastMessage",
    "MessagesResponse",
]
