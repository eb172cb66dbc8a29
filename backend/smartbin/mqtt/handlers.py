"""Telemetry handlers: resolve the correlation id, then apply the update.

Every handler opens its own session and calls the state updater with MQTT
origin, so rejected or unresolvable telemetry is logged and dropped.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartbin.database import async_session
from smartbin.mqtt.router import TelemetryHandler, TelemetryKind
from smartbin.services.resolver import resolve_bin, resolve_device
from smartbin.services.state_service import (
    Origin,
    update_color,
    update_level,
    update_proximity,
    update_status,
)

logger = logging.getLogger(__name__)


class TelemetryHandlers:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session):
        self._session_factory = session_factory

    def routes(self) -> dict[TelemetryKind, TelemetryHandler]:
        return {
            TelemetryKind.LEVEL: self.handle_level,
            TelemetryKind.STATUS: self.handle_status,
            TelemetryKind.COLOR: self.handle_color,
            TelemetryKind.PROXIMITY: self.handle_proximity,
        }

    async def handle_level(self, identifier: str, payload: dict[str, Any]):
        """``identifier`` is a bin id or a correlation id; a payload bin_id wins."""
        identifier = payload.get("bin_id") or identifier
        async with self._session_factory() as session:
            bin_ = await resolve_bin(session, identifier, payload.get("bin_type"))
            if bin_ is None:
                return None
            return await update_level(
                session,
                bin_.id,
                payload.get("level_percent"),
                payload.get("timestamp"),
                origin=Origin.MQTT,
            )

    async def handle_status(self, correlation_id: str, payload: dict[str, Any]):
        async with self._session_factory() as session:
            device = await resolve_device(session, correlation_id)
            if device is None:
                return None
            return await update_status(
                session,
                device.id,
                status=payload.get("status"),
                timestamp=payload.get("timestamp"),
                origin=Origin.MQTT,
            )

    async def handle_color(self, correlation_id: str, payload: dict[str, Any]):
        async with self._session_factory() as session:
            device = await resolve_device(session, correlation_id)
            if device is None:
                return None
            return await update_color(
                session,
                device.id,
                payload.get("classification"),
                payload.get("confidence"),
                payload.get("rgb"),
                payload.get("timestamp"),
                origin=Origin.MQTT,
            )

    async def handle_proximity(self, correlation_id: str, payload: dict[str, Any]):
        async with self._session_factory() as session:
            device = await resolve_device(session, correlation_id)
            if device is None:
                return None
            return await update_proximity(
                session,
                device.id,
                payload.get("distance_cm"),
                payload.get("trigger"),
                payload.get("timestamp"),
                origin=Origin.MQTT,
            )


async def log_test_message(payload: Any, topic: str) -> None:
    """Override for the literal /test/* topics."""
    logger.info(f"Test message on {topic}: {payload}")
