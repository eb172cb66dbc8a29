"""State updates: latest-value writes for bin levels and device observations.

Every updater takes the origin of the call. Rejections (bad input, unknown
entity) raise for HTTP callers and are logged and dropped for MQTT callers,
which get ``None`` back. Each update is one row write in its own transaction,
so concurrent writers resolve as last-write-wins.
"""

import logging
import math
from datetime import UTC, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.database import utc_now
from smartbin.errors import ConflictError, NotFoundError, PersistenceError, SmartBinError, ValidationError
from smartbin.models import (
    META_LAST_SEEN,
    META_LAST_STATUS_UPDATE,
    META_LAST_UPDATE,
    META_OFFLINE_REASON,
    Bin,
    Device,
    DeviceStatus,
)

__all__ = [
    "Origin",
    "round_level",
    "validate_level",
    "parse_timestamp",
    "update_level",
    "update_status",
    "update_color",
    "update_proximity",
    "mark_stale_devices_offline",
]

logger = logging.getLogger(__name__)

LEVEL_MIN = 0.0
LEVEL_MAX = 100.0
_TWO_PLACES = Decimal("0.01")
_REPORTED_STATUSES = {DeviceStatus.ONLINE.value, DeviceStatus.OFFLINE.value}


class Origin(StrEnum):
    """Where an update came from; selects the rejection policy."""

    HTTP = "http"
    MQTT = "mqtt"


def _reject(origin: Origin, error: SmartBinError) -> None:
    if origin is Origin.MQTT:
        logger.warning(f"MQTT update dropped: {error}")
        return None
    raise error


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, int | float)
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def round_level(value: float) -> float:
    """Round to 2 decimals, halves away from zero (75.555 -> 75.56)."""
    return float(Decimal(str(value)).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP))


def validate_level(value: Any) -> float:
    """Check a level is a number in [0, 100] and return it rounded."""
    if not _is_number(value):
        raise ValidationError("level_percent must be a number")
    if value < LEVEL_MIN or value > LEVEL_MAX:
        raise ValidationError("level_percent must be between 0 and 100")
    return round_level(value)


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp into naive UTC."""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("timestamp must be an ISO-8601 string")
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError(f"Invalid timestamp '{value}'") from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(UTC).replace(tzinfo=None)
    return parsed


async def _commit(session: AsyncSession, what: str) -> None:
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError(f"Failed to update {what}") from e


async def update_level(
    session: AsyncSession,
    bin_id: str | None,
    level_percent: Any,
    timestamp: Any = None,
    origin: Origin = Origin.HTTP,
) -> Bin | None:
    """Set a bin's level. The optional timestamp is merged into ``meta.last_update``."""
    if not bin_id or level_percent is None:
        return _reject(origin, ValidationError("bin_id and level_percent are required"))

    try:
        level = validate_level(level_percent)
        observed_at = parse_timestamp(timestamp) if timestamp is not None else None
    except ValidationError as e:
        return _reject(origin, e)

    bin_ = await session.get(Bin, bin_id, populate_existing=True)
    if bin_ is None:
        return _reject(origin, NotFoundError("Bin not found", detail={"bin_id": bin_id}))

    bin_.level_percent = level
    if observed_at is not None:
        bin_.meta = {**(bin_.meta or {}), META_LAST_UPDATE: observed_at.isoformat()}
    await _commit(session, f"bin {bin_id}")

    logger.info(f"Bin {bin_id} level set to {level}% ({origin})")
    return bin_


async def update_status(
    session: AsyncSession,
    device_id: str,
    status: str | None = None,
    correlation_id: str | None = None,
    timestamp: Any = None,
    origin: Origin = Origin.HTTP,
) -> Device | None:
    """Record a connectivity report and/or the device's correlation id."""
    if status is None and not correlation_id:
        return _reject(origin, ValidationError("status or client_id_mqtt is required"))
    if status is not None and status not in _REPORTED_STATUSES:
        return _reject(origin, ValidationError("status must be 'online' or 'offline'"))

    try:
        observed_at = parse_timestamp(timestamp) if timestamp is not None else None
    except ValidationError as e:
        return _reject(origin, e)

    device = await session.get(Device, device_id, populate_existing=True)
    if device is None:
        return _reject(origin, NotFoundError("Device not found", detail={"device_id": device_id}))

    if correlation_id and correlation_id != device.correlation_id:
        holder = await session.execute(
            select(Device.id).where(Device.correlation_id == correlation_id, Device.id != device_id)
        )
        if holder.first() is not None:
            return _reject(
                origin,
                ConflictError(f"client_id_mqtt '{correlation_id}' is already registered to another device"),
            )
        device.correlation_id = correlation_id

    meta = dict(device.meta or {})
    if status is not None:
        device.status = status
        meta[META_LAST_SEEN] = utc_now().isoformat()
        meta.pop(META_OFFLINE_REASON, None)
    if observed_at is not None:
        meta[META_LAST_STATUS_UPDATE] = observed_at.isoformat()
    device.meta = meta

    await _commit(session, f"device {device_id}")
    logger.info(f"Device {device_id} status={device.status} ({origin})")
    return device


async def update_color(
    session: AsyncSession,
    device_id: str,
    classification: Any,
    confidence: Any,
    rgb: Any,
    timestamp: Any = None,
    origin: Origin = Origin.HTTP,
) -> Device | None:
    """Replace the device's latest color classification."""
    if not isinstance(classification, str) or not classification.strip():
        return _reject(origin, ValidationError("classification is required"))
    if not _is_number(confidence) or not 0 <= confidence <= 1:
        return _reject(origin, ValidationError("confidence must be a number between 0 and 1"))
    if not isinstance(rgb, list | tuple) or len(rgb) != 3 or not all(_is_number(c) for c in rgb):
        return _reject(origin, ValidationError("rgb must be a list of three numbers"))

    try:
        observed_at = parse_timestamp(timestamp) if timestamp is not None else utc_now()
    except ValidationError as e:
        return _reject(origin, e)

    device = await session.get(Device, device_id, populate_existing=True)
    if device is None:
        return _reject(origin, NotFoundError("Device not found", detail={"device_id": device_id}))

    device.last_color = {
        "classification": classification.strip(),
        "confidence": float(confidence),
        "rgb": list(rgb),
        "ts": observed_at.isoformat(),
    }
    await _commit(session, f"device {device_id}")
    logger.info(f"Device {device_id} color={classification} ({origin})")
    return device


async def update_proximity(
    session: AsyncSession,
    device_id: str,
    distance_cm: Any,
    trigger: Any,
    timestamp: Any = None,
    origin: Origin = Origin.HTTP,
) -> Device | None:
    """Replace the device's latest proximity reading."""
    if not _is_number(distance_cm) or distance_cm < 0:
        return _reject(origin, ValidationError("distance_cm must be a non-negative number"))
    if not isinstance(trigger, bool):
        return _reject(origin, ValidationError("trigger must be a boolean"))

    try:
        observed_at = parse_timestamp(timestamp) if timestamp is not None else utc_now()
    except ValidationError as e:
        return _reject(origin, e)

    device = await session.get(Device, device_id, populate_existing=True)
    if device is None:
        return _reject(origin, NotFoundError("Device not found", detail={"device_id": device_id}))

    device.last_proximity = {
        "distance_cm": float(distance_cm),
        "trigger": trigger,
        "ts": observed_at.isoformat(),
    }
    await _commit(session, f"device {device_id}")
    logger.debug(f"Device {device_id} proximity={distance_cm}cm trigger={trigger} ({origin})")
    return device


async def mark_stale_devices_offline(
    session: AsyncSession,
    timeout_seconds: float,
    now: datetime | None = None,
) -> list[str]:
    """Flip online devices with no status report within the timeout to offline."""
    now = now or utc_now()
    cutoff = now - timedelta(seconds=timeout_seconds)

    result = await session.execute(
        select(Device).where(Device.status == DeviceStatus.ONLINE.value)
    )
    stale: list[str] = []
    for device in result.scalars():
        last_seen = (device.meta or {}).get(META_LAST_SEEN)
        try:
            seen_at = datetime.fromisoformat(last_seen) if last_seen else None
        except ValueError:
            seen_at = None
        if seen_at is not None and seen_at >= cutoff:
            continue
        device.status = DeviceStatus.OFFLINE.value
        device.meta = {**(device.meta or {}), META_OFFLINE_REASON: "heartbeat_timeout"}
        stale.append(device.id)

    if stale:
        await _commit(session, "stale devices")
        logger.info(f"Marked {len(stale)} device(s) offline: {', '.join(stale)}")
    return stale
