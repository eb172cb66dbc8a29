"""Device lifecycle: creation with its bins, updates, and cascading delete."""

import logging
import secrets
import string
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from smartbin.models import (
    DEFAULT_BIN_TYPES,
    DEFAULT_MODEL,
    Area,
    Bin,
    BinType,
    Device,
    DeviceStatus,
    make_bin_id,
)
from smartbin.schemas import DeviceOut
from smartbin.services.bin_service import to_bin_out
from smartbin.services.resolver import resolve_area

__all__ = [
    "DeviceDeletion",
    "generate_device_id",
    "to_device_out",
    "create_device",
    "list_devices",
    "get_device",
    "get_device_bins",
    "update_device",
    "delete_device",
]

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_lowercase
RANDOM_SUFFIX_LENGTH = 6


@dataclass
class DeviceDeletion:
    """Outcome of a cascading device delete.

    The three steps (bins, area detach, device row) commit independently, so a
    failed step is reported here instead of undoing the ones before it.
    """

    device_id: str
    deleted_bins: int = 0
    detached_from_area: bool = False
    device_deleted: bool = False
    errors: list[str] = field(default_factory=list)


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_device_id() -> str:
    """Millisecond timestamp plus a random suffix, both base36.

    No counter or coordination is involved; collisions are treated as
    negligible and surface as a ConflictError if they ever happen.
    """
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(RANDOM_SUFFIX_LENGTH))
    return f"device-{timestamp}{suffix}"


def to_device_out(device: Device, bins: list[Bin] | None = None) -> DeviceOut:
    """Serialize a device, embedding its bins when given."""
    out = DeviceOut.model_validate(device)
    if bins is not None:
        out.bins_data = [to_bin_out(b) for b in bins]
    return out


def _clean_name(name: str | None) -> str:
    if name is None or not str(name).strip():
        raise ValidationError("name is required")
    return str(name).strip()


def _validate_bin_types(bin_types: Iterable[str] | None) -> list[BinType]:
    if bin_types is None:
        return list(DEFAULT_BIN_TYPES)

    types: list[BinType] = []
    for raw in bin_types:
        try:
            bin_type = BinType(str(raw).strip().lower())
        except ValueError:
            allowed = ", ".join(t.value for t in BinType)
            raise ValidationError(f"Unknown bin type '{raw}' (allowed: {allowed})") from None
        if bin_type in types:
            raise ValidationError(f"Duplicate bin type '{bin_type}'")
        types.append(bin_type)

    if not types:
        raise ValidationError("A device needs at least one bin type")
    return types


async def create_device(
    session: AsyncSession,
    name: str | None,
    area_ref: str | int | None,
    bin_types: Iterable[str] | None = None,
    model: str | None = None,
) -> tuple[Device, list[Bin]]:
    """Create a device in an existing area together with its bins.

    The area is resolved by derived identity or internal id. The device row,
    the area's device set, the bins and the device's bin list are written in a
    single transaction.
    """
    name = _clean_name(name)
    if area_ref is None or not str(area_ref).strip():
        raise ValidationError("areaId is required")
    types = _validate_bin_types(bin_types)

    area = await resolve_area(session, area_ref)
    if area is None:
        raise NotFoundError("Area not found", detail={"area": str(area_ref)})

    device_id = generate_device_id()
    device = Device(
        id=device_id,
        name=name,
        area_ref=area.id,
        model=model or DEFAULT_MODEL,
        status=DeviceStatus.UNKNOWN.value,
        bins=[],
        meta={},
    )

    try:
        session.add(device)
        await session.flush()

        if device_id not in area.devices:
            area.devices = [*area.devices, device_id]

        bins = [
            Bin(
                id=make_bin_id(device_id, bin_type.value),
                device_id=device_id,
                assigned_type=bin_type.value,
                level_percent=0.0,
                meta={},
            )
            for bin_type in types
        ]
        session.add_all(bins)
        await session.flush()

        device.bins = [b.id for b in bins]
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("Device identity collision, retry the request") from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError("Failed to create device") from e

    logger.info(f"Device created: {device_id} in area {area.area_id} with bins {device.bins}")
    return device, bins


async def list_devices(
    session: AsyncSession,
    area_ref: str | int | None = None,
) -> list[tuple[Device, list[Bin]]]:
    """Devices (newest first) with their bins, optionally limited to one area."""
    query = select(Device).order_by(Device.created_at.desc(), Device.id.desc())
    if area_ref is not None:
        area = await resolve_area(session, area_ref)
        if area is None:
            raise NotFoundError("Area not found", detail={"area": str(area_ref)})
        query = query.where(Device.area_ref == area.id)

    result = await session.execute(query)
    devices = list(result.scalars().all())
    if not devices:
        return []

    bins_result = await session.execute(
        select(Bin)
        .where(Bin.device_id.in_([d.id for d in devices]))
        .order_by(Bin.assigned_type)
    )
    bins_by_device: dict[str, list[Bin]] = {}
    for bin_ in bins_result.scalars():
        bins_by_device.setdefault(bin_.device_id, []).append(bin_)

    return [(device, bins_by_device.get(device.id, [])) for device in devices]


async def get_device(session: AsyncSession, device_id: str) -> Device:
    device = await session.get(Device, device_id)
    if device is None:
        raise NotFoundError("Device not found", detail={"device_id": device_id})
    return device


async def get_device_bins(session: AsyncSession, device_id: str) -> list[Bin]:
    """Bins currently owned by a device, ordered by type."""
    await get_device(session, device_id)
    result = await session.execute(
        select(Bin).where(Bin.device_id == device_id).order_by(Bin.assigned_type)
    )
    return list(result.scalars().all())


async def update_device(
    session: AsyncSession,
    device_id: str,
    name: str | None = None,
    area_ref: str | int | None = None,
    meta: dict[str, Any] | None = None,
    correlation_id: str | None = None,
) -> Device:
    """Operator update: rename, move area, merge metadata, register correlation id."""
    device = await get_device(session, device_id)

    if name is not None:
        device.name = _clean_name(name)

    if correlation_id is not None:
        correlation_id = str(correlation_id).strip()
        if not correlation_id:
            raise ValidationError("client_id_mqtt cannot be empty")
        holder = await session.execute(
            select(Device.id).where(Device.correlation_id == correlation_id, Device.id != device_id)
        )
        if holder.first() is not None:
            raise ConflictError(
                f"client_id_mqtt '{correlation_id}' is already registered to another device"
            )
        device.correlation_id = correlation_id

    if area_ref is not None:
        new_area = await resolve_area(session, area_ref)
        if new_area is None:
            raise NotFoundError("Area not found", detail={"area": str(area_ref)})
        if new_area.id != device.area_ref:
            old_area = await session.get(Area, device.area_ref)
            if old_area is not None:
                old_area.devices = [d for d in old_area.devices if d != device_id]
            if device_id not in new_area.devices:
                new_area.devices = [*new_area.devices, device_id]
            device.area_ref = new_area.id

    if meta is not None:
        if not isinstance(meta, dict):
            raise ValidationError("meta must be an object")
        device.meta = {**(device.meta or {}), **meta}

    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError("client_id_mqtt is already registered to another device") from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError("Failed to update device") from e

    logger.info(f"Device updated: {device_id}")
    return device


async def delete_device(session: AsyncSession, device_id: str) -> DeviceDeletion:
    """Delete a device's bins, detach it from its area, then delete the device.

    Each step commits on its own and a failing step does not stop the next one.
    Readers may briefly see bins without a device or a device without bins.
    """
    device = await get_device(session, device_id)
    area_ref = device.area_ref
    outcome = DeviceDeletion(device_id=device_id)

    try:
        result = await session.execute(delete(Bin).where(Bin.device_id == device_id))
        await session.commit()
        outcome.deleted_bins = result.rowcount
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Device {device_id}: deleting bins failed: {e}")
        outcome.errors.append(f"bins: {e}")

    try:
        area = await session.get(Area, area_ref, populate_existing=True)
        if area is not None and device_id in area.devices:
            area.devices = [d for d in area.devices if d != device_id]
            await session.commit()
            outcome.detached_from_area = True
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Device {device_id}: detaching from area {area_ref} failed: {e}")
        outcome.errors.append(f"area: {e}")

    try:
        result = await session.execute(delete(Device).where(Device.id == device_id))
        await session.commit()
        outcome.device_deleted = result.rowcount > 0
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Device {device_id}: deleting device row failed: {e}")
        outcome.errors.append(f"device: {e}")

    logger.info(
        f"Device {device_id} deleted: {outcome.deleted_bins} bins, "
        f"detached={outcome.detached_from_area}, errors={len(outcome.errors)}"
    )
    return outcome
