"""Entity resolution: maps external references to persisted entities.

Telemetry only ever refers to hardware by its correlation id. Resolution is a
pure lookup: nothing here creates an entity, so a device must be registered
(and its correlation id recorded) before its telemetry is accepted.
"""

import logging
import re

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.models import Area, Bin, Device

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")


def derive_area_id(name: str) -> str:
    """'  Main Hall ' -> 'main_hall'."""
    return _WHITESPACE.sub("_", name.strip().lower())


async def resolve_area(session: AsyncSession, ref: str | int) -> Area | None:
    """Look up an area by its derived identity, falling back to its internal id.

    The display name works too: "Main Hall" resolves like "main_hall".
    """
    ref = str(ref).strip()
    result = await session.execute(select(Area).where(Area.area_id == derive_area_id(ref)))
    area = result.scalar_one_or_none()
    if area is None and ref.isdigit():
        area = await session.get(Area, int(ref))
    return area


async def resolve_device(session: AsyncSession, correlation_id: str) -> Device | None:
    """Find the device registered under a hardware correlation id."""
    if not correlation_id:
        logger.warning("Telemetry without correlation id dropped")
        return None

    result = await session.execute(select(Device).where(Device.correlation_id == correlation_id))
    device = result.scalar_one_or_none()
    if device is None:
        logger.warning(f"Unregistered correlation id '{correlation_id}' - telemetry dropped")
    return device


async def resolve_bin(
    session: AsyncSession,
    identifier: str,
    bin_type: str | None = None,
) -> Bin | None:
    """Resolve level telemetry to a bin.

    ``identifier`` is either a bin identity or a device correlation id. A bin
    identity match wins. Otherwise the device's bin of ``bin_type`` is used, or
    its only bin when it has exactly one.
    """
    if not identifier:
        logger.warning("Level telemetry without bin or correlation id dropped")
        return None

    bin_ = await session.get(Bin, identifier)
    if bin_ is not None:
        return bin_

    device = await resolve_device(session, identifier)
    if device is None:
        return None

    result = await session.execute(select(Bin).where(Bin.device_id == device.id))
    bins = list(result.scalars().all())

    if bin_type:
        for candidate in bins:
            if candidate.assigned_type == bin_type:
                return candidate
        logger.warning(f"Device {device.id} has no '{bin_type}' bin - level dropped")
        return None

    if len(bins) == 1:
        return bins[0]

    logger.warning(
        f"Device {device.id} has {len(bins)} bins and no bin_type was given - level dropped"
    )
    return None
