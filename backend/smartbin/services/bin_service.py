"""Bin queries and explicit bin delete. Bins are only created with their device."""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.errors import NotFoundError, PersistenceError
from smartbin.models import Bin, Device
from smartbin.schemas import BinOut
from smartbin.services.status import classify

__all__ = ["to_bin_out", "list_bins", "get_bin", "delete_bin"]

logger = logging.getLogger(__name__)


def to_bin_out(bin_: Bin) -> BinOut:
    """Serialize a bin, deriving its fill status from the stored level."""
    return BinOut(
        id=bin_.id,
        device_id=bin_.device_id,
        assigned_type=bin_.assigned_type,
        level_percent=bin_.level_percent,
        status=classify(bin_.level_percent).value,
        meta=bin_.meta or {},
        created_at=bin_.created_at,
        updated_at=bin_.updated_at,
    )


async def list_bins(session: AsyncSession, device_id: str | None = None) -> list[Bin]:
    query = select(Bin).order_by(Bin.created_at.desc(), Bin.id)
    if device_id:
        query = query.where(Bin.device_id == device_id)
    result = await session.execute(query)
    return list(result.scalars().all())


async def get_bin(session: AsyncSession, bin_id: str) -> Bin:
    bin_ = await session.get(Bin, bin_id)
    if bin_ is None:
        raise NotFoundError("Bin not found", detail={"bin_id": bin_id})
    return bin_


async def delete_bin(session: AsyncSession, bin_id: str) -> Bin:
    """Detach a bin from its device's bin list, then delete it."""
    bin_ = await get_bin(session, bin_id)

    try:
        device = await session.get(Device, bin_.device_id, populate_existing=True)
        if device is not None and bin_id in device.bins:
            device.bins = [b for b in device.bins if b != bin_id]
        await session.execute(delete(Bin).where(Bin.id == bin_id))
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError("Failed to delete bin") from e

    logger.info(f"Bin deleted: {bin_id}")
    return bin_
