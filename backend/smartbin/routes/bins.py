"""Bin API routes. Bins are created with their device, never on their own."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.database import get_db
from smartbin.schemas import BinDeletionOut, BinOut, LevelUpdate, LevelUpdateOut
from smartbin.services import Origin, classify, delete_bin, get_bin, list_bins, to_bin_out, update_level

router = APIRouter(prefix="/api/bins", tags=["bins"])


@router.get("", response_model=list[BinOut])
async def get_bins(
    device_id: str | None = Query(None, description="Filter by owning device"),
    session: AsyncSession = Depends(get_db),
) -> list[BinOut]:
    return [to_bin_out(b) for b in await list_bins(session, device_id)]


@router.put("/level", response_model=LevelUpdateOut)
async def put_bin_level(body: LevelUpdate, session: AsyncSession = Depends(get_db)) -> LevelUpdateOut:
    """Set a bin's fill level (0-100, rounded to 2 decimals)."""
    bin_ = await update_level(
        session, body.bin_id, body.level_percent, body.timestamp, origin=Origin.HTTP
    )
    return LevelUpdateOut(
        bin_id=bin_.id,
        level_percent=bin_.level_percent,
        status=classify(bin_.level_percent).value,
    )


@router.get("/{bin_id}", response_model=BinOut)
async def get_one_bin(bin_id: str, session: AsyncSession = Depends(get_db)) -> BinOut:
    return to_bin_out(await get_bin(session, bin_id))


@router.delete("/{bin_id}", response_model=BinDeletionOut)
async def remove_bin(bin_id: str, session: AsyncSession = Depends(get_db)) -> BinDeletionOut:
    """Delete one bin and drop it from its device's bin list."""
    bin_ = await delete_bin(session, bin_id)
    return BinDeletionOut(bin_id=bin_.id, device_id=bin_.device_id)
