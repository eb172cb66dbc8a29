"""Area API routes."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.database import get_db
from smartbin.schemas import AreaCreate, AreaDeletionOut, AreaOut, AreaUpdate, DeviceOut
from smartbin.services import (
    create_area,
    delete_area,
    get_area,
    list_areas,
    list_devices,
    rename_area,
    to_device_out,
)

router = APIRouter(prefix="/api/areas", tags=["areas"])


@router.post("", response_model=AreaOut, status_code=201)
async def post_area(body: AreaCreate, session: AsyncSession = Depends(get_db)) -> AreaOut:
    """Create an area from a name; its id is derived from the name."""
    area = await create_area(session, body.name)
    return AreaOut.model_validate(area)


@router.get("", response_model=list[AreaOut])
async def get_areas(session: AsyncSession = Depends(get_db)) -> list[AreaOut]:
    return [AreaOut.model_validate(area) for area in await list_areas(session)]


@router.get("/{area_ref}", response_model=AreaOut)
async def get_one_area(area_ref: str, session: AsyncSession = Depends(get_db)) -> AreaOut:
    """Get an area by derived id or internal id."""
    return AreaOut.model_validate(await get_area(session, area_ref))


@router.put("/{area_ref}", response_model=AreaOut)
async def put_area(
    area_ref: str,
    body: AreaUpdate,
    session: AsyncSession = Depends(get_db),
) -> AreaOut:
    """Rename an area."""
    area = await rename_area(session, area_ref, body.name)
    return AreaOut.model_validate(area)


@router.delete("/{area_ref}", response_model=AreaDeletionOut)
async def remove_area(area_ref: str, session: AsyncSession = Depends(get_db)) -> AreaDeletionOut:
    """Delete an area with all its devices and bins."""
    outcome = await delete_area(session, area_ref)
    return AreaDeletionOut.model_validate(outcome)


@router.get("/{area_ref}/devices", response_model=list[DeviceOut])
async def get_area_devices(area_ref: str, session: AsyncSession = Depends(get_db)) -> list[DeviceOut]:
    """Devices of an area, each with its bins."""
    return [to_device_out(device, bins) for device, bins in await list_devices(session, area_ref)]
