"""Device API routes."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.database import get_db
from smartbin.schemas import (
    BinOut,
    ColorUpdate,
    DeviceCreate,
    DeviceDeletionOut,
    DeviceOut,
    DeviceUpdate,
    ProximityUpdate,
    StatusUpdate,
)
from smartbin.services import (
    Origin,
    create_device,
    delete_device,
    get_device,
    get_device_bins,
    list_devices,
    to_bin_out,
    to_device_out,
    update_color,
    update_device,
    update_proximity,
    update_status,
)

router = APIRouter(prefix="/api/devices", tags=["devices"])


@router.post("", response_model=DeviceOut, status_code=201)
async def post_device(body: DeviceCreate, session: AsyncSession = Depends(get_db)) -> DeviceOut:
    """Create a device and its bins in an existing area."""
    device, bins = await create_device(
        session, body.name, body.area_id, bin_types=body.bin_types, model=body.model
    )
    return to_device_out(device, bins)


@router.get("", response_model=list[DeviceOut])
async def get_devices(
    area_id: str | None = Query(None, alias="areaId", description="Filter by area"),
    session: AsyncSession = Depends(get_db),
) -> list[DeviceOut]:
    """All devices with their bins, newest first."""
    return [to_device_out(device, bins) for device, bins in await list_devices(session, area_id)]


@router.get("/{device_id}", response_model=DeviceOut)
async def get_one_device(device_id: str, session: AsyncSession = Depends(get_db)) -> DeviceOut:
    device = await get_device(session, device_id)
    bins = await get_device_bins(session, device_id)
    return to_device_out(device, bins)


@router.put("/{device_id}", response_model=DeviceOut)
async def put_device(
    device_id: str,
    body: DeviceUpdate,
    session: AsyncSession = Depends(get_db),
) -> DeviceOut:
    """Rename, move, merge metadata or register the hardware correlation id."""
    device = await update_device(
        session,
        device_id,
        name=body.name,
        area_ref=body.area_id,
        meta=body.meta,
        correlation_id=body.client_id_mqtt,
    )
    return to_device_out(device)


@router.delete("/{device_id}", response_model=DeviceDeletionOut)
async def remove_device(device_id: str, session: AsyncSession = Depends(get_db)) -> DeviceDeletionOut:
    """Delete a device and its bins and detach it from its area."""
    outcome = await delete_device(session, device_id)
    return DeviceDeletionOut.model_validate(outcome)


@router.get("/{device_id}/bins", response_model=list[BinOut])
async def get_bins_of_device(device_id: str, session: AsyncSession = Depends(get_db)) -> list[BinOut]:
    return [to_bin_out(b) for b in await get_device_bins(session, device_id)]


@router.put("/{device_id}/status", response_model=DeviceOut)
async def put_device_status(
    device_id: str,
    body: StatusUpdate,
    session: AsyncSession = Depends(get_db),
) -> DeviceOut:
    device = await update_status(
        session,
        device_id,
        status=body.status,
        correlation_id=body.client_id_mqtt,
        timestamp=body.timestamp,
        origin=Origin.HTTP,
    )
    return to_device_out(device)


@router.put("/{device_id}/color", response_model=DeviceOut)
async def put_device_color(
    device_id: str,
    body: ColorUpdate,
    session: AsyncSession = Depends(get_db),
) -> DeviceOut:
    device = await update_color(
        session,
        device_id,
        body.classification,
        body.confidence,
        body.rgb,
        body.timestamp,
        origin=Origin.HTTP,
    )
    return to_device_out(device)


@router.put("/{device_id}/proximity", response_model=DeviceOut)
async def put_device_proximity(
    device_id: str,
    body: ProximityUpdate,
    session: AsyncSession = Depends(get_db),
) -> DeviceOut:
    device = await update_proximity(
        session,
        device_id,
        body.distance_cm,
        body.trigger,
        body.timestamp,
        origin=Origin.HTTP,
    )
    return to_device_out(device)
