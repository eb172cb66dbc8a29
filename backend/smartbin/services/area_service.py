"""Area lifecycle: create, rename, list and cascade-delete areas."""

import logging
from dataclasses import dataclass, field

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from smartbin.errors import ConflictError, NotFoundError, PersistenceError, ValidationError
from smartbin.models import Area, Device
from smartbin.services.device_service import delete_device
from smartbin.services.resolver import derive_area_id, resolve_area

__all__ = [
    "AreaDeletion",
    "derive_area_id",
    "create_area",
    "list_areas",
    "get_area",
    "rename_area",
    "delete_area",
]

logger = logging.getLogger(__name__)


@dataclass
class AreaDeletion:
    """Outcome of a cascading area delete. Counts are rows actually removed."""

    area_id: str
    deleted_devices: int = 0
    deleted_bins: int = 0
    area_deleted: bool = False
    errors: list[str] = field(default_factory=list)


def _clean_name(name: str | None) -> str:
    if name is None or not str(name).strip():
        raise ValidationError("name is required")
    return str(name).strip()


async def create_area(session: AsyncSession, name: str | None) -> Area:
    """Create an area whose identity is derived from its name."""
    name = _clean_name(name)
    area_id = derive_area_id(name)

    existing = await session.execute(select(Area.id).where(Area.area_id == area_id))
    if existing.first() is not None:
        raise ConflictError(f"An area named '{name}' already exists", detail={"area_id": area_id})

    area = Area(area_id=area_id, name=name, devices=[], meta={})
    session.add(area)
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConflictError(f"An area named '{name}' already exists") from e
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError("Failed to create area") from e

    logger.info(f"Area created: {area_id}")
    return area


async def list_areas(session: AsyncSession) -> list[Area]:
    """All areas, newest first."""
    result = await session.execute(select(Area).order_by(Area.created_at.desc(), Area.id.desc()))
    return list(result.scalars().all())


async def get_area(session: AsyncSession, ref: str | int) -> Area:
    area = await resolve_area(session, ref)
    if area is None:
        raise NotFoundError("Area not found", detail={"area": str(ref)})
    return area


async def rename_area(session: AsyncSession, ref: str | int, name: str | None) -> Area:
    """Change the display name. The derived identity stays stable."""
    name = _clean_name(name)
    area = await get_area(session, ref)
    area.name = name
    try:
        await session.commit()
    except SQLAlchemyError as e:
        await session.rollback()
        raise PersistenceError("Failed to rename area") from e
    return area


async def delete_area(session: AsyncSession, ref: str | int) -> AreaDeletion:
    """Delete an area together with all its devices and their bins.

    Each device goes through ``delete_device``; the area row is removed last.
    Nothing is rolled back when a step fails: the failure lands in ``errors``
    and the counts report what was removed.
    """
    area = await get_area(session, ref)
    area_pk = area.id
    outcome = AreaDeletion(area_id=area.area_id)

    result = await session.execute(select(Device.id).where(Device.area_ref == area_pk))
    device_ids = list(result.scalars().all())

    for device_id in device_ids:
        try:
            deletion = await delete_device(session, device_id)
        except NotFoundError:
            # Removed concurrently between listing and deleting
            continue
        outcome.deleted_bins += deletion.deleted_bins
        if deletion.device_deleted:
            outcome.deleted_devices += 1
        outcome.errors.extend(deletion.errors)

    try:
        result = await session.execute(delete(Area).where(Area.id == area_pk))
        await session.commit()
        outcome.area_deleted = result.rowcount > 0
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error(f"Area {outcome.area_id}: deleting area row failed: {e}")
        outcome.errors.append(f"area: {e}")

    logger.info(
        f"Area {outcome.area_id} deleted: {outcome.deleted_devices} devices, "
        f"{outcome.deleted_bins} bins, {len(outcome.errors)} errors"
    )
    return outcome
