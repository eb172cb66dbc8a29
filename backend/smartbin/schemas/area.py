"""Pydantic schemas for areas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AreaCreate(BaseModel):
    """Only the name is supplied; the identity is derived from it."""

    name: str | None = None


class AreaUpdate(BaseModel):
    name: str | None = None


class AreaOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    area_id: str = Field(serialization_alias="areaId")
    name: str
    devices: list[str]
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class AreaDeletionOut(BaseModel):
    """Counts of rows removed by a cascading area delete."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    area_id: str = Field(serialization_alias="areaId")
    deleted_devices: int = Field(serialization_alias="deletedDevices")
    deleted_bins: int = Field(serialization_alias="deletedBins")
    area_deleted: bool = Field(serialization_alias="areaDeleted")
    errors: list[str]
