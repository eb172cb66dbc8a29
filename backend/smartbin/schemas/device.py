"""Pydantic schemas for devices."""

from datetime import datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from smartbin.schemas.bin import BinOut


class DeviceCreate(BaseModel):
    """Name and owning area; identities and bins are generated."""

    name: str | None = None
    area_id: str | int | None = Field(default=None, validation_alias=AliasChoices("areaId", "area_id"))
    bin_types: list[str] | None = Field(
        default=None, validation_alias=AliasChoices("binTypes", "bin_types")
    )
    model: str | None = None


class DeviceUpdate(BaseModel):
    name: str | None = None
    area_id: str | int | None = Field(default=None, validation_alias=AliasChoices("areaId", "area_id"))
    meta: dict[str, Any] | None = None
    client_id_mqtt: str | None = Field(
        default=None,
        validation_alias=AliasChoices("client_id_mqtt", "clientIdMqtt", "correlationId"),
    )


class DeviceOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    name: str
    area_ref: int = Field(serialization_alias="areaRef")
    model: str
    status: Literal["unknown", "online", "offline"]
    correlation_id: str | None = Field(default=None, serialization_alias="clientIdMqtt")
    last_color: dict[str, Any] | None = Field(default=None, serialization_alias="lastColor")
    last_proximity: dict[str, Any] | None = Field(default=None, serialization_alias="lastProximity")
    bins: list[str]
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")
    bins_data: list[BinOut] | None = Field(default=None, serialization_alias="binsData")


class DeviceDeletionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    device_id: str = Field(serialization_alias="deviceId")
    deleted_bins: int = Field(serialization_alias="deletedBins")
    detached_from_area: bool = Field(serialization_alias="detachedFromArea")
    device_deleted: bool = Field(serialization_alias="deviceDeleted")
    errors: list[str]
