"""Pydantic schemas for bins."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class BinOut(BaseModel):
    """A bin with its fill status derived from the level."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    device_id: str = Field(serialization_alias="deviceId")
    assigned_type: str = Field(serialization_alias="assignedType")
    level_percent: float = Field(serialization_alias="levelPercent")
    status: Literal["nearly_full", "half_full", "available"]
    meta: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")


class BinDeletionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    bin_id: str = Field(serialization_alias="binId")
    device_id: str = Field(serialization_alias="deviceId")
