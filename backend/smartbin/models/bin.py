"""Bin (compartment) model."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, Float, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from smartbin.database import Base, utc_now


class BinType(StrEnum):
    """Fixed set of compartment types."""

    PLASTIC = "plastic"
    ALUMINUM = "aluminum"


DEFAULT_BIN_TYPES: tuple[BinType, ...] = (BinType.PLASTIC, BinType.ALUMINUM)


def make_bin_id(device_id: str, bin_type: str) -> str:
    """Bin identity is derived from its device, so no secondary index is needed."""
    return f"{device_id}-{bin_type}"


class Bin(Base):
    """A compartment of a device tracking one fill level."""

    __tablename__ = "bins"

    id: Mapped[str] = mapped_column(String(80), primary_key=True)
    device_id: Mapped[str] = mapped_column(
        String(50), ForeignKey("devices.id"), nullable=False, index=True
    )
    assigned_type: Mapped[str] = mapped_column(String(20), nullable=False)
    level_percent: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )
