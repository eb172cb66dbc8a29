"""Device model."""

from datetime import datetime
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from smartbin.database import Base, utc_now

DEFAULT_MODEL = "esp8266"


class DeviceStatus(StrEnum):
    """Connectivity state of a device."""

    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"


class Device(Base):
    """Physical sensing unit owning one or more bins."""

    __tablename__ = "devices"

    id: Mapped[str] = mapped_column(String(50), primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    area_ref: Mapped[int] = mapped_column(Integer, ForeignKey("areas.id"), nullable=False, index=True)
    model: Mapped[str] = mapped_column(String(50), nullable=False, default=DEFAULT_MODEL)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=DeviceStatus.UNKNOWN.value)
    # Hardware-assigned id carried by telemetry (client_id_mqtt on the wire)
    correlation_id: Mapped[str | None] = mapped_column(String(100), unique=True, nullable=True)
    last_color: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    last_proximity: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    bins: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    meta: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=utc_now, onupdate=utc_now
    )
