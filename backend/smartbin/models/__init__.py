"""SQLAlchemy models."""

from smartbin.models.area import Area
from smartbin.models.bin import DEFAULT_BIN_TYPES, Bin, BinType, make_bin_id
from smartbin.models.device import DEFAULT_MODEL, Device, DeviceStatus

# Well-known metadata keys. Metadata is always shallow-merged.
META_LAST_UPDATE = "last_update"
META_LAST_STATUS_UPDATE = "last_status_update"
META_LAST_SEEN = "last_seen"
META_OFFLINE_REASON = "offline_reason"

__all__ = [
    "Area",
    "Device",
    "DeviceStatus",
    "DEFAULT_MODEL",
    "Bin",
    "BinType",
    "DEFAULT_BIN_TYPES",
    "make_bin_id",
    "META_LAST_UPDATE",
    "META_LAST_STATUS_UPDATE",
    "META_LAST_SEEN",
    "META_OFFLINE_REASON",
]
