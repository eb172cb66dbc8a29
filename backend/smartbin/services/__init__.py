"""Service layer modules."""

from smartbin.services.area_service import (
    AreaDeletion,
    create_area,
    delete_area,
    derive_area_id,
    get_area,
    list_areas,
    rename_area,
)
from smartbin.services.bin_service import delete_bin, get_bin, list_bins, to_bin_out
from smartbin.services.device_service import (
    DeviceDeletion,
    create_device,
    delete_device,
    generate_device_id,
    get_device,
    get_device_bins,
    list_devices,
    to_device_out,
    update_device,
)
from smartbin.services.resolver import resolve_area, resolve_bin, resolve_device
from smartbin.services.state_service import (
    Origin,
    mark_stale_devices_offline,
    parse_timestamp,
    round_level,
    update_color,
    update_level,
    update_proximity,
    update_status,
    validate_level,
)
from smartbin.services.status import BinStatus, classify

__all__ = [
    # Areas
    "AreaDeletion",
    "derive_area_id",
    "create_area",
    "list_areas",
    "get_area",
    "rename_area",
    "delete_area",
    # Devices
    "DeviceDeletion",
    "generate_device_id",
    "create_device",
    "list_devices",
    "get_device",
    "get_device_bins",
    "update_device",
    "delete_device",
    "to_device_out",
    # Bins
    "list_bins",
    "get_bin",
    "delete_bin",
    "to_bin_out",
    # Resolution
    "resolve_area",
    "resolve_device",
    "resolve_bin",
    # State updates
    "Origin",
    "round_level",
    "validate_level",
    "parse_timestamp",
    "update_level",
    "update_status",
    "update_color",
    "update_proximity",
    "mark_stale_devices_offline",
    "BinStatus",
    "classify",
]
