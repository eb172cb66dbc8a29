"""Fill-state classification of a bin level. Derived on read, never stored."""

from enum import StrEnum

NEARLY_FULL_THRESHOLD = 80.0
HALF_FULL_THRESHOLD = 50.0


class BinStatus(StrEnum):
    NEARLY_FULL = "nearly_full"
    HALF_FULL = "half_full"
    AVAILABLE = "available"


def classify(level: float) -> BinStatus:
    """Map a level percentage to its fill state. Lower bounds are inclusive."""
    if level >= NEARLY_FULL_THRESHOLD:
        return BinStatus.NEARLY_FULL
    if level >= HALF_FULL_THRESHOLD:
        return BinStatus.HALF_FULL
    return BinStatus.AVAILABLE
