#!/usr/bin/env python3
"""Seed demo areas and devices into the database."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from scripts.init_db import init_db
from smartbin.database import async_session
from smartbin.models import Area
from smartbin.services import create_area, create_device, update_device

AREAS = ["Cafeteria", "Library", "Main Hall"]

# (device name, area name, hardware correlation id)
DEVICES = [
    ("Cafeteria Entrance", "Cafeteria", "esp8266_cafe01"),
    ("Cafeteria Kitchen", "Cafeteria", "esp8266_cafe02"),
    ("Library Lobby", "Library", "esp8266_lib01"),
    ("Main Hall East", "Main Hall", "esp8266_hall01"),
]


async def seed_areas_and_devices() -> None:
    """Create demo areas and devices, skipping areas that already exist."""
    await init_db()

    async with async_session() as session:
        existing = set((await session.execute(select(Area.name))).scalars().all())
        for name in AREAS:
            if name in existing:
                print(f"  Area '{name}' already exists, skipping")
                continue
            area = await create_area(session, name)
            print(f"  Created area {area.area_id}")

            for device_name, area_name, correlation_id in DEVICES:
                if area_name != name:
                    continue
                device, bins = await create_device(session, device_name, area.area_id)
                await update_device(session, device.id, correlation_id=correlation_id)
                print(f"    Created device {device.id} ({correlation_id}) with {len(bins)} bins")


if __name__ == "__main__":
    asyncio.run(seed_areas_and_devices())
