#!/usr/bin/env python3
"""Initialize the database schema."""

import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from smartbin.database import Base, engine, init_models


async def init_db() -> None:
    """Create all database tables."""
    await init_models(engine)
    print("Database tables created successfully.")


async def drop_db() -> None:
    """Drop all database tables."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    print("Database tables dropped.")


async def reset_db() -> None:
    """Drop and recreate all database tables."""
    await drop_db()
    await init_db()


if __name__ == "__main__":
    if len(sys.argv) > 1 and sys.argv[1] == "--reset":
        asyncio.run(reset_db())
    else:
        asyncio.run(init_db())
