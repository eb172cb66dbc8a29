"""Optional heartbeat-timeout detector.

Disabled unless OFFLINE_CHECK_INTERVAL is set: without it a device's status
only changes on explicit status telemetry.
"""

import asyncio
import contextlib
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartbin.database import async_session
from smartbin.errors import PersistenceError
from smartbin.services.state_service import mark_stale_devices_offline

logger = logging.getLogger(__name__)


class OfflineMonitor:
    def __init__(
        self,
        interval: float,
        timeout: float,
        session_factory: async_sessionmaker[AsyncSession] = async_session,
    ):
        self.interval = interval
        self.timeout = timeout
        self._session_factory = session_factory
        self._task: asyncio.Task | None = None

    async def check_once(self) -> list[str]:
        async with self._session_factory() as session:
            return await mark_stale_devices_offline(session, self.timeout)

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._run(), name="offline-monitor")
        logger.info(f"Offline check every {self.interval}s (timeout {self.timeout}s)")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                await self.check_once()
            except (SQLAlchemyError, PersistenceError):
                logger.exception("Offline check failed")
