"""Hands messages from paho's network thread to the asyncio loop.

A single consumer task drains the queue, so telemetry is processed one message
at a time in arrival order. A failing message is logged and skipped; it never
affects the broker session.
"""

import asyncio
import contextlib
import logging

from smartbin.mqtt.router import TopicRouter

logger = logging.getLogger(__name__)


class TelemetryIngestor:
    def __init__(self, router: TopicRouter):
        self._router = router
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[tuple[str, bytes]] | None = None
        self._task: asyncio.Task | None = None
        self.processed = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()
        self._task = asyncio.create_task(self._consume(), name="telemetry-ingestor")
        logger.info("Telemetry ingestor started")

    def submit(self, topic: str, payload: bytes) -> None:
        """Thread-safe enqueue; called from the paho callback."""
        loop, queue = self._loop, self._queue
        if loop is None or queue is None:
            logger.warning(f"Ingestor not running, message on {topic} dropped")
            return
        try:
            loop.call_soon_threadsafe(queue.put_nowait, (topic, payload))
        except RuntimeError:
            # Event loop already closed during shutdown
            logger.warning(f"Event loop closed, message on {topic} dropped")

    async def join(self) -> None:
        """Wait until every queued message has been handled."""
        if self._queue is not None:
            await self._queue.join()

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._loop = None
        if task is None:
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info(f"Telemetry ingestor stopped ({self.processed} processed, {self.failed} failed)")

    async def _consume(self) -> None:
        queue = self._queue
        while True:
            topic, payload = await queue.get()
            try:
                await self._router.dispatch(topic, payload)
                self.processed += 1
            except Exception:
                self.failed += 1
                logger.exception(f"Error processing message from {topic}")
            finally:
                queue.task_done()
