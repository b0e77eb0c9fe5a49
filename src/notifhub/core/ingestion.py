"""Background ingestion worker.

Event sources hand raw events to ``submit`` and return immediately; a single
consumer task feeds them to the processor one at a time, in arrival order.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from notifhub.core.models import RawEvent
from notifhub.core.processor import CaptureProcessor

LOGGER = logging.getLogger(__name__)

_STOP = object()


class IngestionWorker:
    """Serializes capture work off the source's delivery callback."""

    def __init__(self, processor: CaptureProcessor) -> None:
        self._processor = processor
        self._queue: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self.processed = 0
        self.captured = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            LOGGER.warning("Ingestion worker already running")
            return
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.create_task(self._run(), name="notifhub-ingestion")
        LOGGER.info("Ingestion worker started")

    def submit(self, event: RawEvent) -> None:
        """Queue an event from the loop thread without waiting."""

        self._queue.put_nowait(event)

    def submit_threadsafe(self, event: RawEvent) -> None:
        """Queue an event from a thread other than the loop's."""

        if self._loop is None:
            raise RuntimeError("Ingestion worker is not started")
        self._loop.call_soon_threadsafe(self._queue.put_nowait, event)

    async def stop(self) -> None:
        """Process what is already queued, then end the worker task."""

        if self._task is None:
            return
        self._queue.put_nowait(_STOP)
        await self._task
        self._task = None
        LOGGER.info(
            "Ingestion worker stopped: processed=%s, captured=%s",
            self.processed,
            self.captured,
        )

    async def _run(self) -> None:
        while True:
            event = await self._queue.get()
            try:
                if event is _STOP:
                    return
                await self._handle(event)
            finally:
                self._queue.task_done()

    async def _handle(self, event: RawEvent) -> None:
        self.processed += 1
        try:
            record = await self._processor.handle(event)
        except Exception:
            LOGGER.exception("Error while processing notification from %s", event.source_id)
            return
        if record is not None:
            self.captured += 1
