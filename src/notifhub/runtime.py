"""Process wiring shared by the headless watcher and the viewer.

``open_hub`` builds the storage handle and feed once; everything else gets
them passed in. ``run_ingestion`` runs the configured event source until the
stop event is set.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from notifhub.adapters.adb_source import AdbNotificationSource
from notifhub.adapters.labels import AppLabelResolver
from notifhub.adapters.sqlite_storage import SQLiteStorage
from notifhub.core.feed import Feed
from notifhub.core.ingestion import IngestionWorker
from notifhub.core.ports import LabelResolver
from notifhub.core.processor import CaptureProcessor
from notifhub.core.retention import retention_cutoff
from notifhub.settings import Settings

LOGGER = logging.getLogger(__name__)


@dataclass
class Hub:
    """Explicit application context: settings, storage, and the live feed."""

    settings: Settings
    storage: SQLiteStorage
    feed: Feed

    def processor(self, label_resolver: Optional[LabelResolver], own_id: str) -> CaptureProcessor:
        return CaptureProcessor(
            storage=self.storage,
            own_id=own_id,
            label_resolver=label_resolver,
            retention=self.settings.retention,
        )


def open_hub(settings: Settings) -> Hub:
    """Create the database if needed and evict anything already expired."""

    storage = SQLiteStorage(settings.db_path)
    storage.init_db()
    removed = storage.delete_older_than(retention_cutoff(days=settings.retention.days))
    LOGGER.info("Startup retention sweep removed %s notifications", removed)
    return Hub(settings=settings, storage=storage, feed=Feed(storage, settings.retention))


async def _periodic_sweep(processor: CaptureProcessor, minutes: int, stop: asyncio.Event) -> None:
    if minutes <= 0:
        return
    while not stop.is_set():
        try:
            await asyncio.wait_for(stop.wait(), timeout=minutes * 60)
        except asyncio.TimeoutError:
            try:
                await asyncio.to_thread(processor.sweep)
            except Exception:
                LOGGER.exception("Periodic retention sweep failed")


async def _run_adb(hub: Hub, stop: asyncio.Event) -> None:
    settings = hub.settings
    processor = hub.processor(AppLabelResolver(settings.app_labels), settings.own_id)
    worker = IngestionWorker(processor)
    worker.start()
    source = AdbNotificationSource(
        worker.submit,
        serial=settings.source.adb_serial,
        poll_interval=settings.source.poll_interval,
    )
    try:
        await asyncio.gather(
            source.run(stop),
            _periodic_sweep(processor, settings.retention.sweep_interval_minutes, stop),
        )
    finally:
        await worker.stop()


async def _run_telegram(hub: Hub, stop: asyncio.Event, interactive: bool) -> None:
    # Telethon is only needed for this source.
    from notifhub.adapters.telegram_source import (
        TelegramLabelResolver,
        own_source_key,
        register_handler,
    )
    from notifhub.client import authorize, build_client

    settings = hub.settings
    client = build_client()
    await client.connect()
    if interactive:
        await authorize(client)
    elif not await client.is_user_authorized():
        await client.disconnect()
        raise RuntimeError("Telegram session is not authorized; run `notifhub login` first")

    own_id = settings.own_id or await own_source_key(client)
    processor = hub.processor(TelegramLabelResolver(client), own_id)
    worker = IngestionWorker(processor)
    worker.start()

    # Single handler keeps Telethon integration minimal and defers all filtering
    # to the core processor for consistency and testability.
    register_handler(client, worker.submit)
    LOGGER.info("Client connected. Listening for incoming messages...")

    stopper = asyncio.ensure_future(stop.wait())
    sweeper = asyncio.ensure_future(
        _periodic_sweep(processor, settings.retention.sweep_interval_minutes, stop)
    )
    try:
        await asyncio.wait({client.disconnected, stopper}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        stopper.cancel()
        sweeper.cancel()
        await client.disconnect()
        await worker.stop()


async def run_ingestion(hub: Hub, stop: asyncio.Event, interactive: bool = True) -> None:
    """Capture notifications from the configured source until ``stop`` is set."""

    source_type = hub.settings.source.type
    LOGGER.info("Selected event source - %s", source_type)
    if source_type == "telegram":
        await _run_telegram(hub, stop, interactive)
    else:
        await _run_adb(hub, stop)
