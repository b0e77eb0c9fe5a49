"""Core capture pipeline.

This module is integration-agnostic. It only relies on ports for storage and
label lookup, enabling new event sources without changes here.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from notifhub.core.capture import build_record, should_capture
from notifhub.core.config import RetentionConfig
from notifhub.core.models import CapturedRecord, RawEvent
from notifhub.core.ports import LabelResolver, StoragePort
from notifhub.core.retention import retention_cutoff, utc_now

LOGGER = logging.getLogger(__name__)


class CaptureProcessor:
    """Orchestrates filtering, label lookup, persistence, and retention."""

    def __init__(
        self,
        storage: StoragePort,
        own_id: str,
        label_resolver: Optional[LabelResolver] = None,
        retention: RetentionConfig = RetentionConfig(),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._own_id = own_id
        self._label_resolver = label_resolver
        self._retention = retention
        self._clock = clock

    async def handle(self, event: RawEvent) -> Optional[CapturedRecord]:
        """Process one raw event; return the stored record or None."""

        title = event.title or ""
        body = event.body or ""
        if not should_capture(event.source_id, self._own_id, title, body):
            return None

        label = await self._resolve_label(event.source_id)
        record = build_record(event.source_id, label, title, body, event.posted_at)

        # Storage is blocking sqlite; keep it off the event loop.
        try:
            return await asyncio.to_thread(self._persist, record)
        except Exception:
            LOGGER.exception(
                "Failed to save notification from %s posted at %s",
                event.source_id,
                event.posted_at.isoformat(),
            )
            return None

    def sweep(self) -> int:
        """Evict everything older than the retention window."""

        removed = self._storage.delete_older_than(retention_cutoff(self._clock(), self._retention.days))
        if removed:
            LOGGER.info("Retention sweep removed %s notifications", removed)
        return removed

    def _persist(self, record: CapturedRecord) -> CapturedRecord:
        stored = self._storage.insert(record)
        LOGGER.debug("Captured notification %s from %s", stored.id, stored.source_id)
        try:
            self.sweep()
        except Exception:
            LOGGER.exception("Retention sweep failed after capturing %s", stored.id)
        return stored

    async def _resolve_label(self, source_id: str) -> str:
        if self._label_resolver is None:
            return source_id
        try:
            label = await self._label_resolver.resolve(source_id)
        except Exception:
            LOGGER.warning("Label lookup failed for %s; using the source id", source_id, exc_info=True)
            return source_id
        return label or source_id
