from __future__ import annotations

import asyncio
import logging
import threading
from datetime import datetime, timezone

import pytest

from notifhub.core.ingestion import IngestionWorker
from notifhub.core.models import RawEvent

POSTED = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class RecordingProcessor:
    def __init__(self, fail_on: str = "") -> None:
        self.handled: list[str] = []
        self._fail_on = fail_on

    async def handle(self, event: RawEvent):
        await asyncio.sleep(0)
        self.handled.append(event.source_id)
        if event.source_id == self._fail_on:
            raise RuntimeError("processor exploded")
        return event


def _event(source_id: str) -> RawEvent:
    return RawEvent(source_id=source_id, posted_at=POSTED, title="t", body="b")


def test_processes_events_in_submission_order() -> None:
    processor = RecordingProcessor()
    worker = IngestionWorker(processor)

    async def _scenario() -> None:
        worker.start()
        for name in ("a", "b", "c"):
            worker.submit(_event(name))
        await worker.stop()

    asyncio.run(_scenario())

    assert processor.handled == ["a", "b", "c"]
    assert worker.processed == 3
    assert worker.captured == 3
    assert not worker.running


def test_processor_error_does_not_stop_worker(caplog) -> None:
    processor = RecordingProcessor(fail_on="b")
    worker = IngestionWorker(processor)

    async def _scenario() -> None:
        worker.start()
        for name in ("a", "b", "c"):
            worker.submit(_event(name))
        await worker.stop()

    with caplog.at_level(logging.ERROR):
        asyncio.run(_scenario())

    assert processor.handled == ["a", "b", "c"]
    assert worker.captured == 2
    assert "Error while processing notification from b" in caplog.text


def test_submit_threadsafe_from_another_thread() -> None:
    processor = RecordingProcessor()
    worker = IngestionWorker(processor)

    async def _scenario() -> None:
        worker.start()
        thread = threading.Thread(target=worker.submit_threadsafe, args=(_event("x"),))
        thread.start()
        thread.join()
        await asyncio.sleep(0.05)
        await worker.stop()

    asyncio.run(_scenario())

    assert processor.handled == ["x"]


def test_submit_threadsafe_requires_started_worker() -> None:
    worker = IngestionWorker(RecordingProcessor())
    with pytest.raises(RuntimeError, match="not started"):
        worker.submit_threadsafe(_event("x"))
