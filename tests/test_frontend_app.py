from __future__ import annotations

import asyncio
import threading

from notifhub.adapters.sqlite_storage import SQLiteStorage
from notifhub.core.feed import Feed
from notifhub.core.models import CapturedRecord
from notifhub.core.retention import utc_now
from notifhub.frontend.app import NotificationHubApp
from notifhub.runtime import Hub
from notifhub.settings import Settings


def test_delete_runs_off_the_event_loop_thread(tmp_path) -> None:
    storage = SQLiteStorage(str(tmp_path / "hub.db"))
    storage.init_db()
    record = storage.insert(
        CapturedRecord(
            source_id="com.whatsapp",
            source_label="WhatsApp",
            title="Alice",
            body="See you at 7",
            captured_at=utc_now(),
        )
    )
    hub = Hub(
        settings=Settings(db_path=storage.db_path, config_path=str(tmp_path / "config.json")),
        storage=storage,
        feed=Feed(storage),
    )
    on_main_thread: list[bool] = []
    delete = hub.feed.delete

    def tracking_delete(record_id: int) -> bool:
        on_main_thread.append(threading.current_thread() is threading.main_thread())
        return delete(record_id)

    hub.feed.delete = tracking_delete  # type: ignore[method-assign]

    async def _scenario() -> None:
        app = NotificationHubApp(hub, ingest=False)
        async with app.run_test() as pilot:
            await pilot.pause()
            app._delete_record(record)
            await app.workers.wait_for_complete()
            await pilot.pause()

    asyncio.run(_scenario())

    assert on_main_thread == [False]
    assert storage.count() == 0
    assert storage.watcher_count == 0
