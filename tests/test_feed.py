from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from notifhub.adapters.sqlite_storage import SQLiteStorage
from notifhub.core.feed import Feed, compose_records
from notifhub.core.models import CapturedRecord

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

SOURCES = [
    ("com.whatsapp", "WhatsApp"),
    ("com.slack", "Slack"),
    ("com.google.android.gm", "Gmail"),
]


def _record(index: int, source_id: str, label: str, title: str = "", body: str = "") -> CapturedRecord:
    return CapturedRecord(
        source_id=source_id,
        source_label=label,
        title=title or f"title {index}",
        body=body or f"body {index}",
        captured_at=NOW - timedelta(hours=index),
    )


@pytest.fixture
def storage(tmp_path) -> SQLiteStorage:
    store = SQLiteStorage(str(tmp_path / "feed.db"))
    store.init_db()
    for index in range(10):
        source_id, label = SOURCES[index % 3]
        store.insert(_record(index, source_id, label))
    return store


@pytest.fixture
def feed(storage: SQLiteStorage) -> Feed:
    return Feed(storage, clock=lambda: NOW)


def test_unfiltered_feed_returns_window_newest_first(feed: Feed) -> None:
    records = feed.records().value
    assert len(records) == 10
    assert [record.title for record in records] == [f"title {index}" for index in range(10)]


def test_category_filter_narrows_and_clearing_restores(feed: Feed) -> None:
    feed.set_category_filter("Slack")
    slack = feed.records().value
    assert len(slack) == 3
    assert {record.source_label for record in slack} == {"Slack"}

    feed.set_category_filter(None)
    assert len(feed.records().value) == 10


def test_category_filter_is_case_sensitive(feed: Feed) -> None:
    feed.set_category_filter("slack")
    assert feed.records().value == []


def test_search_matches_body_only_text(storage: SQLiteStorage, feed: Feed) -> None:
    storage.insert(
        CapturedRecord(
            source_id="com.bank",
            source_label="Bank",
            title="Payment",
            body="Your parcel is out for delivery",
            captured_at=NOW - timedelta(minutes=5),
        )
    )
    feed.set_search_term("PARCEL")
    assert [record.source_label for record in feed.records().value] == ["Bank"]


def test_search_matches_label(feed: Feed) -> None:
    feed.set_search_term("gmail")
    records = feed.records().value
    assert len(records) == 3
    assert all(record.source_label == "Gmail" for record in records)


def test_blank_search_returns_everything(feed: Feed) -> None:
    feed.set_search_term("   ")
    assert len(feed.records().value) == 10


def test_search_and_category_combine(feed: Feed) -> None:
    feed.set_category_filter("WhatsApp")
    feed.set_search_term("title 3")
    assert [record.title for record in feed.records().value] == ["title 3"]


def test_records_outside_the_window_are_excluded(storage: SQLiteStorage, feed: Feed) -> None:
    storage.insert(_record(24 * 8, "com.old", "Old"))
    assert len(feed.records().value) == 10
    assert "Old" not in feed.categories().value


def test_live_feed_reemits_on_each_input(storage: SQLiteStorage, feed: Feed) -> None:
    counts: list[int] = []
    subscription = feed.records().subscribe(lambda records: counts.append(len(records)))

    feed.set_category_filter("Gmail")
    feed.set_search_term("title 2")
    feed.set_search_term("title 2")
    storage.insert(_record(0, "com.google.android.gm", "Gmail", title="title 2 again"))
    feed.set_category_filter(None)
    subscription.cancel()
    feed.set_search_term("")

    # Clearing the category leaves the same two matches, so nothing is re-emitted.
    assert counts == [10, 3, 1, 2]
    assert storage.watcher_count == 0


def test_grouped_feed(feed: Feed) -> None:
    groups = feed.grouped().value
    assert sum(len(group.records) for group in groups) == 10


def test_categories_are_sorted(feed: Feed) -> None:
    assert feed.categories().value == ["Gmail", "Slack", "WhatsApp"]


def test_delete_removes_record_and_ignores_unknown(storage: SQLiteStorage, feed: Feed) -> None:
    target = feed.records().value[0]
    assert feed.delete(target.id) is True
    assert feed.delete(target.id) is False
    assert target.id not in [record.id for record in feed.records().value]


def test_compose_records_preserves_order() -> None:
    records = [_record(index, "com.slack", "Slack") for index in range(4)]
    assert compose_records(records, "", None) == records
    assert compose_records(records, "body", "Slack") == records
    assert compose_records(records, "", "Gmail") == []


def test_search_edit_reapplies_window_after_clock_moves(storage: SQLiteStorage) -> None:
    clock = [NOW]
    feed = Feed(storage, clock=lambda: clock[0])
    counts: list[int] = []
    subscription = feed.records().subscribe(lambda records: counts.append(len(records)))

    clock[0] = NOW + timedelta(days=8)
    feed.set_search_term("t")

    assert counts == [10, 0]
    assert storage.list_records_since(feed.cutoff()) == []
    subscription.cancel()


def test_refresh_relabels_days_and_expires_records(storage: SQLiteStorage) -> None:
    clock = [NOW]
    feed = Feed(storage, clock=lambda: clock[0])
    labels: list[list[str]] = []
    categories: list[list[str]] = []
    grouped = feed.grouped().subscribe(lambda groups: labels.append([group.label for group in groups]))
    listed = feed.categories().subscribe(categories.append)

    clock[0] = NOW + timedelta(days=1)
    feed.refresh()
    clock[0] = NOW + timedelta(days=8)
    feed.refresh()

    assert labels[0][0] == "Today"
    assert labels[1][0] == "Yesterday"
    assert labels[-1] == []
    assert categories[0] == ["Gmail", "Slack", "WhatsApp"]
    assert categories[-1] == []

    grouped.cancel()
    listed.cancel()
    assert storage.watcher_count == 0
