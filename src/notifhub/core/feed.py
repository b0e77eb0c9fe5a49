"""Live, filterable view of retained notifications (core domain).

``Feed`` is what the presentation layer talks to: it owns the mutable
search term and category filter and combines them with the store's live
time-windowed query into one result stream.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from notifhub.core.config import RetentionConfig
from notifhub.core.grouping import group_by_day
from notifhub.core.live import LiveSource, LiveValue, combine_latest
from notifhub.core.models import CapturedRecord, DayGroup
from notifhub.core.ports import StoragePort
from notifhub.core.retention import retention_cutoff, utc_now

LOGGER = logging.getLogger(__name__)


def compose_records(
    records: Sequence[CapturedRecord],
    search_term: str,
    category_filter: Optional[str],
) -> List[CapturedRecord]:
    """Apply category and search narrowing, preserving input order.

    - A set category keeps only records whose label matches it exactly.
    - A non-blank search term keeps records whose title, body, or label
      contains it, ignoring case. A blank term skips the search entirely.
    """

    filtered = list(records)
    if category_filter is not None:
        filtered = [record for record in filtered if record.source_label == category_filter]
    if search_term.strip():
        needle = search_term.lower()
        filtered = [
            record
            for record in filtered
            if needle in record.title.lower()
            or needle in record.body.lower()
            or needle in record.source_label.lower()
        ]
    return filtered


class Feed:
    """Combines the live windowed query with search and category state."""

    def __init__(
        self,
        storage: StoragePort,
        retention: RetentionConfig = RetentionConfig(),
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._storage = storage
        self._retention = retention
        self._clock = clock
        self.search_term: LiveValue[str] = LiveValue("")
        self.category_filter: LiveValue[Optional[str]] = LiveValue(None)
        # Ticks on refresh() so day labels and the window follow the clock.
        self._now: LiveValue[datetime] = LiveValue(clock())
        self._records = combine_latest(
            [
                storage.query_records_since(self.cutoff),
                self.search_term,
                self.category_filter,
                self._now,
            ],
            self._compose,
        )
        self._grouped = combine_latest(
            [self._records, self._now],
            lambda records, _now: group_by_day(records, self._clock()),
        )
        self._categories = storage.distinct_source_labels_since(self.cutoff)

    def cutoff(self) -> datetime:
        return retention_cutoff(self._clock(), self._retention.days)

    def refresh(self) -> None:
        """Reload the windowed queries and re-label days against the clock.

        The store only pushes on writes; call this periodically so records
        age out of a long-lived view and "Today" rolls over at midnight.
        """

        self._records.invalidate()
        self._categories.invalidate()
        self._now.set(self._clock())

    def set_search_term(self, term: str) -> None:
        self.search_term.set(term)

    def set_category_filter(self, label: Optional[str]) -> None:
        self.category_filter.set(label)

    def records(self) -> LiveSource[List[CapturedRecord]]:
        return self._records

    def grouped(self) -> LiveSource[List[DayGroup]]:
        return self._grouped

    def categories(self) -> LiveSource[List[str]]:
        return self._categories

    def _compose(
        self,
        records: Sequence[CapturedRecord],
        search_term: str,
        category_filter: Optional[str],
        _now: datetime,
    ) -> List[CapturedRecord]:
        # Cached rows may predate the current cutoff; re-apply the window.
        cutoff = self.cutoff()
        in_window = [record for record in records if record.captured_at >= cutoff]
        return compose_records(in_window, search_term, category_filter)

    def delete(self, record_id: int) -> bool:
        """User-initiated delete; unknown ids are ignored."""

        removed = self._storage.delete_by_id(record_id)
        if removed:
            LOGGER.info("Deleted notification %s", record_id)
        return removed
