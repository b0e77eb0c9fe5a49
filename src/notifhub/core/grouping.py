"""Day grouping for display (core domain)."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Dict, Iterable, List, Optional

from notifhub.core.models import CapturedRecord, DayGroup

TODAY = "Today"
YESTERDAY = "Yesterday"


def local_day(value: datetime) -> date:
    """Return the local calendar day of ``value``; naive values are local already."""

    if value.tzinfo is None:
        return value.date()
    return value.astimezone().date()


def day_label(day: date, today: date) -> str:
    """Label a calendar day relative to ``today``.

    Older days render as weekday plus month/day, e.g. "Wednesday, Mar 5".
    """

    if day == today:
        return TODAY
    if day == today - timedelta(days=1):
        return YESTERDAY
    return f"{day:%A}, {day:%b} {day.day}"


def group_by_day(records: Iterable[CapturedRecord], now: Optional[datetime] = None) -> List[DayGroup]:
    """Group records by local calendar day, keeping the input order.

    Groups appear in the order their first record appears, and records keep
    their relative order inside a group. For newest-first input that means
    newest day first and newest record first. Empty input gives no groups.
    """

    today = local_day(now) if now is not None else date.today()
    buckets: Dict[date, List[CapturedRecord]] = {}
    for record in records:
        buckets.setdefault(local_day(record.captured_at), []).append(record)
    return [DayGroup(label=day_label(day, today), records=items) for day, items in buckets.items()]
