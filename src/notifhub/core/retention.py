"""Retention window helpers (core domain)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Optional

RETENTION_DAYS = 7


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def retention_cutoff(now: Optional[datetime] = None, days: int = RETENTION_DAYS) -> datetime:
    """Return the oldest capture time still inside the retention window.

    The window is exactly ``days`` x 24h back from ``now``; it is not aligned
    to calendar days.
    """

    if now is None:
        now = utc_now()
    return now - timedelta(days=days)
