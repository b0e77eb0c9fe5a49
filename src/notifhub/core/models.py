"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass(frozen=True)
class RawEvent:
    """One notification as delivered by an event source, before filtering."""

    source_id: str
    posted_at: datetime
    title: Optional[str] = None
    body: Optional[str] = None


@dataclass(frozen=True)
class CapturedRecord:
    """Persisted snapshot of a single notification.

    ``id`` stays 0 until the store assigns one. ``captured_at`` is the
    origin-supplied post time, not the insertion wall-clock time.
    """

    source_id: str
    source_label: str
    title: str
    body: str
    captured_at: datetime
    id: int = 0
    icon_ref: Optional[str] = None

    @property
    def natural_key(self) -> tuple[str, datetime]:
        return (self.source_id, self.captured_at)


@dataclass(frozen=True)
class DayGroup:
    """Records sharing one local calendar day, with a display label."""

    label: str
    records: List[CapturedRecord] = field(default_factory=list)
