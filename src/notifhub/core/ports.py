"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage and label lookup so that the
core can be reused with different backends and event sources.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, List, Optional, Protocol, Union

from notifhub.core.live import LiveSource
from notifhub.core.models import CapturedRecord

# A fixed timestamp, or a callable re-evaluated on every reload so a live
# window keeps rolling forward.
Since = Union[datetime, Callable[[], datetime]]


class StoragePort(Protocol):
    """Record store operations required by the core pipeline."""

    def insert(self, record: CapturedRecord) -> CapturedRecord:
        ...

    def query_records_since(self, since: Since) -> LiveSource[List[CapturedRecord]]:
        ...

    def distinct_source_labels_since(self, since: Since) -> LiveSource[List[str]]:
        ...

    def delete_older_than(self, cutoff: datetime) -> int:
        ...

    def delete_by_id(self, record_id: int) -> bool:
        ...

    def count(self) -> int:
        ...


class LabelResolver(Protocol):
    """Resolve a source id to the app's display name; None when unknown."""

    async def resolve(self, source_id: str) -> Optional[str]:
        ...
