"""State container for what the viewer currently shows."""

from __future__ import annotations

from dataclasses import dataclass, field

from notifhub.core.models import CapturedRecord, DayGroup


@dataclass
class ViewState:
    groups: list[DayGroup] = field(default_factory=list)
    categories: list[str] = field(default_factory=list)
    retained: int = 0
    error: str | None = None

    def visible_records(self) -> list[CapturedRecord]:
        return [record for group in self.groups for record in group.records]

    def status_line(self) -> str:
        """Header status: retained count, then the ingestion error if any."""

        status = f"retained: {self.retained}"
        if self.error:
            status = f"{status} | {self.error}"
        return status
