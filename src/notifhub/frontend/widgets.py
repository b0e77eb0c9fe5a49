"""List items for day headers and notification cards."""

from __future__ import annotations

from rich.text import Text
from textual.widgets import Label, ListItem, Static

from notifhub.core.models import CapturedRecord

from .constants import HUB_BLUE


def card_text(record: CapturedRecord) -> Text:
    """Render app label, local time, title, and body as rich text."""

    text = Text()
    text.append(record.source_label, style=f"bold {HUB_BLUE}")
    text.append(f"  {record.captured_at.astimezone():%H:%M}", style="dim")
    if record.title.strip():
        text.append(f"\n{record.title}", style="bold")
    if record.body.strip():
        text.append(f"\n{record.body}")
    return text


class DayHeader(ListItem):
    """Non-selectable label above one day's notifications."""

    def __init__(self, label: str) -> None:
        super().__init__(Label(label), classes="day-header", disabled=True)
        self.label = label


class NotificationCard(ListItem):
    """One captured notification."""

    def __init__(self, record: CapturedRecord) -> None:
        super().__init__(Static(card_text(record)), classes="card")
        self.record = record
