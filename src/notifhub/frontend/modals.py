"""Modal dialogs for the notifhub viewer."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen
from textual.widgets import Button, Static

from notifhub.core.models import CapturedRecord


class DeleteRecordScreen(ModalScreen[bool]):
    """Confirm deletion of a captured notification."""

    def __init__(self, record: CapturedRecord) -> None:
        super().__init__()
        self._record = record

    def compose(self) -> ComposeResult:
        summary = self._record.title or self._record.body
        yield Container(
            Static("Delete notification?", classes="modal-title"),
            Static(f"{self._record.source_label}: {summary}", classes="modal-body"),
            Horizontal(
                Button("Delete", id="delete-confirm", variant="error"),
                Button("Cancel", id="delete-cancel"),
                classes="modal-actions",
            ),
            classes="modal-dialog modal-dialog--confirm",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "delete-confirm")
