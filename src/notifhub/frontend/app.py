"""Main Textual app for browsing captured notifications."""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
from pathlib import Path
from typing import Any, Optional

from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.message import Message
from textual.widgets import Footer, Input, ListView, Select, Static

from notifhub import __version__
from notifhub.adapters.export import export_records
from notifhub.core.live import Subscription
from notifhub.core.models import CapturedRecord, DayGroup
from notifhub.runtime import Hub, run_ingestion
from notifhub.settings import save_theme

from .constants import EMPTY_BODY, EMPTY_TITLE, HUB_BLUE, THEME_NAMES
from .modals import DeleteRecordScreen
from .state import ViewState
from .widgets import DayHeader, NotificationCard

LOGGER = logging.getLogger(__name__)

REFRESH_SECONDS = 60


class GroupsChanged(Message):
    """Live feed emitted a new grouped result."""

    def __init__(self, groups: list[DayGroup]) -> None:
        super().__init__()
        self.groups = groups


class CategoriesChanged(Message):
    def __init__(self, labels: list[str]) -> None:
        super().__init__()
        self.labels = labels


class RetainedChanged(Message):
    def __init__(self, total: int) -> None:
        super().__init__()
        self.total = total


class NotificationHubApp(App):
    """Live, grouped, searchable list of the last week's notifications.

    Live emissions can arrive on the ingestion thread, so subscriptions only
    post messages; widgets are touched from message handlers.
    """

    BINDINGS = [
        ("slash", "focus_search", "Search"),
        ("d", "delete_record", "Delete"),
        ("t", "toggle_theme", "Theme"),
        ("j", "export('json')", "Export JSON"),
        ("c", "export('csv')", "Export CSV"),
        ("q", "quit", "Quit"),
    ]

    CSS_PATH = "app.tcss"

    def __init__(self, hub: Hub, ingest: bool = True, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.hub = hub
        self.view_state = ViewState()
        self._ingest = ingest
        self._subscriptions: list[Subscription] = []
        self._stop: Optional[asyncio.Event] = None
        self._theme_key = hub.settings.theme

    def compose(self) -> ComposeResult:
        settings = self.hub.settings
        with Container(id="header"):
            with Horizontal(id="header-row"):
                with Vertical(id="header-left"):
                    yield Static(self._title_text(), id="title")
                    yield Static(f"engine v{__version__}", classes="subtle")
                with Vertical(id="header-right"):
                    yield Static(f"source: {settings.source.type}", classes="subtle")
                    yield Static(f"db: {os.path.basename(settings.db_path)}", classes="subtle")
                    yield Static("", id="header-status", classes="subtle")

        with Horizontal(id="filters"):
            yield Input(placeholder="Search title, text, or app", id="search")
            yield Select([], prompt="All apps", id="category")

        yield ListView(id="feed")
        yield Static(self._empty_text(), id="empty-state")
        yield Static("", id="output")
        yield Footer()

    def on_mount(self) -> None:
        self.theme = THEME_NAMES.get(self._theme_key, THEME_NAMES["dark"])
        feed = self.hub.feed
        self._subscriptions = [
            feed.grouped().subscribe(lambda groups: self.post_message(GroupsChanged(groups))),
            feed.categories().subscribe(lambda labels: self.post_message(CategoriesChanged(labels))),
            self.hub.storage.query_count().subscribe(lambda total: self.post_message(RetainedChanged(total))),
        ]
        self.set_interval(REFRESH_SECONDS, self._refresh_feed)
        if self._ingest:
            self._stop = asyncio.Event()
            self.run_worker(self._ingest_forever(), name="ingestion", exclusive=True)

    def on_unmount(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions = []
        if self._stop is not None:
            self._stop.set()

    async def _ingest_forever(self) -> None:
        assert self._stop is not None
        try:
            await run_ingestion(self.hub, self._stop, interactive=False)
        except Exception as exc:
            LOGGER.exception("Ingestion stopped")
            self.view_state.error = f"ingestion stopped: {exc}"
            self._show_status()

    @work(thread=True, exclusive=True, group="refresh")
    def _refresh_feed(self) -> None:
        self.hub.feed.refresh()

    async def on_groups_changed(self, message: GroupsChanged) -> None:
        self.view_state.groups = message.groups
        feed_view = self.query_one("#feed", ListView)
        selected = self._selected_card()
        selected_id = selected.record.id if selected else None

        await feed_view.clear()
        items: list[DayHeader | NotificationCard] = []
        for group in message.groups:
            items.append(DayHeader(group.label))
            items.extend(NotificationCard(record) for record in group.records)
        await feed_view.extend(items)

        for index, item in enumerate(items):
            if isinstance(item, NotificationCard) and item.record.id == selected_id:
                feed_view.index = index
                break

        has_groups = bool(message.groups)
        feed_view.display = has_groups
        self.query_one("#empty-state", Static).display = not has_groups

    def on_categories_changed(self, message: CategoriesChanged) -> None:
        self.view_state.categories = message.labels
        select = self.query_one("#category", Select)
        current = self.hub.feed.category_filter.value
        select.set_options([(label, label) for label in message.labels])
        if current in message.labels:
            select.value = current

    def on_retained_changed(self, message: RetainedChanged) -> None:
        self.view_state.retained = message.total
        self._show_status()

    def _show_status(self) -> None:
        self.query_one("#header-status", Static).update(self.view_state.status_line())

    @on(Input.Changed, "#search")
    def _on_search_changed(self, event: Input.Changed) -> None:
        self.hub.feed.set_search_term(event.value)

    @on(Select.Changed, "#category")
    def _on_category_changed(self, event: Select.Changed) -> None:
        value = event.value
        self.hub.feed.set_category_filter(value if isinstance(value, str) else None)

    def action_focus_search(self) -> None:
        self.query_one("#search", Input).focus()

    def action_delete_record(self) -> None:
        card = self._selected_card()
        if card is None:
            self._set_output("Select a notification to delete.")
            return
        record = card.record

        def _handle_choice(confirmed: bool | None) -> None:
            if confirmed:
                self._delete_record(record)

        self.push_screen(DeleteRecordScreen(record), _handle_choice)

    @work(thread=True, group="delete")
    def _delete_record(self, record: CapturedRecord) -> None:
        try:
            self.hub.feed.delete(record.id)
        except sqlite3.Error as exc:
            LOGGER.exception("Failed to delete notification %s", record.id)
            self.call_from_thread(self._set_output, f"delete failed: {exc}")
            return
        self.call_from_thread(self._set_output, f"deleted notification from {record.source_label}")

    def action_toggle_theme(self) -> None:
        self._theme_key = "light" if self._theme_key == "dark" else "dark"
        self.theme = THEME_NAMES[self._theme_key]
        try:
            save_theme(self.hub.settings.config_path, self._theme_key)
        except (OSError, ValueError) as exc:
            self._set_output(f"theme not saved: {exc}")

    def action_export(self, fmt: str) -> None:
        records = self.view_state.visible_records()
        if not records:
            self._set_output("No notifications to export.")
            return
        try:
            path = export_records(records, Path(self.hub.settings.exports_dir), fmt)
        except OSError as exc:
            self._set_output(f"export failed: {exc.strerror or exc}")
            return
        self._set_output(f"exported {len(records)} notifications to {path}")

    def _selected_card(self) -> Optional[NotificationCard]:
        item = self.query_one("#feed", ListView).highlighted_child
        if isinstance(item, NotificationCard):
            return item
        return None

    def _set_output(self, message: str) -> None:
        self.query_one("#output", Static).update(message)

    def _empty_text(self) -> Text:
        days = self.hub.settings.retention.days
        return Text.assemble((EMPTY_TITLE, "bold"), "\n\n", EMPTY_BODY.format(days=days))

    @staticmethod
    def _title_text() -> Text:
        return Text.assemble(
            ("NOTIF", HUB_BLUE),
            ("HUB > Notifications", "bold"),
        )
