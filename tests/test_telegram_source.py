from __future__ import annotations

import asyncio
from datetime import datetime, timezone

from notifhub.adapters.telegram_source import (
    TelegramLabelResolver,
    display_name,
    event_from_message,
    own_source_key,
)


class DummyChat:
    def __init__(self, username: "str | None" = None, title: "str | None" = None) -> None:
        self.username = username
        self.title = title


class DummyUser:
    def __init__(self, first_name: str, last_name: "str | None" = None, username: "str | None" = None) -> None:
        self.first_name = first_name
        self.last_name = last_name
        self.username = username
        self.id = 42


class DummyMessage:
    def __init__(
        self,
        *,
        chat_id: int,
        text: "str | None",
        chat: "DummyChat | None" = None,
        sender=None,
    ) -> None:
        self.chat_id = chat_id
        self.raw_text = text
        self.chat = chat
        self.sender = sender
        self.date = datetime(2024, 1, 1, tzinfo=timezone.utc)


class DummyClient:
    def __init__(self, entities: dict) -> None:
        self._entities = entities
        self.lookups = 0

    async def get_entity(self, target):
        self.lookups += 1
        if target not in self._entities:
            raise ValueError(f"Cannot find any entity corresponding to {target}")
        return self._entities[target]

    async def get_me(self):
        return DummyUser("Me", username="MeMyself")


def test_event_uses_username_key_and_sender_name() -> None:
    message = DummyMessage(
        chat_id=-100123,
        text="deploy is done",
        chat=DummyChat(username="Team_Ops", title="Team Ops"),
        sender=DummyUser("Ada", "Lovelace"),
    )
    event = event_from_message(message)

    assert event.source_id == "@team_ops"
    assert event.title == "Ada Lovelace"
    assert event.body == "deploy is done"
    assert event.posted_at == datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_event_falls_back_to_chat_id_and_empty_text() -> None:
    message = DummyMessage(chat_id=-100987, text=None, chat=DummyChat(username=None))
    event = event_from_message(message)

    assert event.source_id == "chat_id:-100987"
    assert event.title is None
    assert event.body == ""


def test_display_name_prefers_title() -> None:
    assert display_name(DummyChat(title="Family")) == "Family"
    assert display_name(DummyUser("Ada")) == "Ada"
    assert display_name(None) is None


def test_label_resolver_caches_hits_and_misses() -> None:
    client = DummyClient({"@team_ops": DummyChat(title="Team Ops"), -100987: DummyChat(title="Private group")})
    resolver = TelegramLabelResolver(client)

    async def _scenario() -> list:
        return [
            await resolver.resolve("@team_ops"),
            await resolver.resolve("@team_ops"),
            await resolver.resolve("chat_id:-100987"),
            await resolver.resolve("@missing"),
            await resolver.resolve("@missing"),
        ]

    assert asyncio.run(_scenario()) == ["Team Ops", "Team Ops", "Private group", None, None]
    assert client.lookups == 3


def test_own_source_key_uses_username() -> None:
    assert asyncio.run(own_source_key(DummyClient({}))) == "@memyself"
