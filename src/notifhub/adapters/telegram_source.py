"""Telegram-to-core event mapping adapter.

Incoming Telegram messages are treated as notifications from the chat that
sent them. This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from telethon import events
from telethon.tl.custom import Message

from notifhub.core.models import RawEvent

LOGGER = logging.getLogger(__name__)


def source_key_from_message(message: Message) -> str:
    """Normalize a source key using a single rule enforced across the app."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)

    if isinstance(username, str) and username:
        return f"@{username.lower()}"

    # Fallback: always stable and universal
    return f"chat_id:{message.chat_id}"


def display_name(entity: Any) -> Optional[str]:
    """Return a chat title or a person's full name, whichever the entity has."""

    title = getattr(entity, "title", None)
    if title:
        return str(title)
    first = getattr(entity, "first_name", None)
    last = getattr(entity, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)
    username = getattr(entity, "username", None)
    if username:
        return f"@{username}"
    return None


def event_from_message(message: Message) -> RawEvent:
    """Build a core RawEvent from a Telethon Message."""

    return RawEvent(
        source_id=source_key_from_message(message),
        posted_at=message.date,
        title=display_name(getattr(message, "sender", None)),
        body=message.raw_text or "",
    )


async def own_source_key(client) -> str:
    """Source key of the logged-in account, used to skip our own messages."""

    me = await client.get_me()
    username = getattr(me, "username", None)
    if username:
        return f"@{username.lower()}"
    return f"chat_id:{me.id}"


class TelegramLabelResolver:
    """Resolve a source key to the chat title, with a per-key cache."""

    def __init__(self, client) -> None:
        self._client = client
        self._cache: dict[str, Optional[str]] = {}

    async def resolve(self, source_id: str) -> Optional[str]:
        if source_id in self._cache:
            return self._cache[source_id]
        if source_id.startswith("chat_id:"):
            target: Any = int(source_id.split("chat_id:", 1)[1])
        else:
            target = source_id
        try:
            entity = await self._client.get_entity(target)
        except Exception:
            LOGGER.debug("Could not resolve %s", source_id, exc_info=True)
            self._cache[source_id] = None
            return None
        label = display_name(entity)
        self._cache[source_id] = label
        return label


def register_handler(client, submit: Callable[[RawEvent], None]) -> None:
    """Register one NewMessage handler that queues every incoming message."""

    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        try:
            submit(event_from_message(event.message))
        except Exception:
            LOGGER.exception("Error while mapping Telegram message")
