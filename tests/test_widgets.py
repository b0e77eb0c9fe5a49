from __future__ import annotations

from datetime import datetime, timezone

from notifhub.core.models import CapturedRecord
from notifhub.frontend.widgets import card_text


def _record(title: str, body: str) -> CapturedRecord:
    return CapturedRecord(
        id=1,
        source_id="com.slack",
        source_label="Slack",
        title=title,
        body=body,
        captured_at=datetime(2024, 6, 1, 9, 15, tzinfo=timezone.utc),
    )


def test_card_text_includes_label_title_and_body() -> None:
    plain = card_text(_record("#general", "standup in 5")).plain
    lines = plain.splitlines()

    assert lines[0].startswith("Slack")
    assert lines[1:] == ["#general", "standup in 5"]


def test_card_text_skips_blank_title() -> None:
    plain = card_text(_record("  ", "standup in 5")).plain
    assert plain.splitlines()[1:] == ["standup in 5"]
