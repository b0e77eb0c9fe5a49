"""Capture filtering helpers (core domain).

``should_capture`` is the only gate in front of the store; ``build_record``
does field mapping only and trusts that the predicate ran first.
"""

from __future__ import annotations

from datetime import datetime

from notifhub.core.models import CapturedRecord


def should_capture(source_id: str, own_id: str, title: str, body: str) -> bool:
    """Return True when a raw notification qualifies for capture.

    - Notifications posted by ourselves are skipped to avoid feedback loops.
    - Notifications with neither title nor body text carry nothing to review.
    """

    if source_id == own_id:
        return False
    if not title.strip() and not body.strip():
        return False
    return True


def build_record(
    source_id: str,
    source_label: str,
    title: str,
    body: str,
    captured_at: datetime,
) -> CapturedRecord:
    """Map raw notification fields onto an unsaved CapturedRecord."""

    return CapturedRecord(
        source_id=source_id,
        source_label=source_label,
        title=title,
        body=body,
        captured_at=captured_at,
    )
