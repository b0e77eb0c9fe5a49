"""Export of captured notifications to JSON or CSV files."""

from __future__ import annotations

import csv
import json
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from notifhub.core.models import CapturedRecord

EXPORT_FIELDS = ["id", "source_id", "source_label", "title", "body", "captured_at", "icon_ref"]


def record_to_row(record: CapturedRecord) -> dict[str, Any]:
    return {
        "id": record.id,
        "source_id": record.source_id,
        "source_label": record.source_label,
        "title": record.title,
        "body": record.body,
        "captured_at": record.captured_at.isoformat(),
        "icon_ref": record.icon_ref,
    }


def export_records(
    records: Iterable[CapturedRecord],
    directory: Path,
    fmt: str,
    now: Optional[datetime] = None,
) -> Path:
    """Write records to ``directory`` as ``notifications-<stamp>.<fmt>``.

    Raises ValueError for an unknown format and OSError when writing fails.
    """

    if fmt not in {"json", "csv"}:
        raise ValueError(f"Unsupported export format: {fmt}")

    rows = [record_to_row(record) for record in records]
    directory.mkdir(parents=True, exist_ok=True)
    timestamp = (now or datetime.now()).strftime("%Y%m%d-%H%M%S")
    path = directory / f"notifications-{timestamp}.{fmt}"
    if fmt == "json":
        path.write_text(json.dumps(rows, indent=2, ensure_ascii=True), encoding="utf-8")
    else:
        with path.open("w", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=EXPORT_FIELDS)
            writer.writeheader()
            writer.writerows(rows)
    return path
