"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass

from notifhub.core.retention import RETENTION_DAYS


@dataclass(frozen=True)
class RetentionConfig:
    """Retention window and optional periodic sweep."""

    days: int = RETENTION_DAYS
    # 0 disables the periodic sweep; eviction then only follows ingestion.
    sweep_interval_minutes: int = 0


@dataclass(frozen=True)
class SourceConfig:
    """Event source selection consumed by the app layer."""

    type: str = "adb"
    adb_serial: str | None = None
    poll_interval: float = 5.0
