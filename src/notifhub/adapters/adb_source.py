"""Phone notification source backed by ``adb shell dumpsys notification``.

Each poll lists every notification still shown on the device, so the same
notification comes back poll after poll. Only events that changed since the
previous poll are submitted; the store's natural-key upsert absorbs the rest.
"""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from notifhub.core.models import RawEvent

LOGGER = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_RE_RECORD_START = re.compile(r"(?=NotificationRecord\()")
_RE_PACKAGE = re.compile(r"\bpkg=(\S+)")
_RE_POST_TIME = re.compile(r"\b(?:postTime|when)=(\d+)")


def _extra_pattern(name: str) -> re.Pattern:
    # CharSequence extras print as "android.title=String (text)" and may be
    # spannable; the text runs to the last ")" on the line.
    return re.compile(
        rf"android\.{name}=(?:String|SpannableString|SpannedString) \((.*)\)\s*$",
        re.MULTILINE,
    )


_RE_TITLE = _extra_pattern("title")
_RE_TEXT = _extra_pattern("text")
_RE_BIG_TEXT = _extra_pattern("bigText")


def _search(pattern: re.Pattern, block: str) -> Optional[str]:
    match = pattern.search(block)
    if not match:
        return None
    return match.group(1).strip()


def parse_record(block: str) -> Optional[RawEvent]:
    """Parse one NotificationRecord block; None when it lacks a package or time."""

    package = _search(_RE_PACKAGE, block)
    post_time = _search(_RE_POST_TIME, block)
    if not package or not post_time:
        return None

    body = _search(_RE_TEXT, block)
    if not body:
        body = _search(_RE_BIG_TEXT, block)

    return RawEvent(
        source_id=package,
        posted_at=_EPOCH + timedelta(milliseconds=int(post_time)),
        title=_search(_RE_TITLE, block),
        body=body,
    )


def parse_dumpsys(raw_dump: str) -> List[RawEvent]:
    """Parse ``dumpsys notification --noredact`` output into raw events."""

    events: List[RawEvent] = []
    for block in _RE_RECORD_START.split(raw_dump or ""):
        if not block.startswith("NotificationRecord("):
            continue
        event = parse_record(block)
        if event is not None:
            events.append(event)
    LOGGER.debug("Parsed %d notifications from dumpsys output", len(events))
    return events


class AdbNotificationSource:
    """Poll a device over adb and hand new notifications to ``submit``."""

    def __init__(
        self,
        submit: Callable[[RawEvent], None],
        serial: Optional[str] = None,
        poll_interval: float = 5.0,
        adb_path: str = "adb",
        timeout: float = 15.0,
    ) -> None:
        self._submit = submit
        self._serial = serial
        self._poll_interval = poll_interval
        self._adb_path = adb_path
        self._timeout = timeout
        self._previous: set[RawEvent] = set()

    def command(self) -> List[str]:
        cmd = [self._adb_path]
        if self._serial:
            cmd.extend(["-s", self._serial])
        cmd.extend(["shell", "dumpsys", "notification", "--noredact"])
        return cmd

    async def dumpsys(self) -> str:
        proc = await asyncio.create_subprocess_exec(
            *self.command(),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError:
            proc.kill()
            await proc.wait()
            raise RuntimeError(f"adb did not answer within {self._timeout:.0f}s")
        if proc.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise RuntimeError(f"adb exited with {proc.returncode}: {message}")
        return stdout.decode("utf-8", errors="replace")

    def ingest(self, raw_dump: str) -> int:
        """Submit events not seen in the previous poll; return how many."""

        current = set(parse_dumpsys(raw_dump))
        fresh = sorted(current - self._previous, key=lambda event: event.posted_at)
        for event in fresh:
            self._submit(event)
        self._previous = current
        return len(fresh)

    async def poll_once(self) -> int:
        return self.ingest(await self.dumpsys())

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """Poll until ``stop`` is set; adb failures are logged and retried next poll."""

        stop = stop or asyncio.Event()
        LOGGER.info("Polling %s every %.1fs", " ".join(self.command()), self._poll_interval)
        while not stop.is_set():
            try:
                submitted = await self.poll_once()
                if submitted:
                    LOGGER.info("Submitted %s new notifications from adb", submitted)
            except (OSError, RuntimeError):
                LOGGER.exception("adb poll failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                continue
