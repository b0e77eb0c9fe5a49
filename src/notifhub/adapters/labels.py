"""App label lookup for package-name sources (adb)."""

from __future__ import annotations

from typing import Optional

# Display names for common Android packages; config ``app_labels`` wins.
KNOWN_APP_LABELS: dict[str, str] = {
    "android": "Android System",
    "com.android.systemui": "System UI",
    "com.android.vending": "Google Play",
    "com.google.android.apps.messaging": "Messages",
    "com.google.android.gm": "Gmail",
    "com.google.android.calendar": "Calendar",
    "com.whatsapp": "WhatsApp",
    "org.telegram.messenger": "Telegram",
    "org.thoughtcrime.securesms": "Signal",
    "com.discord": "Discord",
    "com.slack": "Slack",
    "com.microsoft.office.outlook": "Outlook",
    "com.instagram.android": "Instagram",
    "com.facebook.orca": "Messenger",
    "com.reddit.frontpage": "Reddit",
    "com.spotify.music": "Spotify",
}


class AppLabelResolver:
    """Resolve package names to display names; unknown packages give None."""

    def __init__(self, overrides: Optional[dict[str, str]] = None) -> None:
        self._labels = dict(KNOWN_APP_LABELS)
        self._labels.update(overrides or {})

    async def resolve(self, source_id: str) -> Optional[str]:
        return self._labels.get(source_id)
