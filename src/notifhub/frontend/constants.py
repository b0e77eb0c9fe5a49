"""Shared constants for the Textual UI."""

from __future__ import annotations

HUB_BLUE = "#2AABEE"

# App theme names keyed by the value stored in config.json ui.theme.
THEME_NAMES = {
    "dark": "textual-dark",
    "light": "textual-light",
}

EMPTY_TITLE = "No Notifications Yet"
EMPTY_BODY = "Notifications will appear here as they arrive. They'll be kept for {days} days."
