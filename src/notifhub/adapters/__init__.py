"""Adapters connecting the core to SQLite, adb, Telegram, and files."""
