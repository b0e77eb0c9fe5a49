"""Core domain package for notifhub.

Core contains capture filtering, retention, live queries, and day grouping
without any adb, Telegram, or storage-specific code, keeping the business
logic portable.
"""
