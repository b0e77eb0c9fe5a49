"""Textual viewer for captured notifications."""
