"""notifhub: capture phone notifications and review the last week of them."""

__version__ = "1.0.0"
