"""Canvas scrapers module."""

from canvas_relay.scrapers.announcements import (
    AnnouncementFetcher,
    normalize_announcement,
)
from canvas_relay.scrapers.text import html_to_text

__all__ = [
    "AnnouncementFetcher",
    "normalize_announcement",
    "html_to_text",
]
