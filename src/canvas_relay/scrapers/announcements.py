"""
Announcement fetcher for Canvas.

Uses the Canvas REST API (/api/v1/announcements) scoped to a single
course context.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from canvas_relay.canvas.session import CanvasSession
from canvas_relay.models import Announcement
from canvas_relay.scrapers.base import BaseScraper, parse_timestamp
from canvas_relay.scrapers.text import html_to_text

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 50

NO_TITLE = "(no title)"
UNKNOWN_AUTHOR = "Unknown"

# Source fields, in priority order
TIMESTAMP_FIELDS = ("posted_at", "created_at")
URL_FIELDS = ("html_url", "url")

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


def _first_present(raw: Dict[str, Any], fields) -> Any:
    for field in fields:
        value = raw.get(field)
        if value:
            return value
    return None


def normalize_announcement(raw: Dict[str, Any]) -> Announcement:
    """
    Map a raw Canvas announcement record to an Announcement.

    Missing or null fields fall back to placeholders; this never raises
    for a dict input.

    Args:
        raw: Announcement dict from the API

    Returns:
        Announcement: Normalized announcement
    """
    author = raw.get("author")
    display_name = author.get("display_name") if isinstance(author, dict) else None
    message = raw.get("message")

    return Announcement(
        id=raw.get("id") if raw.get("id") is not None else "",
        timestamp=parse_timestamp(_first_present(raw, TIMESTAMP_FIELDS)),
        title=str(raw.get("title") or NO_TITLE),
        author=str(display_name or raw.get("user_name") or UNKNOWN_AUTHOR),
        url=str(_first_present(raw, URL_FIELDS) or ""),
        message=html_to_text(message if isinstance(message, str) else None),
    )


def sort_newest_first(items: List[Announcement]) -> List[Announcement]:
    """Sort newest first; items without a timestamp go last."""
    return sorted(items, key=lambda a: a.timestamp or _EARLIEST, reverse=True)


class AnnouncementFetcher(BaseScraper):
    """
    Fetches announcements for the configured course.

    Every page of the listing is retrieved before anything is returned,
    so callers only ever see a complete result or a TransportError.
    """

    def __init__(self, session: CanvasSession):
        """Initialize announcement fetcher."""
        super().__init__(session)
        self.settings = session.settings

    def scrape(self, since: Optional[datetime] = None) -> List[Announcement]:
        """Poll-cycle entry point: ``fetch_since`` with the default page size."""
        return self.fetch_since(since)

    def fetch_since(
        self,
        since: Optional[datetime] = None,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> List[Announcement]:
        """
        Fetch announcements posted at or after ``since``.

        Args:
            since: Only fetch announcements from this instant on (None for all)
            per_page: Canvas page size

        Returns:
            List[Announcement]: Announcements, newest first

        Raises:
            TransportError: If any page request fails
        """
        params: Dict[str, Any] = {
            "context_codes[]": self.settings.context_code,
            "per_page": str(per_page),
        }
        if since is not None:
            params["start_date"] = _to_iso(since)

        raw_items = self.session.get_all(self.settings.announcements_url, params=params)

        announcements = []
        for item in raw_items:
            if not isinstance(item, dict) or item.get("id") is None:
                logger.warning(f"Skipping announcement record without an id: {item!r:.200}")
                continue
            announcements.append(normalize_announcement(item))

        return sort_newest_first(announcements)

    def fetch_latest(self, count: int) -> List[Announcement]:
        """
        Fetch the ``count`` most recent announcements, ignoring any watermark.

        Args:
            count: Number of announcements wanted

        Returns:
            List[Announcement]: Up to ``count`` announcements, newest first
        """
        announcements = self.fetch_since(None, per_page=max(count, DEFAULT_PER_PAGE))
        return announcements[:count]


def _to_iso(instant: datetime) -> str:
    """Format an instant as ISO 8601 UTC with a Z suffix."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
