"""
Base scraper class with shared utilities.

Provides common functionality for Canvas scrapers.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from canvas_relay.canvas.session import CanvasSession

logger = logging.getLogger(__name__)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a Canvas timestamp to an aware UTC datetime.

    Canvas sends ISO 8601 strings (``2024-09-01T14:30:00Z``). Anything
    that can't be parsed yields None rather than an error.

    Args:
        value: Raw timestamp value

    Returns:
        datetime or None if missing or unparseable
    """
    if not value or not isinstance(value, str):
        return None

    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError) as e:
        logger.debug(f"Could not parse timestamp '{value}': {e}")
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class BaseScraper(ABC):
    """
    Base class for Canvas scrapers.

    Holds the authenticated session.
    """

    def __init__(self, session: CanvasSession):
        """
        Initialize scraper with an authenticated session.

        Args:
            session: Authenticated Canvas session
        """
        self.session = session

    @abstractmethod
    def scrape(self, *args, **kwargs) -> Any:
        """Scrape data - implemented by subclasses."""
        pass
