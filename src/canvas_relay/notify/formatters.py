"""
Message formatters for Discord notifications.

Formats announcements into Discord messages that fit the 2000 character
message limit.
"""

from datetime import datetime, timezone
from typing import List, Optional

from canvas_relay.models import Announcement


class MessageFormatter:
    """
    Formats announcements for Discord messages.

    Every message has the same layout:

        **Title**
        Posted: 2024-09-01 14:30:00 UTC by Jane Doe

        <body>

        <https://canvas.example.edu/courses/1/discussion_topics/2>

    Long bodies are cut with an ellipsis so the whole message stays within
    MAX_LENGTH, or, with ``format_parts``, spread over several messages.
    """

    # Discord's per-message content limit
    MAX_LENGTH = 2000
    MAX_TITLE_LENGTH = 256
    ELLIPSIS = "…"
    CONTINUED = "(continued)\n\n"

    @classmethod
    def _truncate(cls, text: str, max_length: int) -> str:
        """Cut text to max_length, ending with an ellipsis if anything was cut."""
        if max_length <= 0:
            return ""
        if len(text) <= max_length:
            return text
        return text[:max_length - 1].rstrip() + cls.ELLIPSIS

    @staticmethod
    def _format_datetime(dt: Optional[datetime]) -> str:
        """Format a timestamp for display."""
        if dt is None:
            return "unknown time"
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=timezone.utc)
        return dt.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")

    @classmethod
    def _header(cls, announcement: Announcement) -> str:
        title = cls._truncate(announcement.title, cls.MAX_TITLE_LENGTH)
        when = cls._format_datetime(announcement.timestamp)
        return f"**{title}**\nPosted: {when} by {announcement.author}\n\n"

    @staticmethod
    def _footer(announcement: Announcement) -> str:
        if not announcement.url:
            return ""
        return f"\n\n<{announcement.url}>"

    @classmethod
    def format_announcement(cls, announcement: Announcement) -> str:
        """
        Format an announcement as a single Discord message.

        The body is truncated so header, body and footer together never
        exceed MAX_LENGTH. If the header and footer use up the whole
        budget, the body is dropped.

        Args:
            announcement: The announcement to format

        Returns:
            str: Formatted message string
        """
        header = cls._header(announcement)
        footer = cls._footer(announcement)
        max_body = max(0, cls.MAX_LENGTH - len(header) - len(footer))
        body = cls._truncate(announcement.message, max_body)
        return header + body + footer

    @classmethod
    def format_parts(cls, announcement: Announcement) -> List[str]:
        """
        Format an announcement as one or more Discord messages.

        Instead of truncating, the body is split at paragraph, line or
        word boundaries (hard-cut as a last resort). The header goes on
        the first part, the link on the last, and later parts are marked
        as continued.

        Args:
            announcement: The announcement to format

        Returns:
            List[str]: Messages to send, in order
        """
        header = cls._header(announcement)
        footer = cls._footer(announcement)
        body = announcement.message

        if len(header) + len(body) + len(footer) <= cls.MAX_LENGTH:
            return [header + body + footer]

        limit = cls.MAX_LENGTH - max(len(header), len(cls.CONTINUED)) - len(footer)
        if limit <= 0:
            return [cls.format_announcement(announcement)]

        chunks = cls._split(body, limit)
        parts = [header + chunks[0]]
        parts.extend(cls.CONTINUED + chunk for chunk in chunks[1:])
        parts[-1] += footer
        return parts

    @staticmethod
    def _split(text: str, limit: int) -> List[str]:
        """Split text into chunks of at most ``limit`` characters."""
        chunks = []
        while len(text) > limit:
            cut = -1
            for separator in ("\n\n", "\n", " "):
                cut = text.rfind(separator, 0, limit + 1)
                if cut > 0:
                    break
            if cut <= 0:
                cut = limit

            chunk = text[:cut].rstrip()
            if chunk:
                chunks.append(chunk)
            text = text[cut:].lstrip()

        if text or not chunks:
            chunks.append(text)
        return chunks
