"""
Data models for Canvas Relay.

Defines Pydantic models for:
- Announcement (a normalized Canvas announcement)
- WatermarkState (what has already been delivered)
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

# Canvas ids are integers, but nothing here depends on that
ItemId = Union[int, str]

# Cap on the recently-seen id list
MAX_RECENT_IDS = 500


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC so comparisons never mix the two."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Announcement(BaseModel):
    """
    Represents a course announcement, normalized from the Canvas API.

    Attributes:
        id: Canvas announcement identifier
        timestamp: When the announcement was posted (None if unknown)
        title: Announcement title
        author: Display name of the person who posted
        url: Direct link to the announcement
        message: Plain-text announcement body
    """
    model_config = ConfigDict(frozen=True)

    id: ItemId
    timestamp: Optional[datetime] = None
    title: str
    author: str
    url: str
    message: str = ""

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)


class WatermarkState(BaseModel):
    """
    Delivery watermark plus a bounded list of recently delivered ids.

    The state file uses camelCase keys. Files from older releases, which
    used ``lastISO`` / ``seenIds``, are accepted too.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    last_timestamp: Optional[datetime] = Field(
        default=None,
        validation_alias=AliasChoices("lastTimestamp", "lastISO", "last_timestamp"),
        serialization_alias="lastTimestamp",
    )
    recent_ids: List[ItemId] = Field(
        default_factory=list,
        validation_alias=AliasChoices("recentIds", "seenIds", "recent_ids"),
        serialization_alias="recentIds",
    )

    @field_validator("last_timestamp")
    @classmethod
    def validate_last_timestamp(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(v)

    def has_seen(self, item_id: ItemId) -> bool:
        """Check whether an id is in the recently-seen list."""
        return item_id in self.recent_ids

    def advance(
        self,
        newest_timestamp: Optional[datetime],
        delivered_ids: Iterable[ItemId],
    ) -> "WatermarkState":
        """
        Return the state after a successful delivery batch.

        The watermark only moves forward. Ids already present keep their
        position, new ids are appended, and the oldest are evicted once
        the list exceeds MAX_RECENT_IDS.

        Args:
            newest_timestamp: Newest timestamp seen in the fetched list
            delivered_ids: Ids delivered in this batch

        Returns:
            WatermarkState: The new state (self is left unchanged)
        """
        last_timestamp = self.last_timestamp
        if newest_timestamp is not None and (
            last_timestamp is None or newest_timestamp > last_timestamp
        ):
            last_timestamp = newest_timestamp

        merged = list(dict.fromkeys([*self.recent_ids, *delivered_ids]))
        return WatermarkState(
            last_timestamp=last_timestamp,
            recent_ids=merged[-MAX_RECENT_IDS:],
        )

    def to_json(self) -> str:
        """Serialize to the on-disk JSON document."""
        return self.model_dump_json(by_alias=True, indent=2)
