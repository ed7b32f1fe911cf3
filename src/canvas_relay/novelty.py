"""
New-item detection.

Decides which fetched announcements still need to be delivered, given
the current watermark state.
"""

from typing import List

from canvas_relay.models import Announcement, WatermarkState


def is_new(item: Announcement, state: WatermarkState) -> bool:
    """
    Check whether an announcement should be delivered.

    An item is new when there is no watermark yet, when it is strictly
    newer than the watermark, or when its id is not in the seen list.
    The conditions are OR-ed: late or same-timestamp items are still
    picked up as long as their id was never recorded.

    Known tradeoff: an item sitting exactly on the watermark whose id has
    been evicted from the 500-entry seen list is delivered again.

    Args:
        item: Fetched announcement
        state: Current watermark state

    Returns:
        bool: True if the item must be delivered
    """
    if state.last_timestamp is None:
        return True
    if item.timestamp is not None and item.timestamp > state.last_timestamp:
        return True
    return not state.has_seen(item.id)


def select_new(items: List[Announcement], state: WatermarkState) -> List[Announcement]:
    """
    Select the announcements that must be delivered, keeping input order.

    Args:
        items: Fetched announcements (newest first)
        state: Current watermark state (not modified)

    Returns:
        List[Announcement]: The subset to deliver
    """
    return [item for item in items if is_new(item, state)]
