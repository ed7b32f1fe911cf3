"""
Delivery loop for Canvas Relay.

Each poll cycle runs:
1. Fetch announcements since the watermark
2. Select the ones not delivered yet
3. Post them to Discord, oldest first
4. Commit the new watermark state

State is only committed after every send in the cycle succeeded, so a
failure part-way through redelivers the whole batch on the next cycle.
"""

import logging
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional

from canvas_relay.db import StateStore
from canvas_relay.errors import TransportError
from canvas_relay.models import Announcement, WatermarkState
from canvas_relay.notify import DiscordNotifier, MessageFormatter
from canvas_relay.novelty import select_new
from canvas_relay.scrapers import AnnouncementFetcher

logger = logging.getLogger(__name__)

# How far back the first poll looks when there is no watermark
DEFAULT_LOOKBACK = timedelta(days=7)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DeliveryLoop:
    """
    Orchestrates fetch, filter, format, send and commit.

    ``poll_once`` is safe to call from any thread; cycles are serialized
    by a lock so the state is read and committed by one cycle at a time.
    """

    def __init__(
        self,
        fetcher: AnnouncementFetcher,
        notifier: DiscordNotifier,
        store: StateStore,
        formatter: Optional[MessageFormatter] = None,
        split_long_messages: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the loop with its collaborators.

        Args:
            fetcher: Source of announcements
            notifier: Discord client (already logged in, channel resolved)
            store: Watermark state store
            formatter: Message formatter
            split_long_messages: Split long bodies instead of truncating
            clock: Returns the current UTC time
        """
        self.fetcher = fetcher
        self.notifier = notifier
        self.store = store
        self.formatter = formatter or MessageFormatter()
        self.split_long_messages = split_long_messages
        self.clock = clock
        self._lock = threading.Lock()

        # Track stats
        self.stats = {
            "cycles": 0,
            "failed_cycles": 0,
            "announcements_fetched": 0,
            "announcements_sent": 0,
            "messages_sent": 0,
        }

    def render(self, announcement: Announcement) -> List[str]:
        """Format one announcement into the messages to send."""
        if self.split_long_messages:
            return self.formatter.format_parts(announcement)
        return [self.formatter.format_announcement(announcement)]

    def deliver(self, batch: List[Announcement]) -> int:
        """
        Send a newest-first batch to Discord, oldest first.

        Stops at the first failed send.

        Args:
            batch: Announcements, newest first

        Returns:
            int: Number of announcements sent

        Raises:
            TransportError: If any send fails
        """
        sent = 0
        for announcement in reversed(batch):
            for message in self.render(announcement):
                self.notifier.send_message(message)
                self.stats["messages_sent"] += 1
            sent += 1
            self.stats["announcements_sent"] += 1
            logger.debug(f"Sent announcement {announcement.id}: {announcement.title}")
        return sent

    def run_cycle(self, state: WatermarkState) -> WatermarkState:
        """
        Run one poll cycle against ``state``.

        Args:
            state: Current watermark state (not modified)

        Returns:
            WatermarkState: The state to commit; ``state`` itself if nothing was sent

        Raises:
            TransportError: If fetching or any send fails
        """
        since = state.last_timestamp or (self.clock() - DEFAULT_LOOKBACK)
        logger.info(f"[poll] since={since.isoformat()}")

        announcements = self.fetcher.scrape(since)
        self.stats["announcements_fetched"] += len(announcements)
        newest = announcements[0].timestamp if announcements else None
        logger.info(
            f"[poll] fetched {len(announcements)} announcements "
            f"(newest ts={newest.isoformat() if newest else 'none'})"
        )

        batch = select_new(announcements, state)
        logger.info(f"[poll] will post {len(batch)} new items")
        if not batch:
            return state

        self.deliver(batch)
        return state.advance(newest or state.last_timestamp, [a.id for a in batch])

    def poll_once(self) -> bool:
        """
        Run one cycle and commit its result.

        Transport failures are logged, not raised; the next cycle retries.

        Returns:
            bool: True if the cycle completed
        """
        with self._lock:
            self.stats["cycles"] += 1
            state = self.store.state
            try:
                new_state = self.run_cycle(state)
            except TransportError as e:
                self.stats["failed_cycles"] += 1
                logger.error(f"[poll] cycle failed, state not updated: {e}")
                return False

            if new_state != state:
                self.store.commit(new_state)
                logger.info(
                    f"[poll] state updated: lastTimestamp={new_state.last_timestamp}, "
                    f"{len(new_state.recent_ids)} seen ids"
                )
            return True

    def replay(self, count: int) -> int:
        """
        Post the latest ``count`` announcements without touching state.

        Args:
            count: Number of announcements to post (at least 1)

        Returns:
            int: Number of announcements posted

        Raises:
            TransportError: If fetching or any send fails
        """
        count = max(1, count)
        with self._lock:
            logger.info(f"[replay] fetching latest {count} announcements...")
            batch = self.fetcher.fetch_latest(count)
            logger.info(f"[replay] will post {len(batch)} items")
            sent = self.deliver(batch)
            logger.info("[replay] done (state not modified).")
            return sent

    def log_summary(self) -> None:
        """Log execution summary."""
        logger.info("=" * 50)
        logger.info("Canvas Relay - Summary")
        logger.info("=" * 50)
        logger.info(f"Poll cycles:          {self.stats['cycles']}")
        logger.info(f"Failed cycles:        {self.stats['failed_cycles']}")
        logger.info(f"Announcements found:  {self.stats['announcements_fetched']}")
        logger.info(f"Announcements sent:   {self.stats['announcements_sent']}")
        logger.info(f"Messages sent:        {self.stats['messages_sent']}")
        logger.info("=" * 50)
