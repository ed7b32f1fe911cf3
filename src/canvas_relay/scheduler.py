"""
Poll scheduling.

The Ticker runs a handler immediately and then once per interval on the
calling thread, so runs never overlap. ManualTrigger offers the same
interface for tests and one-shot runs.
"""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

Handler = Callable[[], object]


class Ticker:
    """
    Fixed-interval runner with a cooperative stop.

    ``stop`` never interrupts a running handler; the loop exits once the
    current run returns.
    """

    def __init__(self, interval: float, handler: Handler):
        """
        Args:
            interval: Seconds to wait between the end of one run and the next
            handler: Called once per tick
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.interval = interval
        self.handler = handler
        self._stopped = threading.Event()

    @property
    def stopped(self) -> bool:
        return self._stopped.is_set()

    def run(self) -> None:
        """Run until ``stop`` is called. Blocks the calling thread."""
        logger.info(f"Polling every {self.interval:g}s")
        while not self._stopped.is_set():
            try:
                self.handler()
            except Exception:
                # A broken handler must not kill the schedule
                logger.exception("Scheduled run raised an unexpected error")
            if self._stopped.wait(self.interval):
                break
        logger.info("Scheduler stopped")

    def stop(self) -> None:
        self._stopped.set()


class ManualTrigger:
    """Runs the handler only when ``fire`` is called."""

    def __init__(self, handler: Handler):
        self.handler = handler
        self.fired = 0

    def fire(self):
        self.fired += 1
        return self.handler()
