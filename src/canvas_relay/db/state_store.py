"""
Watermark store for deduplication.

Holds the delivery watermark and recently-delivered ids. When a state
file is configured the state survives restarts; otherwise it lives in
memory, seeded from an optional start instant.
"""

import json
import logging
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from canvas_relay.errors import StateIOError
from canvas_relay.models import WatermarkState

logger = logging.getLogger(__name__)


class StateStore:
    """
    Owns the current WatermarkState and its optional JSON file.

    Load order at boot:
    1. The state file, if configured, present and well-formed
    2. Otherwise an empty state seeded with ``seed_timestamp``

    A broken or missing file is never fatal. Write failures are logged
    and the in-memory state stays authoritative for this process.
    """

    def __init__(
        self,
        path: Optional[Path] = None,
        seed_timestamp: Optional[datetime] = None,
    ):
        """
        Initialize the store and load the initial state.

        Args:
            path: JSON state file (None keeps state in memory only)
            seed_timestamp: Watermark to start from when no file state exists
        """
        self.path = Path(path) if path else None
        self.seed_timestamp = seed_timestamp
        self._state = self.load()

    @property
    def state(self) -> WatermarkState:
        """The current state."""
        return self._state

    @property
    def is_durable(self) -> bool:
        return self.path is not None

    def _seed_state(self) -> WatermarkState:
        return WatermarkState(last_timestamp=self.seed_timestamp)

    def load(self) -> WatermarkState:
        """
        Read the state file, falling back to the seed state.

        Returns:
            WatermarkState: The loaded state
        """
        if self.path is None:
            return self._seed_state()

        if not self.path.exists():
            logger.info(f"No state file at {self.path}, starting from seed state")
            return self._seed_state()

        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            state = WatermarkState.model_validate(data)
        except (OSError, ValueError, ValidationError) as e:
            logger.warning(f"Ignoring unreadable state file {self.path}: {e}")
            return self._seed_state()

        logger.info(
            f"Loaded state: lastTimestamp={state.last_timestamp}, "
            f"{len(state.recent_ids)} seen ids"
        )
        return state

    def commit(self, state: WatermarkState) -> bool:
        """
        Make ``state`` current and persist it.

        Args:
            state: The new state

        Returns:
            bool: True if persisted (or no file configured), False if the write failed
        """
        self._state = state

        if self.path is None:
            return True

        try:
            self._write(state)
        except StateIOError as e:
            logger.error(f"Could not persist state, keeping it in memory: {e}")
            return False
        return True

    def _write(self, state: WatermarkState) -> None:
        """
        Overwrite the state file atomically.

        Raises:
            StateIOError: If the file can't be written
        """
        directory = self.path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=".state-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(state.to_json())
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StateIOError(f"Failed writing {self.path}: {e}") from e
