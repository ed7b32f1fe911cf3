"""State persistence for Canvas Relay."""

from canvas_relay.db.state_store import StateStore

__all__ = ["StateStore"]
