"""Canvas API access for Canvas Relay."""

from canvas_relay.canvas.session import CanvasSession

__all__ = ["CanvasSession"]
