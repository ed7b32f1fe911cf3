"""Discord notification module for Canvas Relay."""

from canvas_relay.notify.discord import DiscordNotifier
from canvas_relay.notify.formatters import MessageFormatter

__all__ = ["DiscordNotifier", "MessageFormatter"]
