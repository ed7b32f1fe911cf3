"""
Discord REST API client.

Sends notifications to a channel as a bot user.
https://discord.com/developers/docs/resources/message#create-message
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from canvas_relay.config import Settings, get_settings
from canvas_relay.errors import ChannelResolutionError, TransportError

logger = logging.getLogger(__name__)

# Discord REST API base
DISCORD_API_URL = "https://discord.com/api/v10"

# Attempts per request while Discord answers 429
RATE_LIMIT_RETRIES = 5


class DiscordNotifier:
    """
    Discord bot client for posting announcements to one channel.

    Startup is sequential: ``login`` checks the bot token, then
    ``resolve_channel`` checks the channel is visible to the bot. Only
    after both succeed should messages be sent.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        channel_id: Optional[str] = None,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Discord notifier.

        Args:
            token: Discord bot token
            channel_id: Discord channel ID to post to
            settings: Optional settings instance, used for anything not passed
            session: Optional requests session (mainly for tests)
        """
        if settings is None and (token is None or channel_id is None):
            settings = get_settings()

        self.token = token or settings.discord_token
        self.channel_id = channel_id or settings.discord_channel_id
        self.timeout = settings.request_timeout if settings else 30

        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bot {self.token}",
            "Content-Type": "application/json",
            "User-Agent": "DiscordBot (https://github.com/canvas-relay, 1.0)",
        })

        self.user: Optional[Dict[str, Any]] = None
        self.channel: Optional[Dict[str, Any]] = None
        self.sleep = time.sleep

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        """
        Send a request, waiting out rate limits.

        A 429 response is retried after the delay Discord asks for, up to
        RATE_LIMIT_RETRIES attempts. The last response is returned as-is.

        Raises:
            TransportError: On a network error or timeout
        """
        kwargs.setdefault("timeout", self.timeout)
        for attempt in range(1, RATE_LIMIT_RETRIES + 1):
            try:
                response = self.session.request(method, f"{DISCORD_API_URL}{path}", **kwargs)
            except requests.exceptions.Timeout as e:
                raise TransportError(f"Discord API request timed out: {method} {path}") from e
            except requests.exceptions.RequestException as e:
                raise TransportError(f"Discord API request failed: {e}") from e

            if response.status_code != 429 or attempt == RATE_LIMIT_RETRIES:
                return response

            retry_after = self._retry_after(response)
            logger.warning(
                f"Discord rate-limited ({attempt}/{RATE_LIMIT_RETRIES}), "
                f"sleeping {retry_after:.2f}s"
            )
            self.sleep(retry_after)
        return response

    @staticmethod
    def _retry_after(response: requests.Response) -> float:
        """Seconds to wait, from the JSON body or the Retry-After header."""
        try:
            value = response.json().get("retry_after")
        except (ValueError, AttributeError):
            value = None
        if value is None:
            value = response.headers.get("Retry-After", 1)
        try:
            return max(0.0, float(value))
        except (TypeError, ValueError):
            return 1.0

    def login(self) -> Dict[str, Any]:
        """
        Verify the bot token.

        Returns:
            dict: The bot's user object

        Raises:
            TransportError: If the token is rejected or Discord is unreachable
        """
        response = self._request("GET", "/users/@me")
        if not response.ok:
            raise TransportError(
                "Discord login failed",
                status_code=response.status_code,
                body=response.text,
            )

        self.user = response.json()
        logger.info(f"Discord bot logged in as {self.user.get('username', 'unknown')}")
        return self.user

    def resolve_channel(self) -> Dict[str, Any]:
        """
        Look up the configured channel.

        Returns:
            dict: The channel object

        Raises:
            ChannelResolutionError: If the channel doesn't exist or isn't accessible
        """
        try:
            response = self._request("GET", f"/channels/{self.channel_id}")
        except TransportError as e:
            raise ChannelResolutionError(
                f"Failed to fetch channel {self.channel_id}: {e}"
            ) from e

        if not response.ok:
            raise ChannelResolutionError(
                f"Channel {self.channel_id} not found or not accessible "
                f"({response.status_code}): {response.text[:200]}"
            )

        self.channel = response.json()
        logger.info(f"Posting to #{self.channel.get('name') or self.channel_id}")
        return self.channel

    def send_message(self, message: str) -> str:
        """
        Post a text message to the channel.

        Mentions in announcement text are never resolved, so an
        announcement containing "@everyone" doesn't ping anyone.

        Args:
            message: The message text to send

        Returns:
            str: The Discord message ID

        Raises:
            TransportError: If Discord rejects the message or is unreachable
        """
        payload = {
            "content": message,
            "allowed_mentions": {"parse": []},
        }

        response = self._request(
            "POST", f"/channels/{self.channel_id}/messages", json=payload
        )
        if not response.ok:
            raise TransportError(
                "Discord API error",
                status_code=response.status_code,
                body=response.text,
            )

        message_id = response.json().get("id", "unknown")
        logger.info(f"Discord message sent successfully: {message_id}")
        return message_id

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()
