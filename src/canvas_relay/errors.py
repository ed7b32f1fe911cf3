"""
Exception types for Canvas Relay.

Only configuration and network failures are allowed to fail a unit of
work. Formatting and normalization degrade to placeholders instead.
"""

from typing import Optional


class RelayError(Exception):
    """Base class for all Canvas Relay errors."""
    pass


class ConfigError(RelayError):
    """Raised at startup when required configuration is missing or invalid."""
    pass


class TransportError(RelayError):
    """
    Raised when a Canvas page fetch or a Discord send fails.

    Attributes:
        status_code: HTTP status of the failed response, if one was received
        body: Response body of the failed response, if one was received
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def __str__(self) -> str:
        message = super().__str__()
        if self.status_code is None:
            return message
        detail = f"{message} (HTTP {self.status_code})"
        if self.body:
            detail += f"\n{self.body[:500]}"
        return detail


class StateIOError(RelayError):
    """Raised when the state file cannot be written."""
    pass


class ChannelResolutionError(RelayError):
    """Raised at boot when the configured Discord channel can't be resolved."""
    pass
