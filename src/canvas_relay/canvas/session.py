"""
Canvas API session management.

Wraps a requests session carrying the Canvas bearer token, and follows
the ``Link: <...>; rel="next"`` pagination headers Canvas uses on list
endpoints.
"""

import logging
from typing import Any, Dict, List, Optional

import requests

from canvas_relay.config import Settings, get_settings
from canvas_relay.errors import TransportError

logger = logging.getLogger(__name__)


class CanvasSession:
    """
    Authenticated session with the Canvas REST API.

    Handles:
    - Bearer token authentication
    - Link-header pagination
    - Translating HTTP and network failures into TransportError

    No retries are attempted here; a failed page fails the whole call.
    """

    USER_AGENT = "canvas-relay/1.0"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize Canvas session.

        Args:
            settings: Optional settings instance, will use default if not provided
            session: Optional requests session (mainly for tests)
        """
        self.settings = settings or get_settings()
        self.base_url = self.settings.canvas_base
        self.timeout = self.settings.request_timeout

        self.session = session or requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {self.settings.canvas_token}",
            "Accept": "application/json",
            "User-Agent": self.USER_AGENT,
        })

    def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        """
        Make an authenticated GET request.

        Args:
            url: Absolute URL to fetch
            params: Optional query parameters

        Returns:
            Response object with a 2xx status

        Raises:
            TransportError: On a network error or non-2xx response
        """
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Canvas request timed out: {url}") from e
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Canvas request failed: {e}") from e

        if not response.ok:
            raise TransportError(
                f"Canvas {response.status_code} {response.reason}",
                status_code=response.status_code,
                body=response.text,
            )
        return response

    def get_all(self, url: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        """
        Fetch every page of a Canvas list endpoint.

        The query parameters are only sent with the first request; the
        ``next`` links Canvas returns already carry them.

        Args:
            url: Absolute URL of the list endpoint
            params: Query parameters for the first page

        Returns:
            List: Items from all pages, in page order

        Raises:
            TransportError: If any page fails or isn't a JSON list
        """
        items: List[Any] = []
        next_url: Optional[str] = url
        page = 0

        while next_url:
            page += 1
            response = self.get(next_url, params=params if page == 1 else None)

            try:
                data = response.json()
            except ValueError as e:
                raise TransportError(
                    f"Canvas returned invalid JSON on page {page}",
                    status_code=response.status_code,
                    body=response.text,
                ) from e

            if not isinstance(data, list):
                raise TransportError(
                    f"Canvas returned unexpected payload on page {page}",
                    status_code=response.status_code,
                    body=response.text,
                )

            items.extend(data)
            next_url = response.links.get("next", {}).get("url")
            logger.debug(f"Fetched page {page} ({len(data)} items)")

        return items

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "CanvasSession":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
