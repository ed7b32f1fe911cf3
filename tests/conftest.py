from __future__ import annotations

import json
from collections import deque
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from canvas_relay.config import Settings, load_settings
from canvas_relay.errors import TransportError
from canvas_relay.models import Announcement

T0 = datetime(2024, 9, 1, 12, 0, tzinfo=timezone.utc)


def ts(minutes: int) -> datetime:
    """A fixed instant offset from T0."""
    return T0 + timedelta(minutes=minutes)


def make_response(
    status: int = 200,
    body: Any = None,
    link: Optional[str] = None,
    url: str = "https://canvas.test/api/v1/announcements",
) -> requests.Response:
    response = requests.Response()
    response.status_code = status
    response.reason = "OK" if status < 400 else "Error"
    response.url = url
    response.encoding = "utf-8"
    response._content = (body if isinstance(body, str) else json.dumps(body)).encode("utf-8")
    if link:
        response.headers["Link"] = link
    return response


class FakeHTTPSession:
    """Stands in for requests.Session, replaying queued responses."""

    def __init__(self, *responses):
        self.headers = CaseInsensitiveDict()
        self.responses = deque(responses)
        self.calls = []
        self.closed = False

    def request(self, method, url, **kwargs):
        self.calls.append({"method": method, "url": url, **kwargs})
        response = self.responses.popleft()
        if isinstance(response, Exception):
            raise response
        return response

    def get(self, url, **kwargs):
        return self.request("GET", url, **kwargs)

    def close(self):
        self.closed = True


class FakeNotifier:
    """Records sent messages; can be told to fail on the n-th send."""

    def __init__(self, fail_on: Optional[int] = None):
        self.sent = []
        self.fail_on = fail_on

    def send_message(self, message: str) -> str:
        if self.fail_on is not None and len(self.sent) + 1 == self.fail_on:
            raise TransportError("Discord API error", status_code=500, body="boom")
        self.sent.append(message)
        return str(len(self.sent))


class FakeFetcher:
    """Returns a fixed newest-first list and records the requested windows."""

    def __init__(self, items=None, error: Optional[Exception] = None):
        self.items = list(items or [])
        self.error = error
        self.since_calls = []
        self.latest_calls = []

    def scrape(self, since=None):
        self.since_calls.append(since)
        if self.error:
            raise self.error
        return list(self.items)

    def fetch_latest(self, count):
        self.latest_calls.append(count)
        if self.error:
            raise self.error
        return list(self.items)[:count]


def make_announcement(item_id, timestamp=None, title=None, message="Hello class") -> Announcement:
    return Announcement(
        id=item_id,
        timestamp=timestamp,
        title=title or f"Announcement {item_id}",
        author="Dr. Ada",
        url=f"https://canvas.test/courses/42/discussion_topics/{item_id}",
        message=message,
    )


@pytest.fixture
def settings() -> Settings:
    return load_settings(
        _env_file=None,
        canvas_base="https://canvas.test/",
        canvas_token="canvas-token",
        canvas_course_id="42",
        discord_token="discord-token",
        discord_channel_id="1234",
    )
