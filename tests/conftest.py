"""Shared test fixtures for freshrss-sync tests."""

import hashlib
from urllib.parse import parse_qs

import httpx
import pytest

from freshrss_sync.config import ClientConfig
from freshrss_sync.transport import Transport

HOST = "https://rss.example.com"
USERNAME = "alice"
PASSWORD = "Abcdef123456"
API_KEY = hashlib.md5(f"{USERNAME}:{PASSWORD}".encode()).hexdigest()

SAMPLE_LOGIN_TEXT = """SID=alice/8e6845e089457af25303abc6f53356eb60bdb5f8
LSID=null
Auth=alice/8e6845e089457af25303abc6f53356eb60bdb5f8
"""

SAMPLE_TOKEN_TEXT = "8e6845e089457af25303abc6f53356eb60bdb5f8ZZZZZZZZZZZZZZZZZ\n"


def make_item(item_id: int, **overrides) -> dict:
    """Build an item dict as the Fever API returns it."""
    item = {
        "id": item_id,
        "feed_id": 3,
        "title": f"Article {item_id}",
        "author": "Jane Doe",
        "html": f"<p>Body of article {item_id}</p>",
        "url": f"https://example.com/articles/{item_id}",
        "is_saved": 0,
        "is_read": 0,
        "created_on_time": 1707818400,
    }
    item.update(overrides)
    return item


def items_response(ids) -> dict:
    return {"api_version": 3, "auth": 1, "items": [make_item(i) for i in ids]}


def form_data(request: httpx.Request) -> dict:
    """Decode a form-encoded request body into a flat dict."""
    return {k: v[0] for k, v in parse_qs(request.content.decode(), keep_blank_values=True).items()}


class FakeSession:
    """Records calls and answers them from a handler or a list of responses."""

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls: list[tuple[str, dict]] = []

    def call(self, operation: str = "api", params: dict | None = None):
        params = dict(params or {})
        self.calls.append((operation, params))
        if self.handler is not None:
            return self.handler(operation, params)
        if not self.responses:
            raise AssertionError(f"Unexpected call: {operation} {params}")
        return self.responses.pop(0)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep FRESHRSS_API_* settings from the developer's shell out of tests."""
    for name in (
        "FRESHRSS_API_HOST",
        "FRESHRSS_API_USERNAME",
        "FRESHRSS_API_PASSWORD",
        "FRESHRSS_API_VERBOSE",
        "FRESHRSS_API_VERIFY_SSL",
        "FRESHRSS_API_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config():
    """A resolved configuration pointing at the fake server."""
    return ClientConfig(host=HOST, username=USERNAME, password=PASSWORD)


@pytest.fixture
def make_transport():
    """Create a Transport backed by an httpx.MockTransport handler."""
    created = []

    def _make(handler, retries: int = 1):
        transport = Transport(
            retries=retries,
            retry_delay=0,
            transport=httpx.MockTransport(handler),
        )
        created.append(transport)
        return transport

    yield _make

    for transport in created:
        transport.close()


@pytest.fixture
def fever_handler():
    """A Fever endpoint that accepts API_KEY and serves items by id."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if form_data(request).get("api_key") != API_KEY:
            return httpx.Response(200, json={"api_version": 3, "auth": 0})
        params = request.url.params
        if "unread_item_ids" in params:
            return httpx.Response(200, json={"auth": 1, "unread_item_ids": "12,10,11"})
        if "with_ids" in params:
            ids = [int(i) for i in params["with_ids"].split(",")]
            return httpx.Response(200, json=items_response(ids))
        return httpx.Response(200, json={"api_version": 3, "auth": 1, "last_refreshed_on_time": 1707818400})

    handler.requests = requests
    return handler


@pytest.fixture
def greader_handler():
    """A Google Reader endpoint that completes login and answers data calls."""
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        path = request.url.path
        if path.endswith("/accounts/ClientLogin"):
            return httpx.Response(200, text=SAMPLE_LOGIN_TEXT)
        if path.endswith("/reader/api/0/token"):
            return httpx.Response(200, text=SAMPLE_TOKEN_TEXT)
        if path.endswith("/reader/api/0/unread-count"):
            return httpx.Response(200, json={
                "max": 1000,
                "unreadcounts": [
                    {"id": "feed/3", "count": 4, "newestItemTimestampUsec": "1707818400000000"},
                    {"id": "user/-/state/com.google/reading-list", "count": 4},
                ],
            })
        if path.endswith("/reading-list"):
            return httpx.Response(200, json={
                "id": "user/-/state/com.google/reading-list",
                "items": [{"id": "tag:google.com,2005:reader/item/0005f"}],
                "continuation": "1707818400000001",
            })
        if path.endswith("/reader/api/0/user-info"):
            return httpx.Response(200, json={"userId": "1", "userName": USERNAME})
        return httpx.Response(404, text="Not found")

    handler.requests = requests
    return handler
