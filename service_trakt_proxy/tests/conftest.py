"""
Shared fixtures for gateway tests.
"""

import json
from typing import List

import httpx
import pytest
from fastapi.testclient import TestClient

from shared.config import GatewayConfig
from service_trakt_proxy.app.main import create_app

CALLER_KEY = "anon-key-123"


class FakeClock:
    """Manually advanced millisecond clock."""

    def __init__(self, start: int = 1_000_000):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int):
        self.now += ms


class RecordingUpstream:
    """Mock upstream that records every request it receives."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.status_code = 200
        self.body = json.dumps({"ok": True})
        self.content_type = "application/json"

    def reply(self, status_code: int = 200, body: str = "", content_type: str = "application/json"):
        self.status_code = status_code
        self.body = body
        self.content_type = content_type

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        headers = {"content-type": self.content_type} if self.content_type else {}
        return httpx.Response(self.status_code, content=self.body.encode("utf-8"), headers=headers)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def gateway_config():
    """Gateway configuration with every credential set."""
    return GatewayConfig(
        trakt_client_id="trakt-client-id",
        trakt_client_secret="trakt-client-secret",
        tmdb_api_key="tmdb-key",
        app_anon_key=CALLER_KEY,
        rate_limit_requests=5,
        rate_limit_window_ms=60_000,
    )


@pytest.fixture
def upstream():
    return RecordingUpstream()


@pytest.fixture
def app(gateway_config, upstream):
    return create_app(gateway_config, transport=httpx.MockTransport(upstream.handler))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"apikey": CALLER_KEY}
