"""Pytest configuration and shared fixtures."""

import json
from typing import Any

import httpx
import pytest

from chromadmin.config import Settings
from chromadmin.schemas.models import Auth, AuthType, Connection
from chromadmin.store import CollectionIdCache, CollectionStore

COLLECTIONS_LIST = [
    {"name": "docs", "id": "col-id-docs", "metadata": {}},
    {"name": "images", "id": "col-id-images", "metadata": {}},
]


class FakeClock:
    """Monotonic clock the tests advance by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ChromaV1Stub:
    """
    httpx handler replaying queued responses in order and recording every
    request it receives (method, url, headers, decoded JSON body).
    """

    def __init__(self):
        self._responses: list[httpx.Response] = []
        self.requests: list[httpx.Request] = []

    def reply(self, body: Any = None, status: int = 200, headers: dict[str, str] | None = None) -> "ChromaV1Stub":
        self._responses.append(httpx.Response(status, json=body, headers=headers))
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        return self._responses.pop(0)

    def body(self, index: int) -> dict[str, Any]:
        return json.loads(self.requests[index].content)

    def urls(self) -> list[str]:
        return [str(r.url) for r in self.requests]

    def list_calls(self) -> int:
        return sum(
            1 for r in self.requests if r.method == "GET" and r.url.path == "/api/v1/collections"
        )


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock, settings):
    return CollectionIdCache(ttl_seconds=settings.chromadmin_cache_ttl_seconds, clock=clock)


@pytest.fixture
def chroma():
    return ChromaV1Stub()


@pytest.fixture
def store(settings, cache, chroma):
    """Dispatcher whose v1 backend talks to the ChromaV1Stub."""
    return CollectionStore(settings=settings, cache=cache, transport=httpx.MockTransport(chroma))


@pytest.fixture
def connection():
    return Connection(
        url="http://localhost:8000",
        tenant="default_tenant",
        database="default_database",
        auth=Auth(auth_type=AuthType.TOKEN, token="test-token"),
    )
