"""Shared fakes for the fake IoT simulator test suite.

HTTP traffic is faked at the aiohttp session level: ``FakeSession.post`` returns
an async context manager yielding a ``FakeResponse`` produced by a handler, so
the real client code classifies responses exactly as it would on the wire.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import pytest

from fakeiot.core.client import ClientConfig, IngestionClient

GOOD_TOKEN = "good-token"
TEST_URL = "https://iot.example.com"


class FakeResponse:
    """Mimics the parts of an aiohttp response used by the client."""

    def __init__(self, status: int, body: Any = None, content_type: Optional[str] = "application/json"):
        self.status = status
        self.headers: Dict[str, str] = {}
        if content_type is not None:
            self.headers["Content-Type"] = content_type
        if body is None:
            self._raw = b""
        elif isinstance(body, (bytes, str)):
            self._raw = body.encode() if isinstance(body, str) else body
        else:
            self._raw = json.dumps(body).encode()

    async def read(self) -> bytes:
        return self._raw

    async def text(self) -> str:
        return self._raw.decode()


def json_response(status: int, body: Any = None) -> FakeResponse:
    return FakeResponse(status, body if body is not None else {})


@dataclass
class FakeRequest:
    url: str
    headers: Dict[str, str]
    json: Any = None
    data: Any = None
    allow_redirects: bool = True


class _RespCM:
    """Async context manager returning a prepared response or raising an error."""

    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Mimics aiohttp.ClientSession.post, routing every request to a handler."""

    def __init__(self, handler: Callable[[FakeRequest], Any]):
        self.handler = handler
        self.closed = False
        self.requests: List[FakeRequest] = []

    def post(self, url, headers=None, allow_redirects=True, json=None, data=None):
        request = FakeRequest(url=url, headers=dict(headers or {}), json=json, data=data,
                              allow_redirects=allow_redirects)
        self.requests.append(request)
        try:
            outcome = self.handler(request)
        except Exception as e:
            outcome = e
        return _RespCM(outcome)

    async def close(self):
        self.closed = True


def ingestion_server(overrides: Optional[Dict[str, FakeResponse]] = None):
    """
    Handler behaving like a compliant ingestion server.

    Individual answers can be replaced through overrides keyed by
    "ok", "empty", "corrupted", "empty_token" and "random_token".
    """
    overrides = overrides or {}

    def handler(request: FakeRequest) -> FakeResponse:
        auth = request.headers.get("Authorization", "")
        if auth == "Bearer ":
            return overrides.get("empty_token", json_response(401, {"message": "access denied"}))
        if auth != f"Bearer {GOOD_TOKEN}":
            return overrides.get("random_token", json_response(403, {"message": "access denied"}))
        if request.json is None:
            return overrides.get("corrupted", json_response(400, {"message": "bad format"}))
        if not request.json.get("account_id") or not request.json.get("user_id"):
            return overrides.get("empty", json_response(400, {"message": "missing account_id"}))
        return overrides.get("ok", json_response(200, {}))

    return handler


@pytest.fixture
def make_client():
    """Build an IngestionClient bound to a FakeSession."""

    def _make(handler, token: str = GOOD_TOKEN) -> IngestionClient:
        session = FakeSession(handler)
        return IngestionClient(ClientConfig(url=TEST_URL, bearer_token=token), session=session)

    return _make
