"""Shared fixtures: a controllable clock and fake HTTP responses."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest

COUNT_BODY = {
    "results": {
        "bindings": [{"count": {"value": "42", "type": "literal"}}],
    },
}


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def make_response():
    """Factory for ``requests.Response``-like mocks."""

    def _make(status_code=200, body=COUNT_BODY, reason="OK"):
        if isinstance(body, bytes):
            payload = body
        elif isinstance(body, str):
            payload = body.encode("utf-8")
        else:
            payload = json.dumps(body, ensure_ascii=False).encode("utf-8")

        resp = MagicMock()
        resp.status_code = status_code
        resp.reason = reason
        resp.iter_content.return_value = [payload] if payload else []
        return resp

    return _make


@pytest.fixture()
def session(make_response):
    """A mocked ``requests.Session`` answering every POST with a count."""
    mock_session = MagicMock()
    mock_session.post.return_value = make_response()
    return mock_session
