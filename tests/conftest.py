"""Pytest configuration: ensure src is on path when running tests from repo root."""

import sys
from pathlib import Path

import pytest

_root = Path(__file__).resolve().parents[1]
_src = _root / "src"
if _src.is_dir() and str(_src) not in sys.path:
    sys.path.insert(0, str(_src))


class FakeResponse:
    """Minimal stand-in for requests.Response (status, reason, json)."""

    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload


@pytest.fixture
def fake_get(monkeypatch):
    """Route requests.get in the OANDA client to a dict of url -> FakeResponse.

    Unknown URLs answer 404. Returns the list of (url, params) calls made.
    """
    from nav_tracker.services import oanda

    routes = {}
    calls = []

    def _get(url, headers=None, params=None, timeout=None):
        calls.append((url, params))
        handler = routes.get(url)
        if callable(handler):
            return handler(params)
        return handler or FakeResponse(404, {"errorMessage": "not found"}, reason="Not Found")

    monkeypatch.setattr(oanda.requests, "get", _get)
    return routes, calls
