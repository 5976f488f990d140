from __future__ import annotations

import sys
from pathlib import Path
from types import SimpleNamespace

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for the flat top-level modules
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the deferred call."""

    created: list = []

    def __init__(self, interval, function):
        self.interval = interval
        self.function = function
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.created.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function()


class RelayClientSession:
    """requests-style session that routes posts to the relay's Flask test client."""

    def __init__(self, client):
        self.client = client
        self.calls = []

    def post(self, url, json=None, headers=None, **kwargs):
        self.calls.append((url, json))
        resp = self.client.post("/api/certidao", json=json)
        return SimpleNamespace(status_code=resp.status_code, text=resp.get_data(as_text=True))


class FakeDownstream:
    """Replacement for requests.post inside the relay."""

    def __init__(self, status_code=200, text='{"ok": true}', exc=None):
        self.status_code = status_code
        self.text = text
        self.exc = exc
        self.calls = []

    def __call__(self, url, json=None, **kwargs):
        self.calls.append((url, json, kwargs))
        if self.exc is not None:
            raise self.exc
        return SimpleNamespace(status_code=self.status_code, text=self.text)


@pytest.fixture
def fake_timer():
    FakeTimer.created = []
    return FakeTimer


@pytest.fixture
def relay_client():
    import webapp

    webapp.app.config["TESTING"] = True
    return webapp.app.test_client()


@pytest.fixture
def downstream(monkeypatch):
    import webapp

    fake = FakeDownstream()
    monkeypatch.setattr(webapp.requests, "post", fake)
    return fake


@pytest.fixture
def make_controller(relay_client, fake_timer):
    from form_controller import FormController

    def _make(session=None):
        return FormController(
            relay_url="http://relay.test/api/certidao",
            session=session or RelayClientSession(relay_client),
            timer_factory=fake_timer,
        )

    return _make
