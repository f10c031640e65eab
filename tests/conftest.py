"""Pytest fixtures for RawBox tests."""
import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import pytest

from rawbox import (
    APIConfig,
    EventEmitter,
    FileServiceClient,
    MemoryCredentialStore,
    SessionStateModel,
)
from rawbox.core.api import TransportResponse


@dataclass
class SentRequest:
    """A request recorded by FakeTransport."""
    method: str
    url: str
    params: Optional[Dict[str, str]] = None
    json_body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)


class FakeTransport:
    """
    Transport replaying queued outcomes.

    An outcome is a TransportResponse, an exception to raise, or a
    callable receiving the SentRequest and returning either.
    """

    def __init__(self):
        self.outcomes = []
        self.calls = []

    def queue(self, *outcomes) -> 'FakeTransport':
        self.outcomes.extend(outcomes)
        return self

    async def send(self, method, url, *, params=None, json_body=None, headers=None):
        request = SentRequest(method, url, params, json_body, dict(headers or {}))
        self.calls.append(request)
        if not self.outcomes:
            raise AssertionError(f"Unexpected request: {method} {url}")

        outcome = self.outcomes.pop(0)
        if callable(outcome) and not isinstance(outcome, BaseException):
            outcome = outcome(request)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def json_response(status: int, payload: Any) -> TransportResponse:
    return TransportResponse(status=status, body=json.dumps(payload).encode('utf-8'))


@pytest.fixture
def respond():
    """Builds JSON TransportResponses."""
    return json_response


@pytest.fixture
def config():
    """Configuration pointing at a fake server."""
    return APIConfig(base_url='http://rawbox.test/')


@pytest.fixture
def store(config):
    """Empty in-memory credential store."""
    return MemoryCredentialStore(config.storage)


@pytest.fixture
def events():
    return EventEmitter()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def sleeps():
    """Delays passed to the fake sleep."""
    return []


@pytest.fixture
def fake_sleep(sleeps):
    async def sleep(delay):
        sleeps.append(delay)
    return sleep


@pytest.fixture
def client(config, store, events, transport, fake_sleep):
    """Client wired to the fake transport."""
    return FileServiceClient(
        config,
        store=store,
        events=events,
        transport=transport,
        sleep=fake_sleep,
    )


@pytest.fixture
def model(client):
    return SessionStateModel(client)


@pytest.fixture
def sample_files():
    """Listing payload as sent by /admin/files."""
    return {
        'files': [
            {'name': 'docs', 'size': 0, 'is_dir': True, 'time': 1699900000},
            {'name': 'readme.md', 'size': 1024, 'is_dir': False, 'time': '2024-01-01T12:00:00'},
            {'name': 'video.mp4', 'size': 52428800, 'is_dir': False},
        ]
    }
