import os

# Must be set before roadblock.core.settings is imported.
os.environ["STORAGE_BACKEND"] = "memory"
os.environ["AUTH_MODE"] = "header"

import pytest
from fastapi.testclient import TestClient

from roadblock.main import app
from roadblock.services.proximity import NotifierRegistry, get_notifier_registry
from roadblock.services.storage import MemoryRepository, get_repository, set_repository


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def repository():
    repo = MemoryRepository()
    set_repository(repo)
    yield repo
    set_repository(None)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def client(repository, clock):
    registry = NotifierRegistry(cooldown_seconds=5, clock=clock)
    app.dependency_overrides[get_repository] = lambda: repository
    app.dependency_overrides[get_notifier_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def auth(user_id):
    return {"X-User-ID": user_id}


def incident_payload(**overrides):
    payload = {
        "type": "roadblock",
        "latitude": 13.9100,
        "longitude": -60.9790,
        "imageUrl": "https://example.com/photo.jpg",
        "notes": "Fallen tree",
        "locationName": "John Compton Highway",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def report(client):
    """Create an incident through the API and return its JSON."""
    def _report(user_id="reporter", **overrides):
        resp = client.post("/api/incidents", json=incident_payload(**overrides), headers=auth(user_id))
        assert resp.status_code == 201, resp.text
        return resp.json()
    return _report
