import inspect

import pytest
from fastapi.testclient import TestClient

from api.main import app
import api.routes as routes
from vibecraft.history import InMemoryBackend, MoodHistoryStore
from vibecraft.live import LiveSession

from faces import HAPPY, build_frame


@pytest.fixture
def client(monkeypatch, settings):
    store = MoodHistoryStore(InMemoryBackend())
    monkeypatch.setattr(routes, "store", store)
    monkeypatch.setattr(routes, "settings", settings)
    monkeypatch.setattr(routes, "live_session", LiveSession(store, settings))
    with TestClient(app) as c:
        yield c


def happy_body():
    return build_frame(HAPPY).model_dump()


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200 and r.json() == {"status": "ok"}


def test_history_empty(client):
    r = client.get("/history")
    assert r.status_code == 200
    assert r.json() == []
    s = client.get("/history/summary").json()
    assert s["days"] == 0 and s["dominant"] is None


def test_capture(client):
    r = client.post("/capture", json=happy_body())
    assert r.status_code == 200
    assert r.json() == {"state": "captured", "emotion": "happy"}
    hist = client.get("/history").json()
    assert len(hist) == 1 and hist[0]["happy"] == 1
    assert client.get("/history/summary").json()["dominant"] == "happy"


def test_capture_no_face(client):
    r = client.post("/capture", json={"points": []})
    assert r.status_code == 422
    assert "No face" in r.json()["detail"]
    assert client.get("/history").json() == []


def test_capture_bad_body(client):
    r = client.post("/capture", json={"points": [{"x": "left"}]})
    assert r.status_code == 422


def test_live_cycle(client):
    assert client.post("/live/frame", json=happy_body()).status_code == 409

    r = client.post("/live/start")
    assert r.status_code == 200 and r.json()["status"] == "started"
    assert client.post("/live/start").json()["status"] == "already_running"

    for _ in range(3):
        r = client.post("/live/frame", json=happy_body())
        assert r.status_code == 200
    assert r.json() == {"state": "ready", "emotion": "happy"}

    body = client.get("/live/status").json()
    assert body["running"] is True and body["frames"] == 3 and body["emotion"] == "happy"

    assert client.post("/live/stop").json()["status"] == "stopped"
    assert client.post("/live/stop").json()["status"] == "not_running"
    assert client.get("/live/status").json()["running"] is False
    assert client.get("/history").json()[0]["happy"] == 1


def test_store_handlers_run_in_threadpool():
    # plain def handlers are dispatched to FastAPI's worker threads
    for handler in (routes.history, routes.history_summary, routes.live_frame):
        assert not inspect.iscoroutinefunction(handler)
