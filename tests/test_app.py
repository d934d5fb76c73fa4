from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from autoheal.app import create_app
from autoheal.settings import ConfigError


@pytest.fixture
def client(cfg, gateway, clock):
    app = create_app(cfg, gateway=gateway, start_scheduler=False, clock=clock)
    with TestClient(app) as c:
        yield c


def test_ping(client):
    r = client.get("/ping")
    assert r.status_code == 200
    assert r.text == "pong"


def test_containers_empty(client):
    r = client.get("/containers")
    assert r.status_code == 200
    assert r.json() == {"status": "no value"}


def test_containers_after_a_pass(client, clock):
    clock.now = 0
    client.app.state.healer.run_pass()
    clock.now = 10
    client.app.state.healer.run_pass()

    body = client.get("/containers").json()
    assert len(body) == 1
    assert body[0]["id"] == "c0ffee000001"
    assert body[0]["name"] == "web"
    assert body[0]["restart_count"] == 0
    assert body[0]["restarting"] is False
    assert body[0]["restart_time"] == "1970-01-01T00:00:00Z"
    assert body[0]["wait_until"] == "1970-01-01T00:00:15Z"


def test_container_by_name(client):
    client.app.state.healer.run_pass()

    r = client.get("/container/web")
    assert r.status_code == 200
    assert r.json()["id"] == "c0ffee000001"

    r = client.get("/container/nope")
    assert r.status_code == 200
    assert r.json() == {"container": "nope", "status": "no value"}


def test_events(client):
    client.app.state.healer.run_pass()
    events = client.get("/events", params={"limit": 50, "container": "web"}).json()
    assert events
    assert all(e["container_name"] == "web" for e in events)

    assert client.get("/events", params={"limit": 0}).status_code == 422


def test_settings_endpoint(client, cfg):
    body = client.get("/settings").json()
    assert body["base_backoff_s"] == 5
    assert body["max_backoff_s"] == 60
    assert body["reset_window_s"] == 300
    assert body["docker_api_version"] == cfg.docker_api_version


def test_scheduler_started_and_stopped_with_app(cfg, gateway, clock):
    app = create_app(cfg, gateway=gateway, clock=clock)
    with TestClient(app):
        assert app.state.scheduler.running is True
    assert app.state.scheduler.running is False
    # The app does not own an injected gateway.
    assert gateway.closed is False


def test_invalid_settings_are_fatal(cfg, gateway):
    with pytest.raises(ConfigError):
        create_app(replace(cfg, reset_window_s=0), gateway=gateway)
