import os
import sys
import threading

import pytest

# Ensure project root is importable when the package is not installed.
_project_root = os.path.dirname(os.path.dirname(__file__))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

from autoheal import db
from autoheal.docker_ops import ContainerRef, GatewayError
from autoheal.healer import Healer
from autoheal.runtime import RestartStore
from autoheal.settings import Settings


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


class FakeGateway:
    """Stands in for DockerGateway: a scripted snapshot and a restart log."""

    def __init__(self, containers=None):
        self.containers = list(containers or [])
        self.restarts = []
        self.fail_list = False
        self.fail_restart = set()
        self.closed = False
        self.reachable = True

    def ping(self):
        return self.reachable

    def list_unhealthy(self):
        if self.fail_list:
            raise GatewayError("Listing unhealthy containers failed: connection refused")
        return list(self.containers)

    def restart(self, container_id):
        self.restarts.append(container_id)
        if container_id in self.fail_restart:
            raise GatewayError(f"Restarting {container_id[:12]} failed: 500 Server Error")

    def close(self):
        self.closed = True


class BlockingGateway(FakeGateway):
    """restart() parks until `release` is set, to hold a restart in flight."""

    def __init__(self, containers=None):
        super().__init__(containers)
        self.entered = threading.Event()
        self.release = threading.Event()

    def restart(self, container_id):
        self.entered.set()
        self.release.wait(timeout=5)
        super().restart(container_id)


def unhealthy(cid: str, name: str | None = None) -> ContainerRef:
    return ContainerRef(id=cid, names=(name or f"svc-{cid}",), status="Up 3 minutes (unhealthy)")


@pytest.fixture(autouse=True)
def event_db(tmp_path):
    """Keep every test's event log in its own sqlite file."""
    path = str(tmp_path / "events.db")
    db.use_path(path)
    yield path
    db.use_path(None)


@pytest.fixture
def cfg(event_db):
    return Settings(
        interval_s=1,
        base_backoff_s=5,
        max_backoff_s=60,
        reset_window_s=300,
        call_timeout_s=10,
        max_concurrent_passes=2,
        record_ttl_s=0,
        label_filter=None,
        db_path=event_db,
        enable_email=False,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gateway():
    return FakeGateway([unhealthy("c0ffee000001", "web")])


@pytest.fixture
def store():
    return RestartStore()


@pytest.fixture
def healer(gateway, store, cfg, clock):
    return Healer(gateway, store, cfg, clock=clock)
