from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import Any, Callable

from fastapi import FastAPI, Query
from fastapi.responses import PlainTextResponse

from . import db
from .api_models import RestartRecordOut, SettingsOut
from .docker_ops import DockerGateway
from .healer import Healer
from .runtime import RestartStore
from .scheduler import Scheduler
from .settings import Settings, settings as default_settings


NO_VALUE = {"status": "no value"}


def create_app(
    cfg: Settings | None = None,
    gateway: DockerGateway | None = None,
    start_scheduler: bool = True,
    clock: Callable[[], float] = time.time,
) -> FastAPI:
    """Wire store, healer and scheduler behind a read-only status API.

    Without a gateway one is built from `cfg` at startup; a GatewayError there
    aborts startup.
    """
    cfg = cfg or default_settings
    cfg.validate()
    db.use_path(cfg.db_path)
    db.init_db()

    store = RestartStore()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        gw = gateway or DockerGateway(cfg)
        healer = Healer(gw, store, cfg, clock=clock)
        scheduler = Scheduler(healer.run_pass, cfg.interval_s, cfg.max_concurrent_passes)
        app.state.healer = healer
        app.state.scheduler = scheduler
        db.log_event(
            "INFO",
            f"Autoheal ready: interval {cfg.interval_s}s, backoff {cfg.base_backoff_s}s..{cfg.max_backoff_s}s, "
            f"reset window {cfg.reset_window_s}s, Docker API {cfg.docker_api_version}",
        )
        if start_scheduler:
            scheduler.start()
        try:
            yield
        finally:
            scheduler.stop(wait=False)
            if gateway is None:
                gw.close()

    app = FastAPI(title="Autoheal", lifespan=lifespan)
    app.state.store = store

    @app.get("/ping", response_class=PlainTextResponse)
    def ping() -> str:
        return "pong"

    @app.get("/containers")
    def list_containers() -> Any:
        records = store.snapshot()
        if not records:
            return NO_VALUE
        return [RestartRecordOut.from_record(r) for r in records]

    @app.get("/container/{name}")
    def get_container(name: str) -> Any:
        record = store.lookup_by_name(name)
        if record is None:
            return {"container": name, **NO_VALUE}
        return RestartRecordOut.from_record(record)

    @app.get("/events")
    def events(limit: int = Query(100, ge=1, le=1000), container: str | None = None) -> list[dict[str, Any]]:
        return db.latest_events(limit=limit, container_name=container)

    @app.get("/settings", response_model=SettingsOut)
    def effective_settings() -> SettingsOut:
        return SettingsOut(
            docker_api_version=cfg.docker_api_version,
            interval_s=cfg.interval_s,
            base_backoff_s=cfg.base_backoff_s,
            max_backoff_s=cfg.max_backoff_s,
            reset_window_s=cfg.reset_window_s,
            call_timeout_s=cfg.call_timeout_s,
            max_concurrent_passes=cfg.max_concurrent_passes,
            record_ttl_s=cfg.record_ttl_s,
            label_filter=cfg.label_filter,
        )

    return app
