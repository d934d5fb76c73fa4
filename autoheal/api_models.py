from __future__ import annotations

from pydantic import BaseModel, Field

from .runtime import RestartRecord, iso


class RestartRecordOut(BaseModel):
    id: str = Field(..., description="Docker container id")
    name: str = Field(..., description="Container name without the leading '/'")
    restart_count: int = Field(..., ge=0, description="Backoff restarts since the last reset")
    restart_time: str = Field(..., description="UTC time of the most recent restart")
    restarting: bool = Field(False, description="A restart is in flight")
    wait_until: str | None = Field(None, description="Next eligible restart (UTC) while backing off")
    last_seen: str | None = Field(None, description="Last time the container was reported unhealthy")

    @classmethod
    def from_record(cls, r: RestartRecord) -> "RestartRecordOut":
        return cls(
            id=r.container_id,
            name=r.name,
            restart_count=r.restart_count,
            restart_time=iso(r.restart_time) or "",
            restarting=r.restarting,
            wait_until=iso(r.wait_time),
            last_seen=iso(r.last_seen),
        )


class SettingsOut(BaseModel):
    docker_api_version: str
    interval_s: int = Field(..., ge=1)
    base_backoff_s: int = Field(..., ge=1)
    max_backoff_s: int = Field(..., ge=1)
    reset_window_s: int = Field(..., ge=1)
    call_timeout_s: int = Field(..., ge=1)
    max_concurrent_passes: int = Field(..., ge=1)
    record_ttl_s: int = Field(..., ge=0)
    label_filter: str | None = None
