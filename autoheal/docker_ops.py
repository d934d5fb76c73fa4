from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import docker
from docker.errors import DockerException
from requests.exceptions import RequestException

from .settings import Settings


UNHEALTHY_FILTERS: dict[str, Any] = {"health": "unhealthy", "status": "running"}


class GatewayError(Exception):
    pass


@dataclass(frozen=True)
class ContainerRef:
    id: str
    names: tuple[str, ...]
    status: str

    @property
    def name(self) -> str:
        return self.names[0] if self.names else self.id[:12]


def _ref_from_summary(raw: dict[str, Any]) -> ContainerRef:
    # The list endpoint reports names with a leading slash, e.g. "/web-1".
    names = tuple(n.lstrip("/") for n in (raw.get("Names") or []))
    return ContainerRef(id=raw["Id"], names=names, status=raw.get("Status", ""))


class DockerGateway:
    """The only place that talks to the Docker Engine.

    Every call goes through docker-py's HTTP client, whose `timeout` is the
    deadline for each request, so a hung Engine fails the call instead of
    stalling the pass that issued it.
    """

    def __init__(self, cfg: Settings, client: docker.DockerClient | None = None):
        self.label_filter = cfg.label_filter
        if client is not None:
            self._client = client
            return
        try:
            self._client = docker.from_env(version=cfg.docker_api_version, timeout=cfg.call_timeout_s)
        except DockerException as e:
            raise GatewayError(f"Cannot connect to the Docker Engine: {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self._client.ping())
        except (DockerException, RequestException):
            return False

    def list_unhealthy(self) -> list[ContainerRef]:
        filters = dict(UNHEALTHY_FILTERS)
        if self.label_filter:
            filters["label"] = [self.label_filter]
        try:
            raw = self._client.api.containers(all=True, filters=filters)
        except (DockerException, RequestException) as e:
            raise GatewayError(f"Listing unhealthy containers failed: {e}") from e
        return [_ref_from_summary(x) for x in raw]

    def restart(self, container_id: str) -> None:
        try:
            self._client.api.restart(container_id)
        except (DockerException, RequestException) as e:
            raise GatewayError(f"Restarting {container_id[:12]} failed: {e}") from e

    def close(self) -> None:
        self._client.close()
