from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from threading import RLock


def iso(ts: float | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class RestartRecord:
    container_id: str
    name: str
    restart_count: int
    restart_time: float
    restarting: bool = False
    wait_time: float | None = None  # None: no backoff pending
    last_seen: float = 0.0


class RestartStore:
    """In-memory remediation records, one per container ever seen unhealthy.

    Every operation takes `lock`. The lock is re-entrant so a caller can hold
    it across several operations to make a compound update atomic.
    """

    def __init__(self) -> None:
        self.lock = RLock()
        self._records: list[RestartRecord] = []

    def __len__(self) -> int:
        with self.lock:
            return len(self._records)

    def exists(self, container_id: str) -> bool:
        with self.lock:
            return any(r.container_id == container_id for r in self._records)

    def insert(self, container_id: str, initial_count: int, ts: float, name: str = "") -> RestartRecord:
        """Append a record. Does not check for an existing one; see find_or_create."""
        record = RestartRecord(
            container_id=container_id,
            name=name,
            restart_count=initial_count,
            restart_time=ts,
            last_seen=ts,
        )
        with self.lock:
            self._records.append(record)
        return record

    def lookup(self, container_id: str) -> RestartRecord | None:
        """Return the live record; mutate it only while holding `lock`."""
        with self.lock:
            for r in self._records:
                if r.container_id == container_id:
                    return r
            return None

    def lookup_by_name(self, name: str) -> RestartRecord | None:
        with self.lock:
            for r in self._records:
                if r.name == name:
                    return replace(r)
            return None

    def find_or_create(self, container_id: str, name: str, ts: float) -> tuple[RestartRecord, bool]:
        """Atomic exists-then-insert. Returns (record, created)."""
        with self.lock:
            record = self.lookup(container_id)
            if record is not None:
                return record, False
            return self.insert(container_id, 0, ts, name=name), True

    def snapshot(self) -> list[RestartRecord]:
        with self.lock:
            return [replace(r) for r in self._records]

    def evict(self, older_than: float) -> list[str]:
        """Drop idle records last seen before `older_than`. Returns evicted ids."""
        with self.lock:
            keep: list[RestartRecord] = []
            dropped: list[str] = []
            for r in self._records:
                if r.last_seen < older_than and not r.restarting:
                    dropped.append(r.container_id)
                else:
                    keep.append(r)
            self._records = keep
            return dropped
