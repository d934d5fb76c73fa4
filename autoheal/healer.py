from __future__ import annotations

import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from . import db
from .alerts import send_email
from .backoff import BackoffPolicy
from .docker_ops import ContainerRef, DockerGateway, GatewayError
from .runtime import RestartRecord, RestartStore, iso
from .settings import Settings


class Action(str, Enum):
    RESTART = "restart"
    SKIP = "skip"  # restart already in flight
    BACKOFF = "backoff"  # a new wait was scheduled
    WAIT = "wait"  # still inside a scheduled wait


@dataclass(frozen=True)
class Decision:
    action: Action
    reason: str
    wait_s: int | None = None


@dataclass
class PassResult:
    seen: int = 0
    restarted: int = 0
    failed: int = 0
    skipped: int = 0
    waiting: int = 0
    evicted: int = 0
    list_failed: bool = False


class Healer:
    """Restarts unhealthy containers, backing off on the ones that keep failing.

    Per container the record moves through:

      unknown  -> restart now, record created with count 0
      in flight -> skipped
      stale    -> (reset window elapsed) count back to 0, restart now
      tracked  -> schedule wait = policy.wait_seconds(count)
      waiting  -> nothing until the wait elapses, then restart and count += 1

    With rollback_on_failure=False (the default) a failed restart still
    advances the record as if it had succeeded, so a broken restart path is
    retried on the backoff schedule rather than on every pass.
    """

    def __init__(
        self,
        gateway: DockerGateway,
        store: RestartStore,
        cfg: Settings,
        policy: BackoffPolicy | None = None,
        clock: Callable[[], float] = time.time,
        rollback_on_failure: bool = False,
    ):
        self.gateway = gateway
        self.store = store
        self.cfg = cfg
        self.policy = policy or BackoffPolicy.from_settings(cfg)
        self.clock = clock
        self.rollback_on_failure = rollback_on_failure

    def run_pass(self) -> PassResult:
        result = PassResult()
        try:
            containers = self.gateway.list_unhealthy()
        except GatewayError as e:
            db.log_event("ERROR", str(e))
            result.list_failed = True
            containers = []

        for c in containers:
            result.seen += 1
            try:
                decision, ok = self.handle(c)
            except Exception as e:
                result.failed += 1
                db.log_event("ERROR", f"Handling failed: {type(e).__name__}: {e}", c.id, c.name)
                continue
            if decision.action is Action.RESTART:
                if ok:
                    result.restarted += 1
                else:
                    result.failed += 1
            elif decision.action is Action.SKIP:
                result.skipped += 1
            else:
                result.waiting += 1

        if self.cfg.record_ttl_s > 0:
            evicted = self.store.evict(self.clock() - self.cfg.record_ttl_s)
            result.evicted = len(evicted)
            for container_id in evicted:
                db.log_event("INFO", "Forgot restart record: not seen unhealthy within the TTL", container_id=container_id)
        return result

    def handle(self, c: ContainerRef) -> tuple[Decision, bool]:
        """Decide for one container and issue the restart if due.

        Returns (decision, restart_ok). restart_ok is False only for a failed restart.
        """
        now = self.clock()
        with self.store.lock:
            record, created = self.store.find_or_create(c.id, c.name, now)
            before = (record.restart_count, record.restart_time, record.wait_time)
            decision = self.decide(record, created, now)
            if decision.action is not Action.SKIP:
                record.last_seen = now
                record.name = c.name
            if decision.action is Action.RESTART:
                record.restarting = True

        if decision.action is Action.BACKOFF:
            db.log_event(
                "INFO",
                f"Still unhealthy (status: {c.status}); backing off {decision.wait_s}s until {iso(record.wait_time)}",
                c.id,
                c.name,
            )
        elif decision.action is Action.RESTART:
            return decision, self._restart(c, record, decision, before)
        else:
            db.logger.debug("%s: %s", c.name, decision.reason)
        return decision, True

    def decide(self, record: RestartRecord, created: bool, now: float) -> Decision:
        """Apply one observation to `record`. Caller holds the store lock."""
        if created:
            return Decision(Action.RESTART, "first unhealthy observation")

        if record.restarting:
            return Decision(Action.SKIP, "restart already in flight")

        if self.policy.is_stale(record.restart_time, now):
            record.restart_count = 0
            record.restart_time = now
            record.wait_time = None
            return Decision(Action.RESTART, "failure history older than the reset window")

        if record.wait_time is None:
            wait_s = self.policy.wait_seconds(record.restart_count)
            record.wait_time = now + wait_s
            return Decision(Action.BACKOFF, "scheduled backoff", wait_s=wait_s)

        if now < record.wait_time:
            return Decision(Action.WAIT, f"waiting until {iso(record.wait_time)}")

        record.restart_count += 1
        record.restart_time = now
        record.wait_time = None
        return Decision(Action.RESTART, "backoff elapsed")

    def _restart(
        self,
        c: ContainerRef,
        record: RestartRecord,
        decision: Decision,
        before: tuple[int, float, float | None],
    ) -> bool:
        names = ", ".join(c.names) or c.name
        error: GatewayError | None = None
        # The in-flight flag was set by handle(); it must be cleared on every path.
        try:
            db.log_event(
                "WARN",
                f"{names} (status: {c.status}) unhealthy, restarting ({decision.reason}, restart count {record.restart_count})",
                c.id,
                c.name,
            )
            try:
                self.gateway.restart(c.id)
            except GatewayError as e:
                error = e
                if self.rollback_on_failure:
                    with self.store.lock:
                        record.restart_count, record.restart_time, record.wait_time = before
        finally:
            with self.store.lock:
                record.restarting = False

        if error is not None:
            db.log_event("ERROR", str(error), c.id, c.name)
            self._maybe_email(c, str(error))
            return False

        db.log_event("INFO", "Restart issued successfully", c.id, c.name)
        return True

    def _maybe_email(self, c: ContainerRef, msg: str) -> None:
        if not self.cfg.enable_email:
            return
        subject = f"RESTART FAILED: {c.name}"
        body = f"Container: {c.name}\nID: {c.id}\nStatus: {c.status}\nDetail: {msg}"
        send_email(subject, body, self.cfg)
