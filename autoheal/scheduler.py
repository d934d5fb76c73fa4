from __future__ import annotations

import time
from concurrent.futures import Future, ThreadPoolExecutor
from threading import Event, Lock, Thread
from typing import Callable

from . import db


class Scheduler:
    """Fires `run_pass` every `interval_s` seconds until stopped.

    Passes run on a worker pool so a slow Docker call never delays the timer.
    Passes may overlap; once `max_concurrent` are in flight further ticks are
    skipped until one finishes.
    """

    def __init__(self, run_pass: Callable[[], object], interval_s: float, max_concurrent: int = 4):
        self.run_pass = run_pass
        self.interval_s = max(0.01, float(interval_s))
        self.max_concurrent = max(1, int(max_concurrent))
        self._stop = Event()
        self._thr: Thread | None = None
        self._pool: ThreadPoolExecutor | None = None
        self._lock = Lock()
        self._active = 0
        self.skipped_ticks = 0

    @property
    def running(self) -> bool:
        return self._thr is not None and self._thr.is_alive()

    @property
    def active_passes(self) -> int:
        with self._lock:
            return self._active

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._pool = ThreadPoolExecutor(max_workers=self.max_concurrent, thread_name_prefix="autoheal-pass")
        self._thr = Thread(target=self._loop, name="autoheal-timer", daemon=True)
        self._thr.start()

    def stop(self, wait: bool = True) -> None:
        self._stop.set()
        if self._thr is not None and wait:
            self._thr.join()
        if self._pool is not None:
            self._pool.shutdown(wait=wait)
        self._thr = None
        self._pool = None

    def _loop(self) -> None:
        db.log_event("INFO", f"Autoheal scheduler started (interval {self.interval_s:g}s)")
        next_at = time.monotonic() + self.interval_s
        while not self._stop.wait(max(0.0, next_at - time.monotonic())):
            next_at += self.interval_s
            self.tick()
        db.log_event("INFO", "Autoheal scheduler stopped")

    def tick(self) -> Future | None:
        """Submit one pass, unless the pool is saturated."""
        pool = self._pool
        if pool is None:
            if self._stop.is_set():
                return None
            raise RuntimeError("Scheduler is not started.")
        with self._lock:
            if self._active >= self.max_concurrent:
                self.skipped_ticks += 1
                saturated = True
            else:
                self._active += 1
                saturated = False
        if saturated:
            db.log_event("WARN", f"Skipping tick: {self.max_concurrent} passes still running")
            return None

        try:
            return pool.submit(self._guarded_pass)
        except RuntimeError:
            # Pool shut down between the stop check and submit.
            self._release()
            return None

    def _guarded_pass(self) -> None:
        try:
            self.run_pass()
        except Exception as e:
            db.log_event("ERROR", f"Remediation pass failed: {type(e).__name__}: {e}")
        finally:
            self._release()

    def _release(self) -> None:
        with self._lock:
            self._active -= 1
