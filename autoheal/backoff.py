from __future__ import annotations

from dataclasses import dataclass

from .settings import Settings


@dataclass(frozen=True)
class BackoffPolicy:
    base_s: int
    max_s: int
    reset_window_s: int

    @classmethod
    def from_settings(cls, cfg: Settings) -> "BackoffPolicy":
        return cls(base_s=cfg.base_backoff_s, max_s=cfg.max_backoff_s, reset_window_s=cfg.reset_window_s)

    def wait_seconds(self, count: int) -> int:
        """min(max_s, base_s * 2**count), in whole seconds."""
        count = max(0, int(count))
        # base_s >= 1, so any exponent past the bit length of max_s is already capped.
        if count > self.max_s.bit_length():
            return self.max_s
        return min(self.max_s, self.base_s * (2**count))

    def is_stale(self, restart_time: float, now: float) -> bool:
        """A failure history older than the reset window is forgotten."""
        return now >= restart_time + self.reset_window_s
