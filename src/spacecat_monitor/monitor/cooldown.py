"""Rate limiting for new-image notifications."""

from __future__ import annotations

import time
from collections.abc import Callable


class CooldownGate:
    """Two-phase gate: query with ``should_send_now``, then record the outcome.

    ``should_send_now`` never mutates; callers follow it with exactly one of
    ``record_sent`` or ``record_suppressed``.
    """

    def __init__(
        self,
        cooldown_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if cooldown_seconds < 0:
            raise ValueError("cooldown_seconds must be >= 0.")
        self.cooldown_seconds = cooldown_seconds
        self._clock = clock
        self.last_notified_at: float | None = None
        self.suppressed_count = 0

    def should_send_now(self) -> bool:
        if self.last_notified_at is None:
            return True
        return self._clock() - self.last_notified_at >= self.cooldown_seconds

    def record_sent(self) -> int:
        """Stamp the send time and return the suppressed count, resetting it to 0."""
        self.last_notified_at = self._clock()
        suppressed = self.suppressed_count
        self.suppressed_count = 0
        return suppressed

    def record_suppressed(self) -> None:
        self.suppressed_count += 1

    def remaining_seconds(self) -> float:
        if self.last_notified_at is None:
            return 0.0
        elapsed = self._clock() - self.last_notified_at
        return max(0.0, self.cooldown_seconds - elapsed)
