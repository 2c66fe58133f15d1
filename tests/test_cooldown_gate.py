"""Image notification cooldown gate."""

from __future__ import annotations

import pytest

from spacecat_monitor.monitor.cooldown import CooldownGate


class FakeClock:
    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def test_first_image_is_always_sent() -> None:
    gate = CooldownGate(cooldown_seconds=60, clock=FakeClock())
    assert gate.should_send_now() is True
    assert gate.remaining_seconds() == 0.0


def test_suppresses_inside_window_and_reports_skipped_count() -> None:
    clock = FakeClock(0.0)
    gate = CooldownGate(cooldown_seconds=60, clock=clock)
    assert gate.record_sent() == 0

    clock.now = 30.0
    assert gate.should_send_now() is False
    gate.record_suppressed()
    gate.record_suppressed()
    gate.record_suppressed()
    assert gate.suppressed_count == 3
    assert gate.remaining_seconds() == pytest.approx(30.0)

    clock.now = 61.0
    assert gate.should_send_now() is True
    assert gate.record_sent() == 3
    assert gate.suppressed_count == 0
    assert gate.last_notified_at == 61.0


def test_should_send_now_does_not_mutate() -> None:
    clock = FakeClock(0.0)
    gate = CooldownGate(cooldown_seconds=60, clock=clock)
    gate.record_sent()
    clock.now = 10.0
    gate.record_suppressed()

    for _ in range(5):
        gate.should_send_now()

    assert gate.suppressed_count == 1
    assert gate.last_notified_at == 0.0


def test_window_boundary_allows_send() -> None:
    clock = FakeClock(0.0)
    gate = CooldownGate(cooldown_seconds=60, clock=clock)
    gate.record_sent()
    clock.now = 60.0
    assert gate.should_send_now() is True


def test_zero_cooldown_never_suppresses() -> None:
    clock = FakeClock(5.0)
    gate = CooldownGate(cooldown_seconds=0, clock=clock)
    gate.record_sent()
    assert gate.should_send_now() is True


def test_negative_cooldown_rejected() -> None:
    with pytest.raises(ValueError, match="cooldown_seconds"):
        CooldownGate(cooldown_seconds=-1)
