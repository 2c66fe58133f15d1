"""Mutable monitoring state owned by the monitor loop."""

from __future__ import annotations

from dataclasses import dataclass, field

from .cooldown import CooldownGate
from .dedup import DedupTracker
from .target import TargetInfo


@dataclass(slots=True)
class PollState:
    """Everything the loop remembers between ticks. Rebuilt from scratch at startup."""

    image_gate: CooldownGate
    seen_events: DedupTracker = field(default_factory=DedupTracker)
    seen_images: DedupTracker = field(default_factory=DedupTracker)
    current_target: TargetInfo | None = None
    meridian_flip_hours: float | None = None
    # Set after the first successful sequence fetch; later failures go unlogged.
    sequence_seen: bool = False

    @property
    def seen_event_fingerprints(self) -> frozenset[tuple[str, ...]]:
        return self.seen_events.fingerprints

    @property
    def seen_image_fingerprints(self) -> frozenset[tuple[str, ...]]:
        return self.seen_images.fingerprints

    @property
    def last_notified_image_at(self) -> float | None:
        return self.image_gate.last_notified_at

    @property
    def images_suppressed_since_last_notify(self) -> int:
        return self.image_gate.suppressed_count
