"""Stateful monitoring core: dedup, target resolution, cooldown and the poll loop."""

from .cooldown import CooldownGate
from .dedup import DedupTracker, event_fingerprint, image_fingerprint
from .loop import MonitorLoop
from .meridian import format_short, format_with_clock
from .state import PollState
from .target import (
    TargetInfo,
    TargetSource,
    extract_meridian_flip_hours,
    resolve_current_target,
)

__all__ = [
    "CooldownGate",
    "DedupTracker",
    "MonitorLoop",
    "PollState",
    "TargetInfo",
    "TargetSource",
    "event_fingerprint",
    "extract_meridian_flip_hours",
    "format_short",
    "format_with_clock",
    "image_fingerprint",
    "resolve_current_target",
]
