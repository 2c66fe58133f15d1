"""Current-target resolution over the untyped sequence tree."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..api.models import Event, TargetCoordinates, TargetStart

TARGET_CONTAINER_SUFFIX = "_Container"
ACTIVE_STATUSES = frozenset({"RUNNING", "Active"})
SYSTEM_CONTAINERS = frozenset(
    {
        "Start",
        "End",
        "Targets",
        "Basic Sequence Startup",
        "Basic Sequence End",
        "Target Imaging Instructions",
        "Parallel End of Sequence Instructions",
    }
)
MERIDIAN_FLIP_TRIGGER = "Meridian Flip_Trigger"
# Pseudo-target announced by sequencer instruction sets; never a real target.
SEQUENTIAL_INSTRUCTION_SET = "Sequential Instruction Set"


class TargetSource(str, Enum):
    SEQUENCE_TREE = "sequence_tree"
    TARGET_START_EVENT = "target_start_event"

    @property
    def label(self) -> str:
        if self is TargetSource.TARGET_START_EVENT:
            return "TS-TARGETSTART event"
        return "Sequence file"


@dataclass(slots=True, frozen=True)
class TargetInfo:
    """Active observation target and where it was learned from."""

    name: str
    source: TargetSource
    coordinates: TargetCoordinates | None = None
    project: str | None = None
    rotation: float | None = None

    @classmethod
    def from_sequence(cls, name: str) -> TargetInfo:
        return cls(name=name, source=TargetSource.SEQUENCE_TREE)

    @classmethod
    def from_target_start(cls, details: TargetStart) -> TargetInfo:
        return cls(
            name=details.target_name,
            source=TargetSource.TARGET_START_EVENT,
            coordinates=details.coordinates,
            project=details.project_name,
            rotation=details.rotation,
        )


def get_str(node: Any, key: str) -> str | None:
    if isinstance(node, dict):
        value = node.get(key)
        if isinstance(value, str):
            return value
    return None


def get_list(node: Any, key: str) -> list[Any]:
    if isinstance(node, dict):
        value = node.get(key)
        if isinstance(value, list):
            return value
    return []


def resolve_current_target(tree: list[Any]) -> str | None:
    """Return the first running target container name in pre-order, if any."""
    return _find_running_target(tree)


def _find_running_target(nodes: list[Any]) -> str | None:
    for node in nodes:
        name = get_str(node, "Name")
        status = get_str(node, "Status")
        if name is not None and status is not None:
            candidate = _candidate_name(name, status)
            if candidate is not None:
                return candidate
            found = _find_running_target(get_list(node, "Items"))
            if found is not None:
                return found
    return None


def _candidate_name(name: str, status: str) -> str | None:
    if status not in ACTIVE_STATUSES or not name.endswith(TARGET_CONTAINER_SUFFIX):
        return None
    stripped = name[: -len(TARGET_CONTAINER_SUFFIX)]
    if not stripped or stripped in SYSTEM_CONTAINERS:
        return None
    return stripped


def extract_meridian_flip_hours(tree: list[Any]) -> float | None:
    """Read ``TimeToFlip`` from the meridian-flip global trigger of the root node."""
    if not tree:
        return None
    for trigger in get_list(tree[0], "GlobalTriggers"):
        if get_str(trigger, "Name") != MERIDIAN_FLIP_TRIGGER:
            continue
        value = trigger.get("TimeToFlip")
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        hours = float(value)
        return hours if math.isfinite(hours) else None
    return None


def latest_target_start(events: list[Event]) -> TargetInfo | None:
    """Most recent real TS-TARGETSTART in ``events``, by event time string."""
    latest: tuple[str, TargetStart] | None = None
    for event in events:
        details = event.details
        if not isinstance(details, TargetStart):
            continue
        if details.target_name == SEQUENTIAL_INSTRUCTION_SET:
            continue
        if latest is None or event.time > latest[0]:
            latest = (event.time, details)
    if latest is None:
        return None
    return TargetInfo.from_target_start(latest[1])
