"""Fingerprint tracking for events and images already reported."""

from __future__ import annotations

from ..api.models import Event, ImageMetadata

EventFingerprint = tuple[str, str, str]
ImageFingerprint = tuple[str, str]


def event_fingerprint(event: Event) -> EventFingerprint:
    """Identity of an event: time, type tag and serialized details."""
    details = event.details.model_dump_json() if event.details is not None else ""
    return (event.time, event.kind, details)


def image_fingerprint(image: ImageMetadata) -> ImageFingerprint:
    return (image.timestamp, image.camera_name)


class DedupTracker:
    """Insert-and-test set of fingerprints; grows for the life of the process."""

    def __init__(self) -> None:
        self._seen: set[tuple[str, ...]] = set()

    def is_new(self, fingerprint: tuple[str, ...]) -> bool:
        """Record ``fingerprint`` and return True only on its first sighting."""
        if fingerprint in self._seen:
            return False
        self._seen.add(fingerprint)
        return True

    def __contains__(self, fingerprint: object) -> bool:
        return fingerprint in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    @property
    def fingerprints(self) -> frozenset[tuple[str, ...]]:
        return frozenset(self._seen)
