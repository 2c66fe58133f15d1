"""Fingerprint and dedup tracker behaviour."""

from __future__ import annotations

from spacecat_monitor.api.models import Event, ImageMetadata
from spacecat_monitor.monitor.dedup import DedupTracker, event_fingerprint, image_fingerprint


def _filter_event(previous: str, new: str, time: str = "2025-01-01T21:00:00") -> Event:
    return Event.model_validate(
        {
            "Time": time,
            "Event": "FILTERWHEEL-CHANGED",
            "Previous": {"Name": previous, "Id": 1},
            "New": {"Name": new, "Id": 2},
        }
    )


def test_same_fingerprint_is_new_only_once() -> None:
    tracker = DedupTracker()
    fingerprint = ("2025-01-01T21:00:00", "CAMERA-CONNECTED", "")

    assert tracker.is_new(fingerprint) is True
    assert tracker.is_new(fingerprint) is False
    assert len(tracker) == 1
    assert fingerprint in tracker


def test_event_fingerprint_includes_details() -> None:
    to_red = _filter_event("L", "R")
    to_green = _filter_event("L", "G")

    assert event_fingerprint(to_red) != event_fingerprint(to_green)
    assert event_fingerprint(to_red) == event_fingerprint(_filter_event("L", "R"))


def test_event_fingerprint_without_details() -> None:
    event = Event.model_validate({"Time": "2025-01-01T21:00:00", "Event": "MOUNT-PARKED"})
    assert event_fingerprint(event) == ("2025-01-01T21:00:00", "MOUNT-PARKED", "")


def test_image_fingerprint_uses_date_and_camera() -> None:
    first = ImageMetadata.model_validate(
        {"Date": "2025-01-01T22:00:00", "CameraName": "ZWO ASI2600MM", "ImageType": "LIGHT"}
    )
    same_moment_other_frame = ImageMetadata.model_validate(
        {
            "Date": "2025-01-01T22:00:00",
            "CameraName": "ZWO ASI2600MM",
            "ImageType": "LIGHT",
            "Filter": "Ha",
        }
    )
    other_camera = ImageMetadata.model_validate(
        {"Date": "2025-01-01T22:00:00", "CameraName": "Guide Cam", "ImageType": "LIGHT"}
    )

    assert image_fingerprint(first) == image_fingerprint(same_moment_other_frame)
    assert image_fingerprint(first) != image_fingerprint(other_camera)


def test_fingerprints_snapshot_is_immutable_copy() -> None:
    tracker = DedupTracker()
    tracker.is_new(("a", "b"))
    snapshot = tracker.fingerprints
    tracker.is_new(("c", "d"))

    assert snapshot == frozenset({("a", "b")})
    assert len(tracker.fingerprints) == 2
