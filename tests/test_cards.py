"""Notification card rendering."""

from __future__ import annotations

from datetime import datetime

from spacecat_monitor.api.models import AutofocusResult, Event, ImageMetadata, MountInfo, TargetStart
from spacecat_monitor.monitor import cards
from spacecat_monitor.monitor.cards import Colors
from spacecat_monitor.monitor.target import TargetInfo

NOW = datetime(2025, 1, 1, 22, 0, 0)


def _image(**overrides: object) -> ImageMetadata:
    payload: dict[str, object] = {
        "Date": "2025-01-01T22:00:00",
        "CameraName": "ZWO ASI2600MM Pro",
        "ImageType": "LIGHT",
        "Filter": "Ha",
        "ExposureTime": 300.0,
        "Temperature": -10.04,
        "Stars": 1234,
        "HFR": 2.3456,
        "TelescopeName": "RedCat 51",
        "Mean": 1020.46,
        "Median": 1010.0,
        "StDev": 55.55,
        "RmsText": "0.52\"",
    }
    payload.update(overrides)
    return ImageMetadata.model_validate(payload)


def _mount(connected: bool = True) -> MountInfo:
    return MountInfo.model_validate(
        {
            "Connected": connected,
            "RightAscensionString": "20:59:17",
            "DeclinationString": "+44:31:44",
            "AltitudeString": "61°",
            "AzimuthString": "88°",
            "SideOfPier": "pierWest",
            "TrackingEnabled": False,
        }
    )


def test_event_color_table_and_fallbacks() -> None:
    assert cards.event_color("CAMERA-DISCONNECTED") == Colors.RED
    assert cards.event_color("GUIDER-DITHER") == Colors.CYAN
    assert cards.event_color("SEQUENCE-FINISHED") == Colors.GREEN
    assert cards.event_color("CUSTOM-ERROR-RAISED") == Colors.RED
    assert cards.event_color("SAFETY-WARNING") == Colors.ORANGE
    assert cards.event_color("SOMETHING-NEW") == Colors.GRAY


def test_generic_filter_change_card() -> None:
    event = Event.model_validate(
        {
            "Time": "2025-01-01T21:00:00",
            "Event": "FILTERWHEEL-CHANGED",
            "Previous": {"Name": "L", "Id": 0},
            "New": {"Name": "Ha", "Id": 4},
        }
    )
    card = cards.build_event_card(event)
    assert card.title == "🔄 Filter Changed"
    assert card.color == Colors.BLUE
    assert card.field_value("Filter Change") == "L → Ha"
    assert card.field_value("Previous") == "L (ID: 0)"
    assert card.field_value("New") == "Ha (ID: 4)"


def test_generic_card_title_uses_event_type() -> None:
    card = cards.build_event_card(Event.model_validate({"Time": "t", "Event": "GUIDER-START"}))
    assert card.title == "📡 GUIDER-START"
    assert [f.name for f in card.fields] == ["Time"]


def test_image_card_fields_and_skipped_count() -> None:
    target = TargetInfo.from_sequence("NGC 7000")
    card = cards.build_image_card(
        _image(), current_target=target, skipped=3, meridian_flip_hours=None, now=NOW
    )
    assert card.title == "📸 New LIGHT Frame Captured (+3 skipped)"
    assert card.color == Colors.GREEN
    assert card.footer == "Telescope: RedCat 51"
    assert card.field_value("Target") == "NGC 7000"
    assert card.field_value("Images Since Last Post") == "4 images"
    assert card.field_value("Exposure") == "300s"
    assert card.field_value("Temperature") == "-10.0°C"
    assert card.field_value("HFR") == "2.35"
    assert card.field_value("Mean") == "1020.5"
    assert card.field_value("Meridian Flip In") is None


def test_image_card_without_skips_or_target() -> None:
    card = cards.build_image_card(
        _image(ImageType="FLAT", ExposureTime=1.5),
        current_target=None,
        skipped=0,
        meridian_flip_hours=None,
    )
    assert card.title == "📸 New FLAT Frame Captured"
    assert card.color == Colors.BLUE
    assert card.field_value("Target") is None
    assert card.field_value("Images Since Last Post") is None
    assert card.field_value("Exposure") == "1.5s"


def test_image_card_meridian_only_within_an_hour() -> None:
    near = cards.build_image_card(
        _image(), current_target=None, skipped=0, meridian_flip_hours=0.5, now=NOW
    )
    far = cards.build_image_card(
        _image(), current_target=None, skipped=0, meridian_flip_hours=3.0, now=NOW
    )
    assert near.field_value("Meridian Flip In") == "00:30 (at 22:30:00)"
    assert far.field_value("Meridian Flip In") is None


def test_unknown_image_type_is_cyan() -> None:
    card = cards.build_image_card(
        _image(ImageType="SNAPSHOT"), current_target=None, skipped=0, meridian_flip_hours=None
    )
    assert card.color == Colors.CYAN


def test_target_started_vs_changed() -> None:
    details = TargetStart.model_validate(
        {
            "TargetName": "M33",
            "ProjectName": "Triangulum",
            "Rotation": 45.0,
            "Coordinates": {"RAString": "01:33:50", "DecString": "+30:39:36"},
        }
    )
    new_target = TargetInfo.from_target_start(details)

    started = cards.build_target_card(new_target, None, meridian_flip_hours=2.0, mount=None, now=NOW)
    assert started.title == "🎯 Target Started"
    assert started.color == Colors.GREEN
    assert started.field_value("Target") == "M33"
    assert started.field_value("Project") == "Triangulum"
    assert started.field_value("Coordinates") == "RA: 01:33:50\nDec: +30:39:36"
    assert started.field_value("Rotation") == "45°"
    assert started.field_value("Meridian Flip In") == "02:00 (at 00:00:00)"

    changed = cards.build_target_card(
        new_target, TargetInfo.from_sequence("M31"), meridian_flip_hours=None, mount=_mount()
    )
    assert changed.title == "🎯 Target Change"
    assert changed.color == Colors.CYAN
    assert changed.field_value("Previous Target") == "M31"
    assert changed.field_value("New Target") == "M33"
    assert changed.field_value("Tracking") == "❌ Disabled"


def test_mount_fields_skipped_when_disconnected() -> None:
    event = Event.model_validate({"Time": "t", "Event": "MOUNT-BEFORE-FLIP"})
    card = cards.build_mount_event_card(event, None, _mount(connected=False))
    assert card.title == "🔄 Mount Preparing for Meridian Flip"
    assert card.color == Colors.ORANGE
    assert card.field_value("Mount Position") is None

    parked = cards.build_mount_event_card(
        Event.model_validate({"Time": "t", "Event": "MOUNT-PARKED"}),
        TargetInfo.from_sequence("M1"),
        _mount(),
    )
    assert parked.title == "🅿️ Mount Parked"
    assert parked.field_value("Current Target") == "M1"
    assert parked.field_value("Mount Position") == "RA: 20:59:17\nDec: +44:31:44"
    assert parked.field_value("Alt/Az") == "Alt: 61°\nAz: 88°"
    assert parked.field_value("Pier Side") == "pierWest"


def test_autofocus_card() -> None:
    result = AutofocusResult.model_validate(
        {
            "Filter": "L",
            "AutoFocuserName": "ZWO EAF",
            "Temperature": 3.96,
            "Method": "STARHFR",
            "Duration": "00:01:40",
            "InitialFocusPoint": {"Position": 1000, "Value": 3.0},
            "CalculatedFocusPoint": {"Position": 1025, "Value": 2.1234, "Error": 0},
            "MeasurePoints": [{"Position": 1, "Value": 1.0}] * 9,
            "RSquares": {"Hyperbolic": 0.98766},
        }
    )
    card = cards.build_autofocus_card(result)
    assert card.title == "✅ Autofocus Completed"
    assert card.color == Colors.GREEN
    assert card.footer == "Focuser: ZWO EAF"
    assert card.field_value("Temperature") == "4.0°C"
    assert card.field_value("Focus Position") == "1025"
    assert card.field_value("Position Change") == "+25"
    assert card.field_value("HFR") == "2.123"
    assert card.field_value("R-squared") == "0.9877"
    assert card.field_value("Measurements") == "9"


def test_welcome_card_with_and_without_target() -> None:
    empty = cards.build_welcome_card(None, 4, 10, 2, meridian_flip_hours=None, mount=None)
    assert empty.title == "🚀 SpaceCat Observatory Monitor Started"
    assert empty.footer == "Ready to monitor telescope events and images"
    assert empty.field_value("Current Target") == "None detected"
    assert empty.field_value("Events in History") == "4"
    assert empty.field_value("Images in History") == "10"
    assert empty.field_value("Chat Services") == "2"

    sequenced = cards.build_welcome_card(
        TargetInfo.from_sequence("M42"), 0, 0, 1, meridian_flip_hours=None, mount=None
    )
    assert sequenced.field_value("Target Source") == "Sequence file"
    assert sequenced.field_value("Project") is None
