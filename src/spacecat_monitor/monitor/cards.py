"""Render monitor notifications as backend-neutral cards."""

from __future__ import annotations

import math
from datetime import datetime

from ..api.models import AutofocusResult, Event, EventTypes, FilterWheelChange, ImageMetadata, MountInfo
from ..chat.base import NotificationCard
from .meridian import format_with_clock
from .target import TargetInfo


class Colors:
    RED = 0xFF0000
    GREEN = 0x00FF00
    BLUE = 0x0000FF
    YELLOW = 0xFFFF00
    PURPLE = 0x800080
    ORANGE = 0xFFA500
    CYAN = 0x00FFFF
    GRAY = 0x808080


EVENT_COLORS: dict[str, int] = {
    EventTypes.CAMERA_CONNECTED: Colors.GREEN,
    EventTypes.CAMERA_DISCONNECTED: Colors.RED,
    EventTypes.FILTERWHEEL_CONNECTED: Colors.BLUE,
    EventTypes.FILTERWHEEL_DISCONNECTED: Colors.RED,
    EventTypes.FILTERWHEEL_CHANGED: Colors.BLUE,
    EventTypes.MOUNT_CONNECTED: Colors.GREEN,
    EventTypes.MOUNT_DISCONNECTED: Colors.RED,
    EventTypes.MOUNT_PARKED: Colors.YELLOW,
    EventTypes.MOUNT_UNPARKED: Colors.YELLOW,
    EventTypes.MOUNT_SLEW: Colors.ORANGE,
    EventTypes.FOCUSER_CONNECTED: Colors.GREEN,
    EventTypes.FOCUSER_DISCONNECTED: Colors.RED,
    EventTypes.FOCUS_START: Colors.PURPLE,
    EventTypes.FOCUS_END: Colors.PURPLE,
    EventTypes.AUTOFOCUS_FINISHED: Colors.PURPLE,
    EventTypes.ROTATOR_CONNECTED: Colors.GREEN,
    EventTypes.ROTATOR_DISCONNECTED: Colors.RED,
    EventTypes.ROTATOR_MOVED: Colors.CYAN,
    EventTypes.ROTATOR_SYNCED: Colors.CYAN,
    EventTypes.GUIDER_CONNECTED: Colors.GREEN,
    EventTypes.GUIDER_DISCONNECTED: Colors.RED,
    EventTypes.GUIDER_START: Colors.BLUE,
    EventTypes.GUIDER_DITHER: Colors.CYAN,
    EventTypes.SEQUENCE_START: Colors.CYAN,
    EventTypes.SEQUENCE_STOP: Colors.ORANGE,
    EventTypes.SEQUENCE_PAUSE: Colors.YELLOW,
    EventTypes.SEQUENCE_RESUME: Colors.CYAN,
    EventTypes.SEQUENCE_FINISHED: Colors.GREEN,
    EventTypes.ADV_SEQ_STOP: Colors.ORANGE,
    EventTypes.EXPOSURE_START: Colors.YELLOW,
    EventTypes.EXPOSURE_END: Colors.GREEN,
    EventTypes.FLAT_DISCONNECTED: Colors.RED,
    EventTypes.WEATHER_DISCONNECTED: Colors.RED,
    EventTypes.SWITCH_DISCONNECTED: Colors.RED,
    EventTypes.DOME_DISCONNECTED: Colors.RED,
    EventTypes.SAFETY_DISCONNECTED: Colors.RED,
    EventTypes.TS_TARGETSTART: Colors.CYAN,
}

IMAGE_TYPE_COLORS: dict[str, int] = {
    "LIGHT": Colors.GREEN,
    "DARK": Colors.GRAY,
    "FLAT": Colors.BLUE,
    "BIAS": Colors.PURPLE,
}

MOUNT_EVENT_STYLES: dict[str, tuple[str, int]] = {
    EventTypes.MOUNT_BEFORE_FLIP: ("🔄 Mount Preparing for Meridian Flip", Colors.ORANGE),
    EventTypes.MOUNT_AFTER_FLIP: ("✅ Mount Meridian Flip Completed", Colors.GREEN),
    EventTypes.MOUNT_PARKED: ("🅿️ Mount Parked", Colors.YELLOW),
}

# Image cards only mention the flip once it is this close.
IMAGE_MERIDIAN_WINDOW_HOURS = 1.0


def event_color(kind: str) -> int:
    """Color for an event type, with substring fallbacks for unknown types."""
    color = EVENT_COLORS.get(kind)
    if color is not None:
        return color
    if "ERROR" in kind:
        return Colors.RED
    if "WARNING" in kind:
        return Colors.ORANGE
    return Colors.GRAY


def event_title(kind: str) -> str:
    if kind == EventTypes.FILTERWHEEL_CHANGED:
        return "🔄 Filter Changed"
    if kind == EventTypes.TS_TARGETSTART:
        return "🎯 Target Started"
    return f"📡 {kind}"


def format_number(value: float) -> str:
    """Shortest plain rendering: whole floats drop their ``.0``."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_fixed(value: float, digits: int) -> str:
    if math.isnan(value):
        return "NaN"
    return f"{value:.{digits}f}"


def add_meridian_field(
    card: NotificationCard,
    meridian_flip_hours: float | None,
    now: datetime | None = None,
) -> None:
    if meridian_flip_hours is not None:
        card.add_field("Meridian Flip In", format_with_clock(meridian_flip_hours, now=now))


def add_mount_fields(card: NotificationCard, mount: MountInfo | None) -> None:
    """Append mount telemetry; nothing when unavailable or disconnected."""
    if mount is None or not mount.connected:
        return
    card.add_field(
        "Mount Position",
        f"RA: {mount.right_ascension_string}\nDec: {mount.declination_string}",
    )
    card.add_field("Alt/Az", f"Alt: {mount.altitude_string}\nAz: {mount.azimuth_string}")
    card.add_field("Pier Side", mount.side_of_pier)
    card.add_field("Tracking", "✅ Enabled" if mount.tracking_enabled else "❌ Disabled")


def _add_target_details(card: NotificationCard, target: TargetInfo) -> None:
    if target.project is not None:
        card.add_field("Project", target.project)
    if target.coordinates is not None:
        card.add_field(
            "Coordinates",
            f"RA: {target.coordinates.ra_string}\nDec: {target.coordinates.dec_string}",
            inline=False,
        )
    if target.rotation is not None:
        card.add_field("Rotation", f"{format_number(target.rotation)}°")


def build_target_card(
    new_target: TargetInfo,
    previous: TargetInfo | None,
    meridian_flip_hours: float | None,
    mount: MountInfo | None,
    now: datetime | None = None,
) -> NotificationCard:
    """Started card when nothing was tracked before, change card otherwise."""
    if previous is None:
        card = NotificationCard(title="🎯 Target Started", color=Colors.GREEN)
        card.add_field("Target", new_target.name, inline=False)
    else:
        card = NotificationCard(title="🎯 Target Change", color=Colors.CYAN)
        card.add_field("Previous Target", previous.name)
        card.add_field("New Target", new_target.name)
    _add_target_details(card, new_target)
    add_meridian_field(card, meridian_flip_hours, now=now)
    add_mount_fields(card, mount)
    return card


def build_event_card(event: Event) -> NotificationCard:
    card = NotificationCard(title=event_title(event.kind), color=event_color(event.kind))
    card.add_field("Time", event.time, inline=False)
    details = event.details
    if isinstance(details, FilterWheelChange):
        card.add_field(
            "Filter Change",
            f"{details.previous.name} → {details.new.name}",
            inline=False,
        )
        card.add_field("Previous", f"{details.previous.name} (ID: {details.previous.id})")
        card.add_field("New", f"{details.new.name} (ID: {details.new.id})")
    return card


def build_mount_event_card(
    event: Event,
    current_target: TargetInfo | None,
    mount: MountInfo | None,
) -> NotificationCard:
    title, color = MOUNT_EVENT_STYLES.get(event.kind, ("🔭 Mount Event", Colors.GRAY))
    card = NotificationCard(title=title, color=color)
    card.add_field("Event", event.kind)
    card.add_field("Time", event.time)
    if current_target is not None:
        card.add_field("Current Target", current_target.name)
    add_mount_fields(card, mount)
    return card


def build_autofocus_card(result: AutofocusResult) -> NotificationCard:
    successful = result.is_successful()
    indicator = "✅" if successful else "⚠️"
    change = result.position_change()
    card = NotificationCard(
        title=f"{indicator} Autofocus Completed",
        color=Colors.GREEN if successful else Colors.ORANGE,
        footer=f"Focuser: {result.auto_focuser_name}",
    )
    card.add_field("Filter", result.filter)
    card.add_field("Method", result.method)
    card.add_field("Duration", result.duration)
    card.add_field("Temperature", f"{format_fixed(result.temperature, 1)}°C")
    card.add_field("Focus Position", format_number(result.calculated_focus_point.position))
    card.add_field("Position Change", f"+{change}" if change > 0 else str(change))
    card.add_field("HFR", format_fixed(result.calculated_focus_point.value, 3))
    card.add_field("R-squared", format_fixed(result.best_r_squared(), 4))
    card.add_field("Measurements", str(len(result.measure_points)))
    return card


def build_image_card(
    image: ImageMetadata,
    current_target: TargetInfo | None,
    skipped: int,
    meridian_flip_hours: float | None,
    now: datetime | None = None,
) -> NotificationCard:
    title = f"📸 New {image.image_type} Frame Captured"
    if skipped > 0:
        title += f" (+{skipped} skipped)"
    card = NotificationCard(
        title=title,
        color=IMAGE_TYPE_COLORS.get(image.image_type, Colors.CYAN),
        footer=f"Telescope: {image.telescope_name}",
    )
    if current_target is not None:
        card.add_field("Target", current_target.name)
    if skipped > 0:
        card.add_field("Images Since Last Post", f"{skipped + 1} images")
    card.add_field("Camera", image.camera_name)
    card.add_field("Tracking RMS", image.rms_text)
    card.add_field("Filter", image.filter)
    card.add_field("Exposure", f"{format_number(image.exposure_time)}s")
    card.add_field("Temperature", f"{format_fixed(image.temperature, 1)}°C")
    card.add_field("Stars", str(image.stars))
    card.add_field("HFR", format_fixed(image.hfr, 2))
    card.add_field("Mean", format_fixed(image.mean, 1))
    card.add_field("Median", format_fixed(image.median, 1))
    card.add_field("StDev", format_fixed(image.st_dev, 1))
    if meridian_flip_hours is not None and meridian_flip_hours <= IMAGE_MERIDIAN_WINDOW_HOURS:
        add_meridian_field(card, meridian_flip_hours, now=now)
    return card


def build_welcome_card(
    current_target: TargetInfo | None,
    events_in_history: int,
    images_in_history: int,
    channel_count: int,
    meridian_flip_hours: float | None,
    mount: MountInfo | None,
    now: datetime | None = None,
) -> NotificationCard:
    card = NotificationCard(
        title="🚀 SpaceCat Observatory Monitor Started",
        color=Colors.GREEN,
        footer="Ready to monitor telescope events and images",
    )
    if current_target is None:
        card.add_field("Current Target", "None detected", inline=False)
    else:
        card.add_field("Current Target", current_target.name, inline=False)
        _add_target_details(card, current_target)
        card.add_field("Target Source", current_target.source.label)
    card.add_field("Events in History", str(events_in_history))
    card.add_field("Images in History", str(images_in_history))
    card.add_field("Chat Services", str(channel_count))
    add_meridian_field(card, meridian_flip_hours, now=now)
    add_mount_fields(card, mount)
    return card
