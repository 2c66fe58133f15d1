"""Typed models for imaging API payloads."""

from __future__ import annotations

import math
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator


class ApiModel(BaseModel):
    """Base model for PascalCase API records; unknown fields are ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class FilterInfo(ApiModel):
    name: str = Field(alias="Name")
    id: int = Field(alias="Id")


class TargetCoordinates(ApiModel):
    ra: float | None = Field(default=None, alias="RA")
    ra_string: str = Field(default="", alias="RAString")
    dec: float | None = Field(default=None, alias="Dec")
    dec_string: str = Field(default="", alias="DecString")
    epoch: str | None = Field(default=None, alias="Epoch")


class FilterWheelChange(ApiModel):
    """Details attached to FILTERWHEEL-CHANGED events."""

    variant: Literal["filter_wheel_change"] = "filter_wheel_change"
    previous: FilterInfo = Field(alias="Previous")
    new: FilterInfo = Field(alias="New")


class TargetStart(ApiModel):
    """Details attached to TS-TARGETSTART events."""

    variant: Literal["target_start"] = "target_start"
    target_name: str = Field(alias="TargetName")
    project_name: str = Field(default="", alias="ProjectName")
    coordinates: TargetCoordinates = Field(default_factory=TargetCoordinates, alias="Coordinates")
    rotation: float = Field(default=0.0, alias="Rotation")
    target_end_time: str | None = Field(default=None, alias="TargetEndTime")


EventDetails = Annotated[FilterWheelChange | TargetStart, Field(discriminator="variant")]

_EVENT_ENVELOPE_KEYS = {"Time", "Event", "time", "kind", "details"}


def _parse_flattened_details(extra: dict[str, Any]) -> FilterWheelChange | TargetStart | None:
    """Match leftover keys to a details variant; malformed details yield None."""
    details_model: type[FilterWheelChange] | type[TargetStart]
    if "New" in extra and "Previous" in extra:
        details_model = FilterWheelChange
    elif "TargetName" in extra:
        details_model = TargetStart
    else:
        return None
    try:
        return details_model.model_validate(extra)
    except ValidationError:
        return None


class Event(ApiModel):
    """One entry of the event history; details are flattened on the wire."""

    time: str = Field(alias="Time")
    kind: str = Field(alias="Event")
    details: EventDetails | None = None

    @model_validator(mode="before")
    @classmethod
    def lift_flattened_details(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "details" in data:
            return data
        extra = {key: value for key, value in data.items() if key not in _EVENT_ENVELOPE_KEYS}
        lifted = {key: value for key, value in data.items() if key in _EVENT_ENVELOPE_KEYS}
        details = _parse_flattened_details(extra)
        if details is not None:
            lifted["details"] = details
        return lifted

    def is_noop_filter_change(self) -> bool:
        """True for filter-wheel changes that report the same filter twice."""
        return (
            self.kind == EventTypes.FILTERWHEEL_CHANGED
            and isinstance(self.details, FilterWheelChange)
            and self.details.new.name == self.details.previous.name
        )

    def is_connection_event(self) -> bool:
        return self.kind.endswith("-CONNECTED") or self.kind.endswith("-DISCONNECTED")


class EventTypes:
    """Event type tags emitted by the imaging API."""

    CAMERA_CONNECTED = "CAMERA-CONNECTED"
    CAMERA_DISCONNECTED = "CAMERA-DISCONNECTED"
    FILTERWHEEL_CONNECTED = "FILTERWHEEL-CONNECTED"
    FILTERWHEEL_DISCONNECTED = "FILTERWHEEL-DISCONNECTED"
    FILTERWHEEL_CHANGED = "FILTERWHEEL-CHANGED"
    MOUNT_CONNECTED = "MOUNT-CONNECTED"
    MOUNT_DISCONNECTED = "MOUNT-DISCONNECTED"
    MOUNT_PARKED = "MOUNT-PARKED"
    MOUNT_UNPARKED = "MOUNT-UNPARKED"
    MOUNT_SLEW = "MOUNT-SLEW"
    MOUNT_BEFORE_FLIP = "MOUNT-BEFORE-FLIP"
    MOUNT_AFTER_FLIP = "MOUNT-AFTER-FLIP"
    FOCUSER_CONNECTED = "FOCUSER-CONNECTED"
    FOCUSER_DISCONNECTED = "FOCUSER-DISCONNECTED"
    FOCUS_START = "FOCUS-START"
    FOCUS_END = "FOCUS-END"
    AUTOFOCUS_FINISHED = "AUTOFOCUS-FINISHED"
    ROTATOR_CONNECTED = "ROTATOR-CONNECTED"
    ROTATOR_DISCONNECTED = "ROTATOR-DISCONNECTED"
    ROTATOR_MOVED = "ROTATOR-MOVED"
    ROTATOR_SYNCED = "ROTATOR-SYNCED"
    GUIDER_CONNECTED = "GUIDER-CONNECTED"
    GUIDER_DISCONNECTED = "GUIDER-DISCONNECTED"
    GUIDER_START = "GUIDER-START"
    GUIDER_DITHER = "GUIDER-DITHER"
    SEQUENCE_START = "SEQUENCE-START"
    SEQUENCE_STOP = "SEQUENCE-STOP"
    SEQUENCE_PAUSE = "SEQUENCE-PAUSE"
    SEQUENCE_RESUME = "SEQUENCE-RESUME"
    SEQUENCE_FINISHED = "SEQUENCE-FINISHED"
    ADV_SEQ_STOP = "ADV-SEQ-STOP"
    EXPOSURE_START = "EXPOSURE-START"
    EXPOSURE_END = "EXPOSURE-END"
    FLAT_DISCONNECTED = "FLAT-DISCONNECTED"
    WEATHER_DISCONNECTED = "WEATHER-DISCONNECTED"
    SWITCH_DISCONNECTED = "SWITCH-DISCONNECTED"
    DOME_DISCONNECTED = "DOME-DISCONNECTED"
    SAFETY_DISCONNECTED = "SAFETY-DISCONNECTED"
    IMAGE_SAVE = "IMAGE-SAVE"
    TS_TARGETSTART = "TS-TARGETSTART"


class ImageMetadata(ApiModel):
    """One entry of the image history."""

    timestamp: str = Field(alias="Date")
    camera_name: str = Field(alias="CameraName")
    image_type: str = Field(alias="ImageType")
    filter: str = Field(default="", alias="Filter")
    exposure_time: float = Field(default=0.0, alias="ExposureTime")
    temperature: float = Field(default=math.nan, alias="Temperature")
    stars: int = Field(default=0, alias="Stars")
    hfr: float = Field(default=math.nan, alias="HFR")
    telescope_name: str = Field(default="", alias="TelescopeName")
    mean: float = Field(default=math.nan, alias="Mean")
    median: float = Field(default=math.nan, alias="Median")
    st_dev: float = Field(default=math.nan, alias="StDev")
    rms_text: str = Field(default="", alias="RmsText")
    gain: int | None = Field(default=None, alias="Gain")
    offset: int | None = Field(default=None, alias="Offset")
    focal_length: float | None = Field(default=None, alias="FocalLength")
    is_bayered: bool = Field(default=False, alias="IsBayered")


class MountInfo(ApiModel):
    """Subset of mount telemetry used in notifications."""

    connected: bool = Field(default=False, alias="Connected")
    right_ascension_string: str = Field(default="", alias="RightAscensionString")
    declination_string: str = Field(default="", alias="DeclinationString")
    altitude_string: str = Field(default="", alias="AltitudeString")
    azimuth_string: str = Field(default="", alias="AzimuthString")
    side_of_pier: str = Field(default="", alias="SideOfPier")
    tracking_enabled: bool = Field(default=False, alias="TrackingEnabled")
    at_park: bool = Field(default=False, alias="AtPark")
    slewing: bool = Field(default=False, alias="Slewing")
    time_to_meridian_flip: float | None = Field(default=None, alias="TimeToMeridianFlip")


def _nan_string_to_float(value: Any) -> Any:
    if isinstance(value, str) and value.strip().lower() == "nan":
        return math.nan
    return value


class FocusPoint(ApiModel):
    position: float = Field(alias="Position")
    value: float = Field(alias="Value")
    error: float = Field(default=0.0, alias="Error")

    coerce_nan = field_validator("value", "error", mode="before")(_nan_string_to_float)


class RSquares(ApiModel):
    quadratic: float = Field(default=math.nan, alias="Quadratic")
    hyperbolic: float = Field(default=math.nan, alias="Hyperbolic")
    left_trend: float = Field(default=math.nan, alias="LeftTrend")
    right_trend: float = Field(default=math.nan, alias="RightTrend")

    coerce_nan = field_validator(
        "quadratic", "hyperbolic", "left_trend", "right_trend", mode="before"
    )(_nan_string_to_float)


class AutofocusResult(ApiModel):
    """Result of the most recent autofocus run."""

    filter: str = Field(default="", alias="Filter")
    auto_focuser_name: str = Field(default="", alias="AutoFocuserName")
    timestamp: str | None = Field(default=None, alias="Timestamp")
    temperature: float = Field(default=math.nan, alias="Temperature")
    method: str = Field(default="", alias="Method")
    fitting: str = Field(default="", alias="Fitting")
    duration: str = Field(default="", alias="Duration")
    initial_focus_point: FocusPoint = Field(alias="InitialFocusPoint")
    calculated_focus_point: FocusPoint = Field(alias="CalculatedFocusPoint")
    measure_points: list[FocusPoint] = Field(default_factory=list, alias="MeasurePoints")
    r_squares: RSquares = Field(default_factory=RSquares, alias="RSquares")

    coerce_nan = field_validator("temperature", mode="before")(_nan_string_to_float)

    def best_r_squared(self) -> float:
        """Highest R² across fittings, ignoring NaN; -inf when none are usable."""
        values = [
            self.r_squares.quadratic,
            self.r_squares.hyperbolic,
            self.r_squares.left_trend,
            self.r_squares.right_trend,
        ]
        finite = [value for value in values if not math.isnan(value)]
        return max(finite) if finite else -math.inf

    def is_successful(self) -> bool:
        return self.calculated_focus_point.error == 0.0 and self.best_r_squared() > 0.8

    def position_change(self) -> int:
        return int(self.calculated_focus_point.position - self.initial_focus_point.position)


class ApiEnvelope(ApiModel):
    """Standard response wrapper around every JSON payload."""

    response: Any = Field(default=None, alias="Response")
    error: str = Field(default="", alias="Error")
    status_code: int = Field(default=200, alias="StatusCode")
    success: bool = Field(default=True, alias="Success")
    type: str = Field(default="", alias="Type")
