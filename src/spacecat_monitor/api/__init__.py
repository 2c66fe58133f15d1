"""Imaging API client and payload models."""

from .client import SpaceCatClient
from .models import (
    AutofocusResult,
    Event,
    EventTypes,
    FilterInfo,
    FilterWheelChange,
    ImageMetadata,
    MountInfo,
    TargetCoordinates,
    TargetStart,
)

__all__ = [
    "AutofocusResult",
    "Event",
    "EventTypes",
    "FilterInfo",
    "FilterWheelChange",
    "ImageMetadata",
    "MountInfo",
    "SpaceCatClient",
    "TargetCoordinates",
    "TargetStart",
]
