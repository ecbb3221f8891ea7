"""Shared domain models for the geo-privacy core."""
from .location import EARTH_RADIUS_METERS, Coordinate, check_lat_lon, haversine_meters
from .observation import (
    ALLOWED_TRANSITIONS,
    INNER_RADIUS_RATIO,
    MAX_BLUR_RADIUS_METERS,
    MIN_INNER_RADIUS_METERS,
    Attachments,
    ObservationRecord,
    ObservationStatus,
    StatusChange,
    blur_ring_bounds,
)

__all__ = [
    "EARTH_RADIUS_METERS",
    "Coordinate",
    "check_lat_lon",
    "haversine_meters",
    "ALLOWED_TRANSITIONS",
    "INNER_RADIUS_RATIO",
    "MAX_BLUR_RADIUS_METERS",
    "MIN_INNER_RADIUS_METERS",
    "Attachments",
    "ObservationRecord",
    "ObservationStatus",
    "StatusChange",
    "blur_ring_bounds",
]
