"""Coordinate value type shared by every geo-privacy component.

A Coordinate is immutable: once an observation's exact or public location
is fixed, nothing downstream can move it.
"""
import math
from dataclasses import dataclass
from typing import Any, Dict, Optional

from geoveil.shared.errors import InvalidCoordinate

# Spherical Earth model used by every distance/projection
EARTH_RADIUS_METERS = 6_371_000.0


def check_lat_lon(latitude: float, longitude: float) -> None:
    """Raise InvalidCoordinate unless latitude/longitude are finite and in range."""
    if not (isinstance(latitude, (int, float)) and isinstance(longitude, (int, float))):
        raise InvalidCoordinate(
            f"Latitude/longitude must be numbers, got {latitude!r}, {longitude!r}"
        )
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidCoordinate("Latitude/longitude must be finite")
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinate(f"Latitude must be in [-90, 90], got {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinate(f"Longitude must be in [-180, 180], got {longitude}")


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 point with an optional horizontal accuracy.

    Attributes:
        latitude: Degrees in [-90, 90]
        longitude: Degrees in [-180, 180]
        accuracy_meters: Reported accuracy radius, None when unknown
    """
    latitude: float
    longitude: float
    accuracy_meters: Optional[float] = None

    def __post_init__(self):
        check_lat_lon(self.latitude, self.longitude)
        if self.accuracy_meters is not None and not (
            math.isfinite(self.accuracy_meters) and self.accuracy_meters >= 0
        ):
            raise InvalidCoordinate(
                f"Accuracy must be a finite value >= 0, got {self.accuracy_meters}"
            )

    def to_dict(self, include_accuracy: bool = True) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "latitude": self.latitude,
            "longitude": self.longitude,
        }
        if include_accuracy:
            payload["accuracyMeters"] = self.accuracy_meters
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Coordinate":
        """Build a Coordinate from its serialized form.

        Raises:
            InvalidCoordinate: If a field is missing or out of range
        """
        try:
            latitude = data["latitude"]
            longitude = data["longitude"]
        except (KeyError, TypeError) as e:
            raise InvalidCoordinate(f"Missing coordinate field: {e}")
        return cls(
            latitude=latitude,
            longitude=longitude,
            accuracy_meters=data.get("accuracyMeters"),
        )


def haversine_meters(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates, ignoring accuracy."""
    lat1 = math.radians(a.latitude)
    lat2 = math.radians(b.latitude)
    d_lat = lat2 - lat1
    d_lon = math.radians(b.longitude - a.longitude)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    )
    h = min(1.0, max(0.0, h))
    return 2 * EARTH_RADIUS_METERS * math.atan2(math.sqrt(h), math.sqrt(1 - h))
