"""Great-circle geometry on a spherical Earth.

Pure functions, no state. Accuracy on the sphere is well within the
meter-level tolerance the blur-radius bounds need.
"""
import math

from geoveil.shared.errors import InvalidArgument
from geoveil.shared.models import EARTH_RADIUS_METERS, Coordinate, check_lat_lon, haversine_meters

TWO_PI = 2.0 * math.pi


def distance_meters(a: Coordinate, b: Coordinate) -> float:
    """Haversine distance between two coordinates.

    Args:
        a: First coordinate
        b: Second coordinate

    Returns:
        Distance in meters (accuracy is ignored)
    """
    return haversine_meters(a, b)


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return (longitude + 540.0) % 360.0 - 180.0


def destination(
    origin: Coordinate,
    bearing_radians: float,
    distance_meters: float,
) -> Coordinate:
    """Point reached by travelling `distance_meters` from `origin` on a bearing.

    Args:
        origin: Starting coordinate
        bearing_radians: Initial bearing clockwise from north, taken modulo 2π
        distance_meters: Great-circle distance to travel (>= 0)

    Returns:
        New Coordinate without accuracy information

    Raises:
        InvalidArgument: If distance is negative or bearing/distance not finite
        InvalidCoordinate: If origin latitude/longitude are out of range
    """
    check_lat_lon(origin.latitude, origin.longitude)
    if not math.isfinite(bearing_radians):
        raise InvalidArgument(f"Bearing must be finite, got {bearing_radians}")
    if not math.isfinite(distance_meters) or distance_meters < 0:
        raise InvalidArgument(
            f"Distance must be a finite value >= 0, got {distance_meters}"
        )

    theta = bearing_radians % TWO_PI
    delta = distance_meters / EARTH_RADIUS_METERS
    lat1 = math.radians(origin.latitude)
    lon1 = math.radians(origin.longitude)

    sin_lat2 = (
        math.sin(lat1) * math.cos(delta)
        + math.cos(lat1) * math.sin(delta) * math.cos(theta)
    )
    sin_lat2 = min(1.0, max(-1.0, sin_lat2))
    lat2 = math.asin(sin_lat2)
    lon2 = lon1 + math.atan2(
        math.sin(theta) * math.sin(delta) * math.cos(lat1),
        math.cos(delta) - math.sin(lat1) * sin_lat2,
    )

    latitude = min(90.0, max(-90.0, math.degrees(lat2)))
    return Coordinate(
        latitude=latitude,
        longitude=normalize_longitude(math.degrees(lon2)),
    )
