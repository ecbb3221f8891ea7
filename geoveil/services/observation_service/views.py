"""Read-side projections of a record for map and distance collaborators.

Public views expose the public location as the marker and draw the blur
circle around the exact location for visual context. The exact location
itself is never returned as a marker in a public view.
"""
from dataclasses import dataclass
from typing import Optional

from geoveil.shared.models import Coordinate, ObservationRecord
from geoveil.services.geo_privacy import distance_meters


@dataclass(frozen=True)
class MapView:
    """What a map renderer may draw for one record.

    Attributes:
        observation_id: Record identifier
        marker: Point to place the pin on
        circle_center: Center of the context circle, None when no circle
        circle_radius_meters: Radius of the context circle, None when no circle
        private_view: Whether this projection reveals the exact location
    """
    observation_id: str
    marker: Coordinate
    circle_center: Optional[Coordinate]
    circle_radius_meters: Optional[float]
    private_view: bool


def map_view(record: ObservationRecord, private_view: bool) -> MapView:
    """Project a record for the map-rendering collaborator.

    Args:
        record: Observation to render
        private_view: True for the reporter's own view

    Returns:
        MapView with marker and optional context circle
    """
    if private_view:
        accuracy = record.exact_location.accuracy_meters
        return MapView(
            observation_id=record.id,
            marker=record.exact_location,
            circle_center=record.exact_location if accuracy is not None else None,
            circle_radius_meters=accuracy,
            private_view=True,
        )

    has_circle = record.blur_radius_meters > 0
    return MapView(
        observation_id=record.id,
        marker=record.public_location,
        circle_center=record.exact_location if has_circle else None,
        circle_radius_meters=float(record.blur_radius_meters) if has_circle else None,
        private_view=False,
    )


def distance_to_record(
    user_location: Coordinate,
    record: ObservationRecord,
    private_view: bool,
) -> float:
    """Meters from the user to the record's exact or public location."""
    target = record.exact_location if private_view else record.public_location
    return distance_meters(user_location, target)
