"""Annulus sampling around an exact point.

Bearing and radius are each drawn uniformly, so samples are uniform in
(bearing, radius) rather than in area: points sit denser near the inner
radius than an area-uniform annulus sample would. Downstream guarantees
are stated on the distance bounds only, so this distribution is kept.
"""
import logging
import math
from typing import Optional

from geoveil.shared.errors import InvalidArgument
from geoveil.shared.models import Coordinate, check_lat_lon
from geoveil.shared.utils import RandomSource, default_random_source
from .geodesy import TWO_PI, destination

logger = logging.getLogger(__name__)


class RingSampler:
    """Draws a random point inside [min_radius, max_radius] of an origin."""

    def __init__(self, random_source: Optional[RandomSource] = None):
        """Initialize sampler.

        Args:
            random_source: Source of randomness; defaults to the secure source
        """
        self.random_source = random_source or default_random_source()

    def sample(
        self,
        origin: Coordinate,
        min_radius_meters: float,
        max_radius_meters: float,
    ) -> Coordinate:
        """Sample a coordinate in the annulus around `origin`.

        Args:
            origin: Exact coordinate at the ring's center
            min_radius_meters: Inner radius (> 0)
            max_radius_meters: Outer radius (>= min_radius_meters)

        Returns:
            Coordinate whose distance from origin lies in [min, max]

        Raises:
            InvalidCoordinate: If origin is out of range
            InvalidArgument: If the radii are not 0 < min <= max
        """
        check_lat_lon(origin.latitude, origin.longitude)
        if not (math.isfinite(min_radius_meters) and math.isfinite(max_radius_meters)):
            raise InvalidArgument("Ring radii must be finite")
        if min_radius_meters <= 0:
            raise InvalidArgument(
                f"Inner radius must be > 0, got {min_radius_meters}"
            )
        if max_radius_meters < min_radius_meters:
            raise InvalidArgument(
                f"Outer radius {max_radius_meters} is below inner radius "
                f"{min_radius_meters}"
            )

        bearing = self.random_source.random() * TWO_PI
        distance = self.random_source.uniform(min_radius_meters, max_radius_meters)
        # uniform() may round past the upper bound
        distance = min(max_radius_meters, max(min_radius_meters, distance))

        return destination(origin, bearing, distance)
