"""Blur-radius policy and public-location derivation.

The public location of an observation is derived exactly once, when the
record is created. Deriving it again would produce a different random
point and silently move the record between views.
"""
import logging
import math
from typing import Optional

from geoveil.shared.errors import InvalidArgument
from geoveil.shared.models import Coordinate, blur_ring_bounds
from .config import MAX_BLUR_RADIUS_METERS, SENSITIVE_MIN_BLUR_METERS
from .ring_sampler import RingSampler

logger = logging.getLogger(__name__)


class PrivacyPolicy:
    """Decides blur radii and produces public coordinates."""

    def __init__(self, sampler: Optional[RingSampler] = None):
        """Initialize policy.

        Args:
            sampler: Ring sampler (injected for testing)
        """
        self.sampler = sampler or RingSampler()

    def resolve_blur_radius(self, requested: int, sensitive_mode: bool) -> int:
        """Clamp the requested radius and apply the sensitive-location floor.

        Args:
            requested: Radius asked for by the reporter, in meters
            sensitive_mode: Whether the location is flagged sensitive

        Returns:
            Effective radius in [0, 2000], at least 500 when sensitive
        """
        if isinstance(requested, float) and not math.isfinite(requested):
            raise InvalidArgument(f"Requested blur radius must be finite, got {requested}")

        resolved = int(min(MAX_BLUR_RADIUS_METERS, max(0, round(requested))))
        if sensitive_mode and resolved < SENSITIVE_MIN_BLUR_METERS:
            resolved = SENSITIVE_MIN_BLUR_METERS

        if resolved != requested:
            logger.info(
                "BLUR_RADIUS_ADJUSTED",
                extra={
                    "requested": requested,
                    "resolved": resolved,
                    "sensitive_mode": sensitive_mode,
                }
            )
        return resolved

    def derive_public_location(
        self,
        exact: Coordinate,
        blur_radius_meters: int,
    ) -> Coordinate:
        """Produce the public coordinate for an observation.

        Args:
            exact: Reporter's exact coordinate
            blur_radius_meters: Resolved blur radius

        Returns:
            `exact` itself when the radius is 0, otherwise a ring sample in
            [max(1, r/2), r] meters from `exact`

        Raises:
            InvalidArgument: If the radius is outside [0, 2000]
        """
        if not 0 <= blur_radius_meters <= MAX_BLUR_RADIUS_METERS:
            raise InvalidArgument(
                f"Blur radius must be in [0, {MAX_BLUR_RADIUS_METERS}], "
                f"got {blur_radius_meters}"
            )
        if blur_radius_meters == 0:
            return exact

        inner, _ = blur_ring_bounds(blur_radius_meters)
        return self.sampler.sample(exact, inner, blur_radius_meters)
