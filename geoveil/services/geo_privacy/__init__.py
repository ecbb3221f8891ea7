"""Geo-privacy obfuscation: geodesy, ring sampling and blur policy.

Converts an exact coordinate plus a blur radius into a public coordinate
that lies at a bounded, randomized distance from the truth:

- Great-circle distance and destination projection (spherical Earth)
- Annulus sampling with an injectable, secure-by-default random source
- Blur-radius policy with a mandatory floor for sensitive locations
"""

from .config import (
    PrivacyConfig,
    EARTH_RADIUS_METERS,
    MAX_BLUR_RADIUS_METERS,
    SENSITIVE_MIN_BLUR_METERS,
    DEFAULT_CELL_SIZE_DEGREES,
)
from .geodesy import distance_meters, destination
from .ring_sampler import RingSampler
from .privacy_policy import PrivacyPolicy

__all__ = [
    "PrivacyConfig",
    "EARTH_RADIUS_METERS",
    "MAX_BLUR_RADIUS_METERS",
    "SENSITIVE_MIN_BLUR_METERS",
    "DEFAULT_CELL_SIZE_DEGREES",
    "distance_meters",
    "destination",
    "RingSampler",
    "PrivacyPolicy",
]
