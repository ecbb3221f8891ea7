"""Laplace noise for heatmap counts.

noised = round(raw - (1/epsilon) * sign(u) * ln(1 - 2|u|)),  u ~ U[-0.5, 0.5)

This is an inverse-CDF Laplace draw with scale 1/epsilon. Contributions
per reporter are not clamped, so the result is a heuristic anonymity
control rather than a proven differential-privacy release.
"""
import logging
import math
from typing import Optional

from geoveil.shared.errors import InvalidPrivacyConfig
from geoveil.shared.utils import RandomSource, default_random_source
from .aggregator import round_half_up

logger = logging.getLogger(__name__)


def _sign(value: float) -> int:
    return (value > 0) - (value < 0)


class LaplaceNoiseMechanism:
    """Adds Laplace(0, 1/epsilon) noise to integer counts."""

    def __init__(
        self,
        epsilon: float,
        random_source: Optional[RandomSource] = None,
    ):
        """Initialize mechanism.

        Args:
            epsilon: Privacy parameter, must be > 0
            random_source: Source of randomness; defaults to the secure source

        Raises:
            InvalidPrivacyConfig: If epsilon is not a positive finite number
        """
        if not (isinstance(epsilon, (int, float)) and math.isfinite(epsilon) and epsilon > 0):
            raise InvalidPrivacyConfig(f"dp_epsilon must be > 0, got {epsilon}")
        self.epsilon = epsilon
        self.scale = 1.0 / epsilon
        self.random_source = random_source or default_random_source()

    def sample_noise(self) -> float:
        """One Laplace draw, before the sign flip applied to counts."""
        u = self.random_source.random() - 0.5
        # ln(0) at u == -0.5; redraw
        while u <= -0.5:
            u = self.random_source.random() - 0.5
        return self.scale * _sign(u) * math.log(1 - 2 * abs(u))

    def noised_count(self, raw_count: int) -> int:
        """Return the noised version of `raw_count`."""
        return round_half_up(raw_count - self.sample_noise())
