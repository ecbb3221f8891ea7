"""Geo-privacy configuration and policy constants.

PrivacyConfig is supplied by the configuration collaborator and treated as
read-only input by the core.
"""
import logging
import math
import os
from dataclasses import dataclass

from geoveil.shared.errors import InvalidPrivacyConfig
from geoveil.shared.models import EARTH_RADIUS_METERS, MAX_BLUR_RADIUS_METERS

logger = logging.getLogger(__name__)


# Blur radius floor in sensitive mode
SENSITIVE_MIN_BLUR_METERS = 500     # Homes, schools, water sources

# Heatmap grid
DEFAULT_CELL_SIZE_DEGREES = 0.01    # Roughly 1.1 km at the equator

DEFAULT_DP_EPSILON = 1.0
DEFAULT_DP_K_MIN = 3

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class PrivacyConfig:
    """Privacy controls for obfuscation and aggregation.

    dp_epsilon and dp_k_min are a heuristic anonymity control. There is no
    per-contributor clamping, so they do not amount to a formal
    differential-privacy guarantee.

    Attributes:
        sensitive_mode: Force at least SENSITIVE_MIN_BLUR_METERS of blur
        dp_epsilon: Laplace noise parameter, scale is 1/epsilon (> 0)
        dp_k_min: Minimum noised count for a heatmap cell to be shown (>= 1)
    """
    sensitive_mode: bool = False
    dp_epsilon: float = DEFAULT_DP_EPSILON
    dp_k_min: int = DEFAULT_DP_K_MIN

    def validate(self) -> "PrivacyConfig":
        """Check epsilon and k.

        Returns:
            self, so calls can be chained

        Raises:
            InvalidPrivacyConfig: If epsilon <= 0 or k < 1
        """
        if not (isinstance(self.dp_epsilon, (int, float))
                and math.isfinite(self.dp_epsilon) and self.dp_epsilon > 0):
            raise InvalidPrivacyConfig(
                f"dp_epsilon must be a finite value > 0, got {self.dp_epsilon}"
            )
        if isinstance(self.dp_k_min, bool) or not isinstance(self.dp_k_min, int) \
                or self.dp_k_min < 1:
            raise InvalidPrivacyConfig(
                f"dp_k_min must be an integer >= 1, got {self.dp_k_min}"
            )
        return self

    @classmethod
    def from_env(cls) -> "PrivacyConfig":
        """Create config from environment variables.

        Environment variables:
            GEOVEIL_SENSITIVE_MODE: true/false (default false)
            GEOVEIL_DP_EPSILON: Laplace epsilon (default 1.0)
            GEOVEIL_DP_K_MIN: k-anonymity floor (default 3)

        Raises:
            InvalidPrivacyConfig: If a value cannot be parsed or is out of range
        """
        try:
            config = cls(
                sensitive_mode=os.getenv("GEOVEIL_SENSITIVE_MODE", "false").strip().lower() in _TRUTHY,
                dp_epsilon=float(os.getenv("GEOVEIL_DP_EPSILON", str(DEFAULT_DP_EPSILON))),
                dp_k_min=int(os.getenv("GEOVEIL_DP_K_MIN", str(DEFAULT_DP_K_MIN))),
            )
        except ValueError as e:
            logger.error(
                "PRIVACY_CONFIG_PARSE_FAILED",
                extra={"error": str(e)}
            )
            raise InvalidPrivacyConfig(f"Unparseable privacy setting: {e}")

        config.validate()
        logger.info(
            "PRIVACY_CONFIG_LOADED",
            extra={
                "sensitive_mode": config.sensitive_mode,
                "dp_epsilon": config.dp_epsilon,
                "dp_k_min": config.dp_k_min,
            }
        )
        return config
