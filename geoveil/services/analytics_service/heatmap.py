"""Heatmap pipeline: bin, noise, suppress.

Recomputed from scratch on every query over a caller-supplied snapshot of
records. Two calls with the same records can return different noised
counts; that randomness is the protection.
"""
import logging
from typing import Iterable, List, Optional

from geoveil.shared.models import ObservationRecord
from geoveil.shared.utils import RandomSource
from geoveil.services.geo_privacy.config import DEFAULT_CELL_SIZE_DEGREES, PrivacyConfig
from .aggregator import SpatialAggregator
from .k_anonymity import GridCell, KAnonymityFilter
from .noise import LaplaceNoiseMechanism

logger = logging.getLogger(__name__)


def build_heatmap(
    records: Iterable[ObservationRecord],
    config: PrivacyConfig,
    cell_size_degrees: float = DEFAULT_CELL_SIZE_DEGREES,
    random_source: Optional[RandomSource] = None,
) -> List[GridCell]:
    """Turn public locations into k-anonymous, noised grid cells.

    Args:
        records: Snapshot of observation records
        config: Privacy configuration (epsilon and k)
        cell_size_degrees: Grid spacing in degrees
        random_source: Noise source; defaults to the secure source

    Returns:
        Included cells sorted by cell key; suppressed and empty cells absent

    Raises:
        InvalidPrivacyConfig: If epsilon <= 0 or k < 1
        InvalidArgument: If the cell size is not positive
    """
    config.validate()
    aggregator = SpatialAggregator(cell_size_degrees)
    noise = LaplaceNoiseMechanism(config.dp_epsilon, random_source)
    k_filter = KAnonymityFilter(config.dp_k_min)

    raw_counts = aggregator.bin(records)
    noised = [
        GridCell(
            cell_key=key,
            raw_count=count,
            noised_count=noise.noised_count(count),
        )
        for key, count in sorted(raw_counts.items())
    ]
    cells = k_filter.apply(noised, context=f"heatmap cell_size={cell_size_degrees}")

    logger.info(
        "HEATMAP_BUILT",
        extra={
            "populated_cells": len(raw_counts),
            "included_cells": len(cells),
            "dp_epsilon": config.dp_epsilon,
            "dp_k_min": config.dp_k_min,
        }
    )
    return cells
