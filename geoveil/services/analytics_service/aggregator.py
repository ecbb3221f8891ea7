"""Spatial binning of public coordinates into a fixed-degree grid."""
import logging
import math
from collections import Counter
from typing import Dict, Iterable, Tuple

from geoveil.shared.errors import InvalidArgument
from geoveil.shared.models import ObservationRecord
from geoveil.services.geo_privacy.config import DEFAULT_CELL_SIZE_DEGREES
from geoveil.services.geo_privacy.geodesy import normalize_longitude

logger = logging.getLogger(__name__)

CellKey = Tuple[float, float]

# Keeps keys like 5.55 from carrying float noise (5.550000000000001)
_KEY_DECIMALS = 10


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def cell_key_for(latitude: float, longitude: float, cell_size_degrees: float) -> CellKey:
    """Snap a point to the center of its grid cell.

    Longitudes snapped onto 180 wrap to -180 so a cell straddling the
    antimeridian has one key.
    """
    snapped_lon = round(round_half_up(longitude / cell_size_degrees) * cell_size_degrees, _KEY_DECIMALS)
    return (
        round(round_half_up(latitude / cell_size_degrees) * cell_size_degrees, _KEY_DECIMALS),
        round(normalize_longitude(snapped_lon), _KEY_DECIMALS),
    )


class SpatialAggregator:
    """Counts records per grid cell using their public locations only."""

    def __init__(self, cell_size_degrees: float = DEFAULT_CELL_SIZE_DEGREES):
        """Initialize aggregator.

        Args:
            cell_size_degrees: Grid spacing in degrees (> 0)

        Raises:
            InvalidArgument: If the cell size is not a positive finite number
        """
        if not (math.isfinite(cell_size_degrees) and cell_size_degrees > 0):
            raise InvalidArgument(
                f"Cell size must be a finite value > 0, got {cell_size_degrees}"
            )
        self.cell_size_degrees = cell_size_degrees

    def bin(self, records: Iterable[ObservationRecord]) -> Dict[CellKey, int]:
        """Raw occupancy per populated cell.

        Args:
            records: Snapshot of the record set

        Returns:
            Mapping of cell key to count; empty cells are absent
        """
        counts: Counter = Counter()
        for record in records:
            location = record.public_location
            counts[cell_key_for(location.latitude, location.longitude, self.cell_size_degrees)] += 1

        logger.debug(
            "RECORDS_BINNED",
            extra={
                "cell_size_degrees": self.cell_size_degrees,
                "populated_cells": len(counts),
                "record_count": sum(counts.values()),
            }
        )
        return dict(counts)
