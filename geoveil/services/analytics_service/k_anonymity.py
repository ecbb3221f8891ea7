"""K-anonymity floor for heatmap cells.

A cell is disclosed only when its noised count reaches the configured
minimum. Suppressed cells are dropped from the output entirely so that
their position cannot be read off the result.
"""
import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional

from geoveil.shared.errors import InvalidPrivacyConfig
from geoveil.shared.models import Coordinate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridCell:
    """One heatmap cell.

    Attributes:
        cell_key: (latitude, longitude) of the cell center, in degrees
        raw_count: True number of public points in the cell
        noised_count: Count after Laplace noise
        included: Whether the cell passed the k-anonymity floor
    """
    cell_key: tuple
    raw_count: int
    noised_count: int
    included: bool = False

    def __post_init__(self):
        if self.raw_count < 0:
            raise ValueError(f"Raw count must be >= 0, got {self.raw_count}")

    @property
    def center(self) -> Coordinate:
        return Coordinate(latitude=self.cell_key[0], longitude=self.cell_key[1])

    def display_radius(self, max_radius: float, max_count: int) -> float:
        """Marker radius proportional to the noised count.

        Args:
            max_radius: Radius given to the largest cell
            max_count: Largest noised count in the heatmap

        Returns:
            Radius in the renderer's units, 0 for non-positive counts
        """
        if max_count <= 0 or self.noised_count <= 0:
            return 0.0
        return max_radius * min(1.0, self.noised_count / max_count)


class KAnonymityFilter:
    """Suppresses cells whose noised count falls below k."""

    def __init__(self, k_min: int):
        """Initialize filter.

        Args:
            k_min: Minimum noised count for disclosure (>= 1)

        Raises:
            InvalidPrivacyConfig: If k_min < 1
        """
        if isinstance(k_min, bool) or not isinstance(k_min, int) or k_min < 1:
            raise InvalidPrivacyConfig(f"dp_k_min must be an integer >= 1, got {k_min}")
        self.k_min = k_min

    def passes(self, cell: GridCell) -> bool:
        return cell.noised_count >= self.k_min

    def apply(
        self,
        cells: Iterable[GridCell],
        context: Optional[str] = None,
    ) -> List[GridCell]:
        """Mark passing cells as included and drop the rest.

        Args:
            cells: Noised cells
            context: Description of the query for logging

        Returns:
            Included cells only

        Logs:
            - K_ANONYMITY_SUPPRESSED: When at least one cell is dropped
        """
        kept: List[GridCell] = []
        suppressed = 0
        for cell in cells:
            if self.passes(cell):
                kept.append(replace(cell, included=True))
            else:
                suppressed += 1

        if suppressed:
            logger.info(
                "K_ANONYMITY_SUPPRESSED",
                extra={
                    "suppressed_cells": suppressed,
                    "included_cells": len(kept),
                    "k_min": self.k_min,
                    "context": context,
                }
            )
        return kept
