"""Analytics Service: k-anonymous heatmaps over public locations.

Pipeline:
- Bin public coordinates into a fixed-degree grid
- Add Laplace noise (scale 1/epsilon) to each populated cell's count
- Drop cells whose noised count is below dp_k_min
"""

from .aggregator import SpatialAggregator, cell_key_for
from .noise import LaplaceNoiseMechanism
from .k_anonymity import GridCell, KAnonymityFilter
from .heatmap import build_heatmap

__all__ = [
    "SpatialAggregator",
    "cell_key_for",
    "LaplaceNoiseMechanism",
    "GridCell",
    "KAnonymityFilter",
    "build_heatmap",
]
