"""Tests for the bin -> noise -> suppress heatmap pipeline.

Noise makes single calls non-deterministic, so suppression behavior is
checked over many trials with wide margins.
"""
from datetime import datetime, timezone

import pytest

from geoveil.shared.errors import InvalidArgument, InvalidPrivacyConfig
from geoveil.shared.models import Coordinate, ObservationRecord
from geoveil.shared.utils import SeededRandomSource
from geoveil.services.analytics_service.heatmap import build_heatmap
from geoveil.services.geo_privacy import PrivacyConfig, destination

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)
TRIALS = 1000


def records_in_cell(count, latitude, longitude, prefix="r"):
    """Records whose public locations all fall in the same 0.01-degree cell."""
    records = []
    for i in range(count):
        public = Coordinate(
            latitude=latitude + 0.0001 * (i % 3),
            longitude=longitude - 0.0001 * (i % 2),
        )
        records.append(ObservationRecord(
            id=f"{prefix}{i}",
            created_at=CREATED,
            exact_location=destination(public, 0.0, 400.0),
            blur_radius_meters=500,
            public_location=public,
        ))
    return records


def inclusion_rate(records, config, key):
    source = SeededRandomSource(seed=1234)
    hits = 0
    for _ in range(TRIALS):
        cells = build_heatmap(records, config, random_source=source)
        if any(c.cell_key == key for c in cells):
            hits += 1
    return hits / TRIALS


class TestSuppression:
    def test_cell_of_five_usually_included(self):
        config = PrivacyConfig(dp_epsilon=1.0, dp_k_min=3)
        records = records_in_cell(5, 5.55, -0.19)

        # P(include) = 1 - exp(-2.5) / 2 ~ 0.96
        assert inclusion_rate(records, config, (5.55, -0.19)) > 0.9

    def test_cell_of_two_usually_excluded(self):
        config = PrivacyConfig(dp_epsilon=1.0, dp_k_min=3)
        records = records_in_cell(2, 5.55, -0.19)

        # P(include) = exp(-0.5) / 2 ~ 0.30
        rate = inclusion_rate(records, config, (5.55, -0.19))
        assert rate < 0.5
        assert 0.2 < rate < 0.4

    def test_empty_cells_never_appear(self):
        config = PrivacyConfig(dp_epsilon=1.0, dp_k_min=1)
        records = records_in_cell(4, 5.55, -0.19) + records_in_cell(4, 5.60, -0.19, prefix="s")
        source = SeededRandomSource(seed=8)

        for _ in range(200):
            keys = {c.cell_key for c in build_heatmap(records, config, random_source=source)}
            assert keys <= {(5.55, -0.19), (5.6, -0.19)}

    def test_no_records_no_cells(self):
        assert build_heatmap([], PrivacyConfig()) == []

    def test_included_cells_flagged_and_meet_k(self):
        config = PrivacyConfig(dp_epsilon=1.0, dp_k_min=3)
        records = records_in_cell(30, 5.55, -0.19)
        source = SeededRandomSource(seed=77)

        for _ in range(100):
            for c in build_heatmap(records, config, random_source=source):
                assert c.included is True
                assert c.noised_count >= 3
                assert c.raw_count == 30


class TestPipeline:
    def test_bins_on_public_location(self):
        public = Coordinate(latitude=5.55, longitude=-0.19)
        # 900 m north puts the exact point in the 5.56 row
        exact = destination(public, 0.0, 900.0)
        records = [
            ObservationRecord(
                id=f"p{i}",
                created_at=CREATED,
                exact_location=exact,
                blur_radius_meters=1000,
                public_location=public,
            )
            for i in range(50)
        ]

        cells = build_heatmap(records, PrivacyConfig(dp_epsilon=5.0, dp_k_min=1),
                              random_source=SeededRandomSource(seed=3))

        assert [c.cell_key for c in cells] == [(5.55, -0.19)]

    def test_output_sorted_by_cell_key(self):
        records = (
            records_in_cell(40, 5.60, -0.19, prefix="a")
            + records_in_cell(40, 5.55, -0.20, prefix="b")
            + records_in_cell(40, 5.55, -0.19, prefix="c")
        )
        cells = build_heatmap(records, PrivacyConfig(dp_epsilon=5.0, dp_k_min=1),
                              random_source=SeededRandomSource(seed=4))

        keys = [c.cell_key for c in cells]
        assert keys == sorted(keys)
        assert len(keys) == 3

    def test_custom_cell_size(self):
        records = records_in_cell(20, 5.55, -0.19) + records_in_cell(20, 5.60, -0.19, prefix="s")
        cells = build_heatmap(records, PrivacyConfig(dp_epsilon=5.0, dp_k_min=1),
                              cell_size_degrees=1.0,
                              random_source=SeededRandomSource(seed=6))

        assert len(cells) == 1
        assert cells[0].cell_key == (6.0, 0.0)
        assert cells[0].raw_count == 40

    def test_repeated_calls_can_differ(self):
        records = records_in_cell(50, 5.55, -0.19)
        config = PrivacyConfig(dp_epsilon=0.5, dp_k_min=1)
        source = SeededRandomSource(seed=10)

        counts = {
            build_heatmap(records, config, random_source=source)[0].noised_count
            for _ in range(30)
        }
        assert len(counts) > 1


class TestValidation:
    def test_non_positive_epsilon(self):
        with pytest.raises(InvalidPrivacyConfig):
            build_heatmap([], PrivacyConfig(dp_epsilon=0.0))

    def test_non_positive_k(self):
        with pytest.raises(InvalidPrivacyConfig):
            build_heatmap([], PrivacyConfig(dp_k_min=0))

    def test_bad_cell_size(self):
        with pytest.raises(InvalidArgument):
            build_heatmap([], PrivacyConfig(), cell_size_degrees=0.0)
