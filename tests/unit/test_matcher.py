"""
Unit tests for polygon signature matching
"""

import numpy as np
import pytest

from star_polygons.matcher import (
    PolygonMatch,
    compare_signatures,
    edge_ratio,
    match_polygons,
)
from star_polygons.polygon import Polygon, find_polygons


def _polygon(signature, anchor_index=0):
    k = 2
    while k * (k - 1) // 2 < len(signature):
        k += 1
    return Polygon(
        anchor_index=anchor_index,
        vertex_indices=tuple(range(anchor_index, anchor_index + k)),
        signature=tuple(signature),
        centroid=(float(anchor_index), 0.0),
        longest_length=1.0,
    )


class TestEdgeRatio:
    """Test cases for edge_ratio"""

    def test_ratio_is_min_over_max(self):
        assert edge_ratio(0.5, 1.0) == 0.5
        assert edge_ratio(1.0, 0.5) == 0.5
        assert edge_ratio(0.25, 0.25) == 1.0

    def test_both_zero_is_degenerate(self):
        assert edge_ratio(0.0, 0.0) is None

    def test_one_zero(self):
        assert edge_ratio(0.0, 0.3) == 0.0


class TestCompareSignatures:
    """Test cases for compare_signatures"""

    def test_identical_signatures(self):
        ratios = compare_signatures((0.2, 0.5, 0.7, 1.0), (0.2, 0.5, 0.7, 1.0), 0.99)
        assert ratios == (1.0, 1.0, 1.0)

    def test_last_entry_not_compared(self):
        ratios = compare_signatures((0.5, 1.0), (0.5, 0.1), 0.99)
        assert ratios == (1.0,)

    def test_ratio_equal_to_tolerance_passes(self):
        """Rejection uses a strict < comparison"""
        ratios = compare_signatures((0.5, 0.99, 1.0), (0.5, 1.0, 1.0), 0.99)
        assert ratios == (1.0, 0.99)

    def test_ratio_below_tolerance_fails(self):
        assert compare_signatures((0.5, 0.989, 1.0), (0.5, 1.0, 1.0), 0.99) is None
        assert compare_signatures((0.5, 0.99, 1.0), (0.5, 1.0, 1.0), 0.995) is None

    def test_degenerate_edge_fails(self):
        assert compare_signatures((0.0, 0.5, 1.0), (0.0, 0.5, 1.0), 0.01) is None

    def test_zero_against_non_zero_fails(self):
        assert compare_signatures((0.0, 0.5, 1.0), (0.1, 0.5, 1.0), 0.5) is None


class TestMatchPolygons:
    """Test cases for match_polygons"""

    def test_reports_ratio_vector(self):
        image = [_polygon((0.3, 0.6, 1.0))]
        catalog = [_polygon((0.3, 0.6, 1.0), anchor_index=7)]

        matches = match_polygons(image, catalog, 0.99)

        assert len(matches) == 1
        assert isinstance(matches[0], PolygonMatch)
        assert matches[0].image_polygon is image[0]
        assert matches[0].catalog_polygon is catalog[0]
        assert matches[0].ratios == (1.0, 1.0)
        assert matches[0].min_ratio == 1.0
        assert matches[0].vertex_pairs() == [(0, 7), (1, 8), (2, 9)]

    def test_ambiguous_matches_all_reported(self):
        """One image polygon matching two catalog polygons gives two matches"""
        image = [_polygon((0.3, 0.6, 1.0))]
        catalog = [
            _polygon((0.3, 0.6, 1.0), anchor_index=0),
            _polygon((0.1, 0.2, 1.0), anchor_index=3),
            _polygon((0.3, 0.6, 1.0), anchor_index=6),
        ]

        matches = match_polygons(image, catalog, 0.99)

        assert [m.catalog_polygon.anchor_index for m in matches] == [0, 6]

    def test_ambiguous_star_clusters(self, make_stars):
        """Two translated copies of a cluster in the catalog both match"""
        cluster = [(0, 0), (1, 0), (0, 2), (3, 3)]
        catalog_stars = make_stars(cluster + [(x + 100, y + 100) for x, y in cluster])
        image_stars = make_stars([(4 * x, 4 * y) for x, y in cluster])

        catalog_polygons = find_polygons(catalog_stars, 4)
        image_polygons = find_polygons(image_stars, 4)
        matches = match_polygons(image_polygons, catalog_polygons, 0.99)

        assert len(catalog_polygons) == 2
        assert len(image_polygons) == 1
        assert len(matches) == 2
        assert {m.catalog_polygon.anchor_index for m in matches} == {0, 4}

    def test_role_symmetry(self, make_stars, random_points):
        rng = np.random.default_rng(7)
        other = rng.uniform(0.0, 0.05, size=(30, 2))
        a = find_polygons(make_stars(np.vstack([random_points, other])), 4)
        b = find_polygons(make_stars(np.vstack([random_points * 3.0, other * 0.5])), 4)

        forward = {
            (m.image_polygon.anchor_index, m.catalog_polygon.anchor_index)
            for m in match_polygons(a, b, 0.99)
        }
        backward = {
            (m.catalog_polygon.anchor_index, m.image_polygon.anchor_index)
            for m in match_polygons(b, a, 0.99)
        }
        assert forward == backward

    def test_rescaled_star_lists_match(self, make_stars, random_points):
        image_polygons = find_polygons(make_stars(random_points * 3.0), 4)
        catalog_polygons = find_polygons(make_stars(random_points), 4)

        matches = match_polygons(image_polygons, catalog_polygons, 0.99)

        assert len(matches) >= 1
        for m in matches:
            assert all(r >= 0.99 for r in m.ratios)
            assert len(m.ratios) == 5

    def test_unrelated_clouds_do_not_match(self, make_stars, random_points):
        rng = np.random.default_rng(99)
        unrelated = rng.uniform(0.0, 0.05, size=(30, 2))

        image_polygons = find_polygons(make_stars(random_points), 4)
        catalog_polygons = find_polygons(make_stars(unrelated), 4)

        assert compare_signatures(
            image_polygons[0].signature, catalog_polygons[0].signature, 0.99
        ) is None
        matches = match_polygons(image_polygons, catalog_polygons, 0.99)
        assert len(matches) < 0.05 * len(image_polygons) * len(catalog_polygons)

    def test_empty_inputs(self):
        assert match_polygons([], [], 0.99) == []
        assert match_polygons([_polygon((0.5, 1.0))], [], 0.99) == []

    def test_invalid_tolerance(self):
        with pytest.raises(ValueError):
            match_polygons([], [], 0.0)
        with pytest.raises(ValueError):
            match_polygons([], [], 1.5)

    def test_mixed_signature_lengths(self):
        with pytest.raises(ValueError, match="mixed signature lengths"):
            match_polygons([_polygon((0.5, 1.0))], [_polygon((0.2, 0.5, 1.0))], 0.99)
