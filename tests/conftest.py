"""Shared fixtures for the test suite."""

from typing import Callable, List, Sequence, Tuple

import numpy as np
import pytest

from star_polygons.polygon import Star


def _make_stars(points: Sequence[Tuple[float, float]]) -> List[Star]:
    return [
        Star(id=i, db_id=0, ra=0.0, dec=0.0, ra_rad=float(x), dec_rad=float(y),
             magnitude=float(i))
        for i, (x, y) in enumerate(points)
    ]


@pytest.fixture
def make_stars() -> Callable[[Sequence[Tuple[float, float]]], List[Star]]:
    """Factory for stars at (ra_rad, dec_rad) positions, indexed in order."""
    return _make_stars


@pytest.fixture
def square_stars() -> List[Star]:
    """Unit square plus one distant star."""
    return _make_stars([(0, 0), (1, 0), (0, 1), (1, 1), (10, 10)])


@pytest.fixture
def random_points() -> np.ndarray:
    """30 random positions in a 0.05 rad square."""
    rng = np.random.default_rng(1234)
    return rng.uniform(0.0, 0.05, size=(30, 2))
