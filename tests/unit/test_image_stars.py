"""
Unit tests for image detections and projection
"""

import math

import pytest

from star_polygons.image_stars import (
    Image,
    ImageStar,
    image_stars_to_polygon_stars,
    read_sextractor_csv,
)


@pytest.fixture
def detections_path(tmp_path):
    path = tmp_path / "detections.csv"
    path.write_text(
        "x,y,mag\n"
        "100.5,200.25,12.0\n"
        "10.0,20.0,9.5\n"
        "400.0,50.0,11.0\n"
        "5.0,5.0,9.5\n"
    )
    return path


class TestReadSextractorCsv:
    """Test cases for read_sextractor_csv"""

    def test_sorted_brightest_first(self, detections_path):
        stars = read_sextractor_csv(detections_path)

        assert [s.magnitude for s in stars] == [9.5, 9.5, 11.0, 12.0]
        # Equal magnitudes keep file order
        assert stars[0] == ImageStar(pixel_x=10.0, pixel_y=20.0, magnitude=9.5)
        assert stars[1] == ImageStar(pixel_x=5.0, pixel_y=5.0, magnitude=9.5)

    def test_max_stars(self, detections_path):
        stars = read_sextractor_csv(detections_path, max_stars=2)
        assert len(stars) == 2
        assert all(s.magnitude == 9.5 for s in stars)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_sextractor_csv(tmp_path / "missing.csv")

    def test_too_few_columns(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("x,y\n1.0,2.0\n")
        with pytest.raises(ValueError, match="3 columns"):
            read_sextractor_csv(path)

    def test_malformed_row(self, tmp_path):
        path = tmp_path / "bad.csv"
        path.write_text("x,y,mag\n1.0,abc,2.0\n")
        with pytest.raises(ValueError):
            read_sextractor_csv(path)


class TestProjection:
    """Test cases for pixel to angle projection"""

    def test_linear_scale(self):
        star_list = [ImageStar(10.0, 20.0, 5.0), ImageStar(0.0, 3.0, 6.0)]
        stars = image_stars_to_polygon_stars(star_list, 3600.0)

        one_degree = math.radians(1.0)
        assert stars[0].ra_rad == pytest.approx(10.0 * one_degree)
        assert stars[0].dec_rad == pytest.approx(20.0 * one_degree)
        assert stars[1].ra_rad == 0.0
        assert [s.id for s in stars] == [0, 1]
        assert all(s.db_id == 0 and s.ra == 0.0 and s.dec == 0.0 for s in stars)
        assert [s.magnitude for s in stars] == [5.0, 6.0]

    def test_image_wrapper(self):
        image = Image(
            width=1000,
            height=500,
            scale_arcsec_per_pixel=36.0,
            star_list=[ImageStar(100.0, 0.0, 1.0)],
        )
        assert image.fov_deg == pytest.approx((10.0, 5.0))
        assert image.scale_rad == pytest.approx(math.radians(0.01))
        assert image.to_polygon_stars()[0].ra_rad == pytest.approx(math.radians(1.0))

    def test_invalid_scale(self):
        with pytest.raises(ValueError):
            Image(width=10, height=10, scale_arcsec_per_pixel=0.0)
