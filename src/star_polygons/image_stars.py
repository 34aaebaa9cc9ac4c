"""
Stars detected in an image.

Reads SExtractor detections exported to CSV and projects pixel positions
into the angular plane used by polygon building, with a linear plate
scale and no distortion model.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import logging

import numpy as np

from .geometry import arcsec_per_pixel_to_radians
from .polygon import Star


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageStar:
    """Star position in an image."""

    pixel_x: float
    pixel_y: float
    magnitude: float


@dataclass
class Image:
    """Image metadata and its detected stars."""

    width: int
    height: int
    scale_arcsec_per_pixel: float
    star_list: List[ImageStar] = field(default_factory=list)

    def __post_init__(self):
        if self.scale_arcsec_per_pixel <= 0:
            raise ValueError(
                f"Plate scale must be positive, got {self.scale_arcsec_per_pixel}"
            )

    @property
    def scale_rad(self) -> float:
        """Radians per pixel."""
        return arcsec_per_pixel_to_radians(self.scale_arcsec_per_pixel)

    @property
    def fov_deg(self) -> tuple[float, float]:
        """Approximate field of view (width, height) in degrees."""
        scale_deg = self.scale_arcsec_per_pixel / 3600.0
        return (self.width * scale_deg, self.height * scale_deg)

    def to_polygon_stars(self) -> List[Star]:
        return image_stars_to_polygon_stars(self.star_list, self.scale_arcsec_per_pixel)


def read_sextractor_csv(path: Union[str, Path],
                        max_stars: Optional[int] = None) -> List[ImageStar]:
    """
    Read SExtractor detections converted to CSV.

    Args:
        path: CSV file with a header row and columns x, y, mag
        max_stars: Keep only this many of the brightest detections

    Returns:
        Detections sorted by magnitude, brightest first
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detection file not found: {path}")

    data = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    if data.size == 0:
        logger.warning(f"Detection file {path} has no rows")
        return []
    if data.shape[1] < 3:
        raise ValueError(
            f"Detection file {path} needs 3 columns (x, y, mag), found {data.shape[1]}"
        )
    logger.debug(f"Read sextractor > {len(data)} rows from {path}")

    # Stable sort, equal magnitudes keep file order
    order = np.argsort(data[:, 2], kind="stable")
    if max_stars is not None:
        order = order[:max_stars]

    return [
        ImageStar(
            pixel_x=float(data[i, 0]),
            pixel_y=float(data[i, 1]),
            magnitude=float(data[i, 2]),
        )
        for i in order
    ]


def image_stars_to_polygon_stars(star_list: List[ImageStar],
                                 scale_arcsec_per_pixel: float) -> List[Star]:
    """
    Convert image stars to polygon stars using a linear plate scale.

    The resulting angles are relative to the image origin, so they only
    carry the geometry between stars, not a sky position.

    Args:
        star_list: Detected stars
        scale_arcsec_per_pixel: Plate scale

    Returns:
        Stars indexed in `star_list` order
    """
    scale_rad = arcsec_per_pixel_to_radians(scale_arcsec_per_pixel)
    logger.debug(
        f"Image Star to Polygon > Star list:{len(star_list)} "
        f"Scale \"pp:{scale_arcsec_per_pixel} Scale rpp:{scale_rad}"
    )

    stars = []
    for i, image_star in enumerate(star_list):
        star = Star(
            id=i,
            db_id=0,
            ra=0.0,
            dec=0.0,
            ra_rad=image_star.pixel_x * scale_rad,
            dec_rad=image_star.pixel_y * scale_rad,
            magnitude=image_star.magnitude,
        )
        logger.debug(
            f" i:{i} x:{image_star.pixel_x} y:{image_star.pixel_y} "
            f"ra_rad:{star.ra_rad} dec_rad:{star.dec_rad}"
        )
        stars.append(star)
    return stars
