"""
Star Polygons
=============

Blind star pattern matching between stars detected in an image and stars
from a reference catalog, using scale-invariant polygon signatures.

Main components:
- geometry: Angle conversions and angular separation
- polygon: Polygon descriptors built from each star's nearest neighbours
- matcher: Edge-by-edge comparison of polygon signatures
- star_catalog: HYG CSV and mini Gaia DR2 catalog readers
- image_stars: SExtractor detection reader and pixel to angle projection
- pipeline: Orchestrate a complete matching run
"""

__version__ = "0.1.0"

from .config import Config
from .pipeline import Pipeline, PipelineResult
from .polygon import Star, Polygon, NeighborWindow, find_polygons, star_distance_rad
from .matcher import PolygonMatch, match_polygons, edge_ratio
from .star_catalog import StarCatalog, SkyCone, read_hyg_catalog, read_gaia_catalog
from .image_stars import Image, ImageStar, read_sextractor_csv, image_stars_to_polygon_stars

__all__ = [
    "Config",
    "Pipeline",
    "PipelineResult",
    "Star",
    "Polygon",
    "NeighborWindow",
    "find_polygons",
    "star_distance_rad",
    "PolygonMatch",
    "match_polygons",
    "edge_ratio",
    "StarCatalog",
    "SkyCone",
    "read_hyg_catalog",
    "read_gaia_catalog",
    "Image",
    "ImageStar",
    "read_sextractor_csv",
    "image_stars_to_polygon_stars",
    "__version__",
]
