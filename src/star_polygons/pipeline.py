"""
Polygon matching pipeline.

This module orchestrates a complete run: read the catalog and the image
detections, project the detections, build polygons for both star lists
and match them.
"""

from pathlib import Path
from typing import Callable, List, Optional, Sequence
from dataclasses import dataclass, field
import json
import logging
import time

from .config import Config
from .image_stars import Image, read_sextractor_csv
from .matcher import PolygonMatch, match_polygons
from .polygon import Polygon, Star, find_polygons
from .star_catalog import SkyCone, StarCatalog


logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of a polygon matching run."""

    image_stars: List[Star]
    catalog_stars: List[Star]
    image_polygons: List[Polygon]
    catalog_polygons: List[Polygon]
    matches: List[PolygonMatch]
    processing_time_seconds: float = 0.0
    cardinality: int = 4
    tolerance: float = 0.99
    catalog_headers: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.matches) > 0

    @property
    def num_matches(self) -> int:
        return len(self.matches)

    def to_dict(self) -> dict:
        """JSON-friendly summary including every match."""
        return {
            "cardinality": self.cardinality,
            "tolerance": self.tolerance,
            "num_image_stars": len(self.image_stars),
            "num_catalog_stars": len(self.catalog_stars),
            "num_image_polygons": len(self.image_polygons),
            "num_catalog_polygons": len(self.catalog_polygons),
            "num_matches": self.num_matches,
            "processing_time_seconds": self.processing_time_seconds,
            "matches": [
                {
                    "image_star": m.image_polygon.anchor_index,
                    "catalog_star": m.catalog_polygon.anchor_index,
                    "catalog_db_id": self.catalog_stars[m.catalog_polygon.anchor_index].db_id,
                    "catalog_hip": self.catalog_stars[m.catalog_polygon.anchor_index].hip,
                    "image_vertices": list(m.image_polygon.vertex_indices),
                    "catalog_vertices": list(m.catalog_polygon.vertex_indices),
                    "ratios": list(m.ratios),
                }
                for m in self.matches
            ],
        }

    def save_json(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


class Pipeline:
    """
    Polygon matching between an image star list and a catalog.

    Star lists can come from the files named in the configuration
    (`run`) or be passed in directly (`match_stars`).
    """

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()

    @property
    def cone(self) -> SkyCone:
        cat = self.config.catalog
        return SkyCone(
            ra_center=cat.ra_center_hours,
            dec_center=cat.dec_center_deg,
            radius=cat.radius_deg,
            magnitude_limit=cat.magnitude_limit,
        )

    def load_catalog(self) -> StarCatalog:
        """Read the configured catalog inside the configured cone."""
        cat = self.config.catalog
        if cat.path is None:
            raise ValueError("No catalog path configured")
        return StarCatalog.load(
            cat.path,
            self.cone,
            format=cat.format,
            max_stars=cat.max_stars,
        )

    def load_image(self) -> Image:
        """Read the configured detection file."""
        img = self.config.image
        if img.path is None:
            raise ValueError("No image detection path configured")
        star_list = read_sextractor_csv(img.path, max_stars=img.max_stars)
        return Image(
            width=img.width,
            height=img.height,
            scale_arcsec_per_pixel=img.scale_arcsec_per_pixel,
            star_list=star_list,
        )

    def match_stars(
        self,
        image_stars: Sequence[Star],
        catalog_stars: Sequence[Star],
    ) -> PipelineResult:
        """
        Build polygons for both star lists and match them.

        Args:
            image_stars: Image stars already projected to angles
            catalog_stars: Catalog stars

        Returns:
            PipelineResult with polygons and matches
        """
        start_time = time.time()
        cardinality = self.config.polygon.cardinality
        tolerance = self.config.matching.tolerance
        verbose = self.config.verbose

        image_polygons = find_polygons(image_stars, cardinality, progress=verbose)
        catalog_polygons = find_polygons(catalog_stars, cardinality, progress=verbose)
        matches = match_polygons(
            image_polygons, catalog_polygons, tolerance, progress=verbose
        )

        return PipelineResult(
            image_stars=list(image_stars),
            catalog_stars=list(catalog_stars),
            image_polygons=image_polygons,
            catalog_polygons=catalog_polygons,
            matches=matches,
            processing_time_seconds=time.time() - start_time,
            cardinality=cardinality,
            tolerance=tolerance,
        )

    def run(
        self,
        progress_callback: Optional[Callable[[str, float], None]] = None,
    ) -> PipelineResult:
        """
        Run the complete pipeline from the configured files.

        Args:
            progress_callback: Optional callback for progress updates

        Returns:
            PipelineResult with stars, polygons and matches
        """
        start_time = time.time()

        def report(stage: str, progress: float) -> None:
            if progress_callback:
                progress_callback(stage, progress)
            if self.config.verbose:
                logger.info(f"{stage}: {progress*100:.1f}%")

        # Stage 1: Catalog
        report("Reading catalog", 0.0)
        catalog = self.load_catalog()
        report("Reading catalog", 1.0)

        # Stage 2: Image detections
        report("Reading image stars", 0.0)
        image = self.load_image()
        image_stars = image.to_polygon_stars()
        report("Reading image stars", 1.0)

        logger.info(
            f"{len(image_stars)} image stars, {len(catalog)} catalog stars"
        )

        # Stage 3: Polygons and matching
        report("Matching polygons", 0.0)
        result = self.match_stars(image_stars, catalog.stars)
        result.catalog_headers = list(catalog.headers)
        result.processing_time_seconds = time.time() - start_time
        report("Matching polygons", 1.0)

        if not result.success:
            logger.warning("No polygon matches found")

        output_path = self.config.output.output_path
        if output_path is not None:
            result.save_json(output_path)
            logger.info(f"Saved report to {output_path}")

        return result
