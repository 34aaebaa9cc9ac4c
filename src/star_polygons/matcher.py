"""
Polygon signature matching.

Compares every image polygon with every catalog polygon edge by edge.
A pair matches when each edge ratio min(a, b) / max(a, b) is at least
the tolerance. The last signature entry is always 1.0 and is skipped.

All passing pairs are returned. Several catalog polygons matching the
same image polygon are all reported; choosing between them is left to
whatever consumes the matches.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging

from tqdm import tqdm

from .polygon import Polygon


logger = logging.getLogger(__name__)

DEFAULT_TOLERANCE = 0.99


@dataclass(frozen=True)
class PolygonMatch:
    """An image polygon and a catalog polygon with similar signatures."""

    image_polygon: Polygon
    catalog_polygon: Polygon
    ratios: Tuple[float, ...]  # Per-edge min/max ratio, last edge excluded

    @property
    def min_ratio(self) -> float:
        return min(self.ratios) if self.ratios else 1.0

    @property
    def mean_ratio(self) -> float:
        return sum(self.ratios) / len(self.ratios) if self.ratios else 1.0

    def vertex_pairs(self) -> List[Tuple[int, int]]:
        """(image star index, catalog star index) for each vertex position."""
        return list(zip(self.image_polygon.vertex_indices,
                        self.catalog_polygon.vertex_indices))


def edge_ratio(a: float, b: float) -> Optional[float]:
    """
    Similarity of two normalized edge lengths.

    Returns:
        min(a, b) / max(a, b), or None when both are zero
    """
    longest = max(a, b)
    if longest == 0.0:
        return None
    return min(a, b) / longest


def compare_signatures(image_signature: Sequence[float],
                       catalog_signature: Sequence[float],
                       tolerance: float = DEFAULT_TOLERANCE) -> Optional[Tuple[float, ...]]:
    """
    Compare two signatures edge by edge.

    Stops at the first edge whose ratio is below `tolerance` (a ratio equal
    to the tolerance passes) or whose lengths are both zero.

    Returns:
        Tuple of per-edge ratios if every compared edge passes, else None
    """
    ratios = []
    for position in range(len(image_signature) - 1):
        ratio = edge_ratio(image_signature[position], catalog_signature[position])
        if ratio is None:
            logger.debug(f"  Degenerate edge {position}: both lengths are zero")
            return None
        if ratio < tolerance:
            return None
        ratios.append(ratio)
    return tuple(ratios)


def match_polygons(
    image_polygons: Sequence[Polygon],
    catalog_polygons: Sequence[Polygon],
    tolerance: float = DEFAULT_TOLERANCE,
    progress: bool = False,
) -> List[PolygonMatch]:
    """
    Find every image/catalog polygon pair whose signatures agree.

    Args:
        image_polygons: Polygons built from image stars
        catalog_polygons: Polygons built from catalog stars
        tolerance: Minimum per-edge ratio, in (0, 1]
        progress: Show a progress bar over image polygons

    Returns:
        All matching pairs, in image-major order

    Raises:
        ValueError: On a tolerance outside (0, 1] or signatures of
            different lengths
    """
    if not 0.0 < tolerance <= 1.0:
        raise ValueError(f"Tolerance must be in (0, 1], got {tolerance}")

    lengths = {len(p.signature) for p in image_polygons}
    lengths.update(len(p.signature) for p in catalog_polygons)
    if len(lengths) > 1:
        raise ValueError(f"Polygons have mixed signature lengths: {sorted(lengths)}")

    matches: List[PolygonMatch] = []
    for image_polygon in tqdm(image_polygons, desc="Matching", disable=not progress):
        for catalog_polygon in catalog_polygons:
            ratios = compare_signatures(
                image_polygon.signature, catalog_polygon.signature, tolerance
            )
            if ratios is None:
                continue
            logger.debug(
                f"Match: image star {image_polygon.anchor_index} <-> "
                f"catalog star {catalog_polygon.anchor_index} ratios {list(ratios)}"
            )
            matches.append(PolygonMatch(
                image_polygon=image_polygon,
                catalog_polygon=catalog_polygon,
                ratios=ratios,
            ))

    logger.info(
        f"Found {len(matches)} matches among "
        f"{len(image_polygons)}x{len(catalog_polygons)} polygon pairs"
    )
    return matches
