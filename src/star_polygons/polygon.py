"""
Polygon descriptors for blind star pattern matching.

Every star in a list is the anchor of one polygon: the anchor plus its
K-1 closest neighbours. The pairwise edge lengths of those K stars,
sorted and divided by the longest edge, form a scale-invariant signature
that can be compared between an image star list and a catalog star list.

Distances use a square-root taxicab pseudo-metric instead of a great
circle or Euclidean distance:

    d(A, B) = sqrt(|A.ra - B.ra|) + sqrt(|A.dec - B.dec|)

Image and catalog signatures are only comparable when both sides are
built with exactly this formula.
"""

from bisect import bisect_right
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple
import logging
import math

from tqdm import tqdm


logger = logging.getLogger(__name__)

DEFAULT_CARDINALITY = 4


@dataclass(frozen=True)
class Star:
    """A star position used for polygon building (catalog or image)."""

    id: int  # Index in its source list, identity within one run
    db_id: int  # Catalog identifier (0 for image stars)
    ra: float  # Right ascension in hours (0.0 for image stars)
    dec: float  # Declination in degrees (0.0 for image stars)
    ra_rad: float  # Planar x angle (radians)
    dec_rad: float  # Planar y angle (radians)
    magnitude: float  # Lower is brighter
    hip: int = 0  # Hipparcos number for HYG stars, 0 when unknown

    @property
    def position(self) -> Tuple[float, float]:
        return (self.ra_rad, self.dec_rad)


@dataclass(frozen=True)
class Polygon:
    """
    Scale-invariant geometric signature anchored at one star.

    Attributes:
        anchor_index: Index of the star the polygon is built around
        vertex_indices: K star indices, anchor first, then neighbours by
            increasing distance
        signature: C(K, 2) edge lengths, ascending, divided by the longest
            edge so the last entry is 1.0
        centroid: Mean (ra_rad, dec_rad) of the vertices, used to detect
            duplicate polygons
        longest_length: Longest edge before normalization
    """

    anchor_index: int
    vertex_indices: Tuple[int, ...]
    signature: Tuple[float, ...]
    centroid: Tuple[float, float]
    longest_length: float

    @property
    def cardinality(self) -> int:
        return len(self.vertex_indices)


NeighborSearch = Callable[[Sequence[Star], int, int], List[Tuple[float, int]]]


def star_distance_rad(star_a: Star, star_b: Star) -> float:
    """Square-root taxicab distance between two stars."""
    return (math.sqrt(abs(star_b.ra_rad - star_a.ra_rad)) +
            math.sqrt(abs(star_b.dec_rad - star_a.dec_rad)))


class NeighborWindow:
    """
    Fixed-capacity list of the closest stars seen so far.

    Entries stay sorted by distance. A new entry goes in front of the first
    entry it is strictly closer than, so on equal distances the star seen
    first keeps its place. When the window overflows, the farthest entry
    is evicted.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError(f"Window capacity must be at least 1, got {capacity}")
        self.capacity = capacity
        self._distances: List[float] = []
        self._indices: List[int] = []

    def insert(self, distance: float, index: int) -> bool:
        """
        Offer a candidate to the window.

        Returns:
            True if the candidate was kept
        """
        position = bisect_right(self._distances, distance)
        if position >= self.capacity:
            return False

        self._distances.insert(position, distance)
        self._indices.insert(position, index)

        if len(self._distances) > self.capacity:
            self._distances.pop()
            self._indices.pop()
        return True

    @property
    def indices(self) -> List[int]:
        return list(self._indices)

    @property
    def distances(self) -> List[float]:
        return list(self._distances)

    def items(self) -> List[Tuple[float, int]]:
        return list(zip(self._distances, self._indices))

    def is_full(self) -> bool:
        return len(self._indices) == self.capacity

    def __len__(self) -> int:
        return len(self._indices)


def brute_force_neighbors(stars: Sequence[Star], anchor_index: int,
                          count: int) -> List[Tuple[float, int]]:
    """
    Find the `count` closest stars to an anchor with a full scan.

    Returns:
        (distance, index) pairs sorted by increasing distance
    """
    anchor = stars[anchor_index]
    window = NeighborWindow(count)
    for index, star in enumerate(stars):
        if index == anchor_index:
            continue
        window.insert(star_distance_rad(anchor, star), index)
    return window.items()


def validate_stars(stars: Sequence[Star]) -> None:
    """
    Reject stars with non-finite coordinates.

    Raises:
        ValueError: If any star has a NaN or infinite ra_rad/dec_rad
    """
    for index, star in enumerate(stars):
        if not (math.isfinite(star.ra_rad) and math.isfinite(star.dec_rad)):
            raise ValueError(
                f"Star at index {index} (id {star.id}) has non-finite "
                f"coordinates: ra_rad={star.ra_rad}, dec_rad={star.dec_rad}"
            )


def polygon_centroid(stars: Sequence[Star],
                     vertex_indices: Sequence[int]) -> Tuple[float, float]:
    center_ra_rad = 0.0
    center_dec_rad = 0.0
    for index in vertex_indices:
        center_ra_rad += stars[index].ra_rad
        center_dec_rad += stars[index].dec_rad
    count = len(vertex_indices)
    return (center_ra_rad / count, center_dec_rad / count)


def edge_lengths(stars: Sequence[Star],
                 vertex_indices: Sequence[int]) -> List[float]:
    """Distances between every pair of vertices, in (i, j > i) order."""
    lengths = []
    for i in range(len(vertex_indices) - 1):
        star_a = stars[vertex_indices[i]]
        for j in range(i + 1, len(vertex_indices)):
            star_b = stars[vertex_indices[j]]
            length = star_distance_rad(star_a, star_b)
            if length == 0.0:
                logger.debug(
                    f"  Zero length edge between stars {vertex_indices[i]} "
                    f"and {vertex_indices[j]}"
                )
            lengths.append(length)
    return lengths


def find_polygons(
    stars: Sequence[Star],
    cardinality: int = DEFAULT_CARDINALITY,
    neighbor_search: Optional[NeighborSearch] = None,
    progress: bool = False,
) -> List[Polygon]:
    """
    Build one polygon per star from its closest neighbours.

    Stars are processed in list order. A polygon whose centroid is exactly
    equal to the centroid of an already emitted polygon is dropped, so the
    output depends on input order.

    Args:
        stars: Stars to build polygons from
        cardinality: Number of vertices per polygon (K >= 2)
        neighbor_search: Callable (stars, anchor_index, count) returning
            (distance, index) pairs in increasing distance. Defaults to a
            brute-force scan.
        progress: Show a progress bar

    Returns:
        List of polygons, empty if there are fewer than `cardinality` stars

    Raises:
        ValueError: If cardinality < 2 or a star has non-finite coordinates
    """
    if cardinality < 2:
        raise ValueError(f"Polygon cardinality must be at least 2, got {cardinality}")

    validate_stars(stars)

    if len(stars) < cardinality:
        logger.info(
            f"Insufficient stars for {cardinality}-gons: {len(stars)} available"
        )
        return []

    search = neighbor_search or brute_force_neighbors
    polygons: List[Polygon] = []
    # Centroid -> anchor index of the polygon that claimed it
    seen_centroids: Dict[Tuple[float, float], int] = {}

    for anchor_index, anchor in enumerate(tqdm(
        stars,
        desc="Building polygons",
        disable=not progress,
    )):
        logger.debug(f"Find polygon > star i:{anchor_index} id:({anchor.id})")

        neighbors = search(stars, anchor_index, cardinality - 1)
        if len(neighbors) != cardinality - 1:
            raise ValueError(
                f"Neighbour search returned {len(neighbors)} stars for anchor "
                f"{anchor_index}, expected {cardinality - 1}"
            )

        vertex_indices = (anchor_index,) + tuple(index for _, index in neighbors)
        logger.debug(f"  Star vec {list(vertex_indices)}")
        logger.debug(f"  Dist vec {[0.0] + [d for d, _ in neighbors]}")

        centroid = polygon_centroid(stars, vertex_indices)

        # Exact float comparison, two distinct polygons can collide here
        if centroid in seen_centroids:
            logger.debug(
                f"  Polygon already exists: {anchor_index} = {seen_centroids[centroid]}"
            )
            continue

        lengths = edge_lengths(stars, vertex_indices)
        lengths.sort()
        longest_length = lengths[-1]
        if longest_length == 0.0:
            logger.debug(f"  All vertices coincide for star {anchor_index}, skipped")
            continue

        signature = tuple(length / longest_length for length in lengths)
        logger.debug(f"  Length vec: {list(signature)}, longest_length (rad): {longest_length}")

        seen_centroids[centroid] = anchor_index
        polygons.append(Polygon(
            anchor_index=anchor_index,
            vertex_indices=vertex_indices,
            signature=signature,
            centroid=centroid,
            longest_length=longest_length,
        ))

    logger.info(f"Built {len(polygons)} {cardinality}-gons from {len(stars)} stars")
    return polygons
