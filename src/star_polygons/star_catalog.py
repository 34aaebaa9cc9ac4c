"""
Star catalog readers.

Supports two sources:

- HYG database exported as CSV (columns: id, hip, ra [hours], dec [deg], mag)
- Mini Gaia DR2 binary database (three length-prefixed header strings
  followed by packed little-endian 28-byte records)

Both readers keep only stars brighter than a magnitude limit and
inside a cone around a pointing, and return them as polygon `Star`s.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Tuple, Union
import logging

import numpy as np

from .geometry import (
    angular_separation_radians,
    degrees_to_hours,
    degrees_to_radians,
    hours_to_radians,
)
from .polygon import Star


logger = logging.getLogger(__name__)

GAIA_HEADER_COUNT = 3
GAIA_HEADER_SIZE = 255

# Packed record: u64 source id, f64 ra (deg), f64 dec (deg), f32 magnitude
GAIA_RECORD_DTYPE = np.dtype([
    ("source_id", "<u8"),
    ("ra", "<f8"),
    ("dec", "<f8"),
    ("magnitude", "<f4"),
])

CATALOG_FORMATS = ("hyg", "gaia")

PathLike = Union[str, Path]


@dataclass(frozen=True)
class SkyCone:
    """Circular sky region plus magnitude limit used to select stars."""

    ra_center: float  # Hours
    dec_center: float  # Degrees
    radius: float  # Degrees
    magnitude_limit: float

    def __post_init__(self):
        if self.radius < 0:
            raise ValueError(f"Cone radius must be non-negative, got {self.radius}")

    @property
    def ra_center_rad(self) -> float:
        return hours_to_radians(self.ra_center)

    @property
    def dec_center_rad(self) -> float:
        return degrees_to_radians(self.dec_center)

    @property
    def radius_rad(self) -> float:
        return degrees_to_radians(self.radius)

    def contains(self, ra_rad: float, dec_rad: float, magnitude: float) -> bool:
        """True if a star is brighter than the limit and inside the cone."""
        if not magnitude < self.magnitude_limit:
            return False
        separation = angular_separation_radians(
            self.ra_center_rad, self.dec_center_rad, ra_rad, dec_rad
        )
        return separation <= self.radius_rad


def _reindex(stars: List[Star]) -> List[Star]:
    return [
        Star(id=i, db_id=s.db_id, ra=s.ra, dec=s.dec,
             ra_rad=s.ra_rad, dec_rad=s.dec_rad, magnitude=s.magnitude,
             hip=s.hip)
        for i, s in enumerate(stars)
    ]


def read_hyg_catalog(path: PathLike, cone: SkyCone) -> List[Star]:
    """
    Read stars from a HYG CSV export.

    Args:
        path: CSV file with a header row and columns id, hip, ra, dec, mag
        cone: Region and magnitude limit to keep

    Returns:
        Stars inside the cone, in file order, indexed from 0. `db_id` is
        the HYG id column and `hip` the Hipparcos number
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")

    data = np.loadtxt(path, delimiter=",", skiprows=1, ndmin=2)
    if data.size == 0:
        logger.warning(f"Catalog {path} has no rows")
        return []
    if data.shape[1] < 5:
        raise ValueError(
            f"HYG catalog {path} needs 5 columns (id, hip, ra, dec, mag), "
            f"found {data.shape[1]}"
        )

    stars: List[Star] = []
    for row in data:
        ra = float(row[2])
        dec = float(row[3])
        magnitude = float(row[4])
        ra_rad = hours_to_radians(ra)
        dec_rad = degrees_to_radians(dec)
        if cone.contains(ra_rad, dec_rad, magnitude):
            stars.append(Star(
                id=len(stars),
                db_id=int(row[0]),
                ra=ra,
                dec=dec,
                ra_rad=ra_rad,
                dec_rad=dec_rad,
                magnitude=magnitude,
                hip=int(row[1]),
            ))

    logger.info(f"Read {len(stars)}/{len(data)} HYG stars from {path}")
    return stars


def read_gaia_catalog(path: PathLike, cone: SkyCone) -> Tuple[List[Star], List[str]]:
    """
    Read stars from a mini Gaia DR2 binary database.

    The RA stored in degrees is converted to hours. A trailing partial
    record is ignored.

    Args:
        path: Binary database file
        cone: Region and magnitude limit to keep

    Returns:
        (stars sorted by magnitude, brightest first, indexed from 0;
         header strings)
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Catalog not found: {path}")

    raw = path.read_bytes()
    header_block = GAIA_HEADER_COUNT * (1 + GAIA_HEADER_SIZE)
    if len(raw) < header_block:
        raise ValueError(f"Gaia database {path} is truncated inside its header")

    headers = []
    offset = 0
    for _ in range(GAIA_HEADER_COUNT):
        length = raw[offset]
        text = raw[offset + 1:offset + 1 + length]
        headers.append(text.decode("utf-8"))
        offset += 1 + GAIA_HEADER_SIZE
    logger.debug(f"Gaia headers: {headers}")

    body = raw[offset:]
    num_records = len(body) // GAIA_RECORD_DTYPE.itemsize
    if len(body) % GAIA_RECORD_DTYPE.itemsize:
        logger.warning(
            f"Ignoring {len(body) % GAIA_RECORD_DTYPE.itemsize} trailing bytes in {path}"
        )
    records = np.frombuffer(
        body[:num_records * GAIA_RECORD_DTYPE.itemsize], dtype=GAIA_RECORD_DTYPE
    )

    stars: List[Star] = []
    for record in records:
        ra = degrees_to_hours(float(record["ra"]))
        dec = float(record["dec"])
        magnitude = float(record["magnitude"])
        ra_rad = hours_to_radians(ra)
        dec_rad = degrees_to_radians(dec)
        if cone.contains(ra_rad, dec_rad, magnitude):
            logger.debug(f"STAR: ra:{ra} dec:{dec} mag:{magnitude}")
            stars.append(Star(
                id=0,
                db_id=int(record["source_id"]),
                ra=ra,
                dec=dec,
                ra_rad=ra_rad,
                dec_rad=dec_rad,
                magnitude=magnitude,
            ))

    # Stable sort keeps file order among equal magnitudes
    stars.sort(key=lambda s: s.magnitude)
    logger.info(f"Read {len(stars)}/{num_records} Gaia stars from {path}")
    return _reindex(stars), headers


def infer_catalog_format(path: PathLike) -> str:
    """Guess the catalog format from the file suffix."""
    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        return "hyg"
    if suffix in (".db", ".bin"):
        return "gaia"
    raise ValueError(f"Cannot infer catalog format from suffix '{suffix}' of {path}")


@dataclass
class StarCatalog:
    """
    Stars selected from a catalog file for one run.

    Use `StarCatalog.load` to read a file; the instance keeps the selected
    stars in catalog index order.
    """

    stars: List[Star]
    source: Optional[Path] = None
    format: str = "hyg"
    headers: List[str] = field(default_factory=list)

    @classmethod
    def load(
        cls,
        path: PathLike,
        cone: SkyCone,
        format: str = "auto",
        max_stars: Optional[int] = None,
    ) -> "StarCatalog":
        """
        Read a catalog file.

        Args:
            path: Catalog file
            cone: Region and magnitude limit to keep
            format: "hyg", "gaia" or "auto" (from file suffix)
            max_stars: Keep only this many of the brightest stars

        Returns:
            StarCatalog with the selected stars
        """
        path = Path(path)
        if format == "auto":
            format = infer_catalog_format(path)
        if format not in CATALOG_FORMATS:
            raise ValueError(f"Unknown catalog format: {format}")

        headers: List[str] = []
        if format == "hyg":
            stars = read_hyg_catalog(path, cone)
        else:
            stars, headers = read_gaia_catalog(path, cone)

        catalog = cls(stars=stars, source=path, format=format, headers=headers)
        if max_stars is not None:
            catalog = catalog.brightest(max_stars)
        return catalog

    def brightest(self, count: int) -> "StarCatalog":
        """Catalog limited to the `count` brightest stars, re-indexed."""
        if count < 0:
            raise ValueError(f"Star count must be non-negative, got {count}")
        ranked = sorted(self.stars, key=lambda s: s.magnitude)[:count]
        return StarCatalog(
            stars=_reindex(ranked),
            source=self.source,
            format=self.format,
            headers=list(self.headers),
        )

    def __len__(self) -> int:
        return len(self.stars)

    def __iter__(self) -> Iterator[Star]:
        return iter(self.stars)
