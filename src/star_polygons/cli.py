"""
Command-line interface for polygon star matching.
"""

import sys
from pathlib import Path
from typing import Optional
import logging

import click

from .config import Config
from .image_stars import image_stars_to_polygon_stars, read_sextractor_csv
from .pipeline import Pipeline
from .polygon import find_polygons
from .star_catalog import SkyCone, StarCatalog


# Setup logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _set_verbose(verbose: bool) -> None:
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def _fail(error: Exception, verbose: bool) -> None:
    click.echo(click.style(f"✗ Error: {error}", fg="red"))
    if verbose:
        import traceback
        traceback.print_exc()
    sys.exit(1)


@click.group()
@click.version_option(version="0.1.0")
def main():
    """Star Polygons - blind star pattern matching between images and catalogs."""
    pass


@main.command()
@click.argument("catalog_path", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "catalog_format",
              type=click.Choice(["auto", "hyg", "gaia"]), default="auto",
              help="Catalog file format")
@click.option("--ra", type=float, default=0.0, help="Cone center right ascension (hours)")
@click.option("--dec", type=float, default=0.0, help="Cone center declination (degrees)")
@click.option("--radius", type=float, default=5.0, help="Cone radius (degrees)")
@click.option("--mag-limit", type=float, default=10.0, help="Keep stars brighter than this")
@click.option("--max-stars", type=int, default=None, help="Keep only the N brightest stars")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def catalog(
    catalog_path: Path,
    catalog_format: str,
    ra: float,
    dec: float,
    radius: float,
    mag_limit: float,
    max_stars: Optional[int],
    verbose: bool,
):
    """
    List catalog stars inside a sky cone.

    CATALOG_PATH: HYG CSV export or mini Gaia DR2 database
    """
    _set_verbose(verbose)
    try:
        cone = SkyCone(ra_center=ra, dec_center=dec, radius=radius, magnitude_limit=mag_limit)
        cat = StarCatalog.load(catalog_path, cone, format=catalog_format, max_stars=max_stars)
    except Exception as e:
        _fail(e, verbose)

    for star in cat:
        click.echo(
            f"Star id:{star.id}\tdb_id:{star.db_id}\thip:{star.hip}\tra:{star.ra:.6f}\t"
            f"dec:{star.dec:.6f}\tmagnitude:{star.magnitude:.2f}"
        )
    click.echo(f"Star list length: {len(cat)}")


@main.command()
@click.argument("input_path", type=click.Path(exists=True, path_type=Path))
@click.option("--source", type=click.Choice(["catalog", "image"]), default="catalog",
              help="Whether INPUT_PATH is a catalog or an image detection CSV")
@click.option("--format", "catalog_format",
              type=click.Choice(["auto", "hyg", "gaia"]), default="auto",
              help="Catalog file format")
@click.option("--ra", type=float, default=0.0, help="Cone center right ascension (hours)")
@click.option("--dec", type=float, default=0.0, help="Cone center declination (degrees)")
@click.option("--radius", type=float, default=5.0, help="Cone radius (degrees)")
@click.option("--mag-limit", type=float, default=10.0, help="Keep stars brighter than this")
@click.option("--scale", type=float, default=1.0, help="Image plate scale (arcsec/pixel)")
@click.option("--max-stars", type=int, default=None, help="Keep only the N brightest stars")
@click.option("-k", "--cardinality", type=int, default=4, help="Vertices per polygon")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def polygons(
    input_path: Path,
    source: str,
    catalog_format: str,
    ra: float,
    dec: float,
    radius: float,
    mag_limit: float,
    scale: float,
    max_stars: Optional[int],
    cardinality: int,
    verbose: bool,
):
    """
    Build and print the polygons of one star list.

    INPUT_PATH: Catalog file, or detection CSV with --source image
    """
    _set_verbose(verbose)
    try:
        if source == "image":
            star_list = read_sextractor_csv(input_path, max_stars=max_stars)
            stars = image_stars_to_polygon_stars(star_list, scale)
        else:
            cone = SkyCone(ra_center=ra, dec_center=dec, radius=radius, magnitude_limit=mag_limit)
            stars = StarCatalog.load(
                input_path, cone, format=catalog_format, max_stars=max_stars
            ).stars
        result = find_polygons(stars, cardinality, progress=verbose)
    except Exception as e:
        _fail(e, verbose)

    if not result:
        click.echo(f"No polygons: {len(stars)} stars for {cardinality}-gons")
        return

    for polygon in result:
        lengths = ", ".join(f"{x:.4f}" for x in polygon.signature)
        click.echo(
            f"{cardinality}-gon for star {polygon.anchor_index}: "
            f"[{lengths}] {list(polygon.vertex_indices)}"
        )
    click.echo(f"Polygons: {len(result)} from {len(stars)} stars")


@main.command()
@click.option("-c", "--config", "config_path",
              type=click.Path(exists=True, path_type=Path),
              help="Configuration YAML file")
@click.option("--catalog", "catalog_path",
              type=click.Path(exists=True, path_type=Path),
              help="Catalog file (HYG CSV or mini Gaia DR2 database)")
@click.option("--detections", "detections_path",
              type=click.Path(exists=True, path_type=Path),
              help="Image detection CSV (x, y, mag)")
@click.option("--ra", type=float, default=None, help="Cone center right ascension (hours)")
@click.option("--dec", type=float, default=None, help="Cone center declination (degrees)")
@click.option("--radius", type=float, default=None, help="Cone radius (degrees)")
@click.option("--mag-limit", type=float, default=None, help="Keep stars brighter than this")
@click.option("--scale", type=float, default=None, help="Image plate scale (arcsec/pixel)")
@click.option("-k", "--cardinality", type=int, default=None, help="Vertices per polygon")
@click.option("-t", "--tolerance", type=float, default=None,
              help="Minimum per-edge similarity ratio (0-1]")
@click.option("-o", "--output", type=click.Path(path_type=Path),
              help="Write a JSON match report")
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
def match(
    config_path: Optional[Path],
    catalog_path: Optional[Path],
    detections_path: Optional[Path],
    ra: Optional[float],
    dec: Optional[float],
    radius: Optional[float],
    mag_limit: Optional[float],
    scale: Optional[float],
    cardinality: Optional[int],
    tolerance: Optional[float],
    output: Optional[Path],
    verbose: bool,
):
    """
    Match image detections against a catalog with polygon signatures.
    """
    try:
        # Load or create config
        if config_path:
            cfg = Config.from_yaml(config_path)
        else:
            cfg = Config()

        # Apply command-line overrides
        if catalog_path is not None:
            cfg.catalog.path = catalog_path
        if detections_path is not None:
            cfg.image.path = detections_path
        if ra is not None:
            cfg.catalog.ra_center_hours = ra
        if dec is not None:
            cfg.catalog.dec_center_deg = dec
        if radius is not None:
            cfg.catalog.radius_deg = radius
        if mag_limit is not None:
            cfg.catalog.magnitude_limit = mag_limit
        if scale is not None:
            cfg.image.scale_arcsec_per_pixel = scale
        if cardinality is not None:
            cfg.polygon.cardinality = cardinality
        if tolerance is not None:
            cfg.matching.tolerance = tolerance
        if output is not None:
            cfg.output.output_path = output
        cfg.verbose = cfg.verbose or verbose
    except Exception as e:
        _fail(e, verbose)

    _set_verbose(cfg.verbose)

    click.echo(f"Catalog: {cfg.catalog.path}")
    click.echo(f"Detections: {cfg.image.path}")

    pipeline = Pipeline(cfg)
    try:
        result = pipeline.run()
    except Exception as e:
        _fail(e, cfg.verbose)

    click.echo(f"  Image stars: {len(result.image_stars)} -> {len(result.image_polygons)} polygons")
    click.echo(f"  Catalog stars: {len(result.catalog_stars)} -> {len(result.catalog_polygons)} polygons")
    click.echo(f"  Processing time: {result.processing_time_seconds:.2f}s")

    if not result.success:
        click.echo(click.style("✗ No matches found", fg="yellow"))
        sys.exit(1)

    click.echo(click.style(f"✓ {result.num_matches} matches", fg="green"))
    for m in result.matches[:cfg.output.max_reported]:
        ratios = ", ".join(f"{r:.4f}" for r in m.ratios)
        click.echo(
            f"  image {m.image_polygon.anchor_index} {list(m.image_polygon.vertex_indices)} <-> "
            f"catalog {m.catalog_polygon.anchor_index} {list(m.catalog_polygon.vertex_indices)} "
            f"ratios [{ratios}]"
        )
    if result.num_matches > cfg.output.max_reported:
        click.echo(f"  ... {result.num_matches - cfg.output.max_reported} more")
    if cfg.output.output_path is not None:
        click.echo(f"  Report: {cfg.output.output_path}")


if __name__ == "__main__":
    main()
