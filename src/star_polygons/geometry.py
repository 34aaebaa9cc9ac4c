"""
Angle conversions and sky geometry helpers.

Conversion constants are kept at full precision so catalog coordinates
converted here compare consistently between runs.
"""

import math

import numpy as np


HOURS_TO_RADIANS = 0.26179938779914943653855361527329
DEGREES_TO_RADIANS = 0.017453292519943295769236907684886
ARCSEC_PER_DEGREE = 3600.0


def hours_to_radians(hours: float) -> float:
    """Right ascension in hours to radians."""
    return hours * HOURS_TO_RADIANS


def degrees_to_radians(degrees: float) -> float:
    """Declination (or any angle) in degrees to radians."""
    return degrees * DEGREES_TO_RADIANS


def degrees_to_hours(degrees: float) -> float:
    return degrees / 360.0 * 24.0


def arcsec_per_pixel_to_radians(scale_arcsec: float) -> float:
    """Plate scale in arcseconds per pixel to radians per pixel."""
    return math.radians(scale_arcsec / ARCSEC_PER_DEGREE)


def angular_separation_radians(ra1: float, dec1: float,
                               ra2: float, dec2: float) -> float:
    """
    Angular separation between two sky positions.

    From Meeus, Astronomical Algorithms:
        cos(d) = sin(d1) * sin(d2) + cos(d1) * cos(d2) * cos(a1 - a2)

    Args:
        ra1, dec1: First position (radians)
        ra2, dec2: Second position (radians)

    Returns:
        Separation in radians
    """
    cos_d = (math.sin(dec1) * math.sin(dec2) +
             math.cos(dec1) * math.cos(dec2) * math.cos(ra2 - ra1))
    # Rounding can push cos_d just past +-1 for identical positions
    return math.acos(float(np.clip(cos_d, -1.0, 1.0)))


def polygon_connections(vertices: int) -> int:
    """Number of edges joining every pair of `vertices` points, C(n, 2)."""
    return vertices * (vertices - 1) // 2
