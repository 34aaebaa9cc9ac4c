#!/usr/bin/env python3
"""
Star Polygons - Command line entry point.

Run with:
    python -m star_polygons match --catalog hygfull-compact.csv --detections stars.csv
"""

from .cli import main

if __name__ == "__main__":
    main()
