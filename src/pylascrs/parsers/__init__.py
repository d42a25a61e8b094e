"""Parsers for the CRS record encodings found in lidar files."""

from pylascrs.parsers.geotiff import parse_geotiff_keys, read_geokey_directory
from pylascrs.parsers.wkt import WktDialect, detect_dialect, parse_wkt_crs

__all__ = [
    "parse_geotiff_keys",
    "read_geokey_directory",
    "WktDialect",
    "detect_dialect",
    "parse_wkt_crs",
]
