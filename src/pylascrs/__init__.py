"""pylascrs — EPSG codes from lidar CRS records."""

from pylascrs._version import __version__
from pylascrs.core.crs import EPSG_RANGE, EpsgCrs
from pylascrs.core.errors import (
    BadHorizontalCodeParsed,
    CrsError,
    MalformedGeoTiffDirectory,
    MalformedWkt,
    MissingHorizontalCode,
    NoCrsRecordPresent,
    UnimplementedForGeoTiffStringAndDoubleData,
    UnsupportedCrsForm,
)
from pylascrs.resolver import (
    CrsResolver,
    get_epsg_crs,
    get_epsg_from_geotiff_crs,
    get_epsg_from_wkt_crs_bytes,
)
from pylascrs.validation import EpsgValidator

__all__ = [
    "__version__",
    "EPSG_RANGE",
    "EpsgCrs",
    "CrsResolver",
    "EpsgValidator",
    "get_epsg_crs",
    "get_epsg_from_geotiff_crs",
    "get_epsg_from_wkt_crs_bytes",
    "BadHorizontalCodeParsed",
    "CrsError",
    "MalformedGeoTiffDirectory",
    "MalformedWkt",
    "MissingHorizontalCode",
    "NoCrsRecordPresent",
    "UnimplementedForGeoTiffStringAndDoubleData",
    "UnsupportedCrsForm",
]
