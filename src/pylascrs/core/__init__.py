"""Core data model and errors for pylascrs."""

from pylascrs.core.crs import (
    EPSG_RANGE,
    CrsRecordKind,
    EpsgCrs,
    GeoKey,
    GeoKeyLocation,
    GeoTiffData,
    RawCrsCodes,
    in_epsg_range,
)
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

__all__ = [
    "EPSG_RANGE",
    "CrsRecordKind",
    "EpsgCrs",
    "GeoKey",
    "GeoKeyLocation",
    "GeoTiffData",
    "RawCrsCodes",
    "in_epsg_range",
    "BadHorizontalCodeParsed",
    "CrsError",
    "MalformedGeoTiffDirectory",
    "MalformedWkt",
    "MissingHorizontalCode",
    "NoCrsRecordPresent",
    "UnimplementedForGeoTiffStringAndDoubleData",
    "UnsupportedCrsForm",
]
