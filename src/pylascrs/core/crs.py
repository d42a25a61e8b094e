"""CRS value types — EPSG results, raw parser output and GeoKey identifiers."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum

# GeoTIFF: "values in the range 1024-32766 SHALL be EPSG codes".
# 0 means undefined and 32767 user-defined.
EPSG_RANGE: tuple[int, int] = (1024, 32766)


def in_epsg_range(code: int, bounds: tuple[int, int] = EPSG_RANGE) -> bool:
    """Check whether a code is a plausible EPSG code (inclusive bounds)."""
    lo, hi = bounds
    return lo <= code <= hi


class CrsRecordKind(Enum):
    """The CRS record encodings found in lidar files."""

    GEOTIFF = "geotiff"
    WKT = "wkt"


class GeoKey(IntEnum):
    """GeoKey ids the resolver cares about."""

    GT_MODEL_TYPE = 1024
    GEOGRAPHIC_TYPE = 2048
    PROJECTED_CS_TYPE = 3072
    VERTICAL_CS_TYPE = 4096


class GeoKeyLocation(IntEnum):
    """Where a GeoKey's value is stored (the ``tiff_tag_location`` field)."""

    INLINE = 0
    DIRECTORY = 34735
    DOUBLE_PARAMS = 34736
    ASCII_PARAMS = 34737


@dataclass(frozen=True)
class EpsgCrs:
    """Horizontal and optional vertical CRS given by EPSG code.

    Attributes:
        horizontal: EPSG code of the horizontal (projected or geographic) CRS.
        vertical: EPSG code of the vertical CRS, if one was found and valid.
    """

    horizontal: int
    vertical: int | None = None

    def epsg_strings(self) -> list[str]:
        """Return ``["EPSG:<h>"]`` or ``["EPSG:<h>", "EPSG:<v>"]``."""
        codes = [f"EPSG:{self.horizontal}"]
        if self.vertical is not None:
            codes.append(f"EPSG:{self.vertical}")
        return codes

    def __str__(self) -> str:
        if self.vertical is None:
            return f"EPSG:{self.horizontal}"
        return f"EPSG:{self.horizontal}+{self.vertical}"


@dataclass(frozen=True)
class RawCrsCodes:
    """Unvalidated codes as found by a parser. May hold sentinels like 0."""

    horizontal: int | None
    vertical: int | None = None


@dataclass(frozen=True)
class GeoTiffData:
    """A GeoKey whose value lives in the ASCII or double parameter block."""

    key: int
    location: GeoKeyLocation
    count: int
    offset: int

    @property
    def key_name(self) -> str:
        try:
            return GeoKey(self.key).name
        except ValueError:
            return str(self.key)
