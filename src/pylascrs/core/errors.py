"""
Exception hierarchy for CRS extraction.

Every error carries the data needed to diagnose it, not just a message.
Callers usually want to tell ``BadHorizontalCodeParsed`` ("structure was
fine, the code is not") apart from the structural errors, since the former
is most often an authoring bug such as the sentinel code 0.
"""

from __future__ import annotations

from typing import Any

from pylascrs.core.crs import EpsgCrs, GeoTiffData


class CrsError(Exception):
    """Base exception for all pylascrs errors.

    Attributes:
        error_code: String identifier for the error type
        message: Human readable message
        details: Structured diagnostic data
    """

    error_code = "CRS_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the error to a plain dictionary (e.g. for JSON reports)."""
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"{self.error_code}: {self.message}"


class BadHorizontalCodeParsed(CrsError):
    """A horizontal code was found but is outside the plausible EPSG range.

    ``crs`` holds what was actually found, so files written with the
    sentinel code 0 can be diagnosed.
    """

    error_code = "BAD_HORIZONTAL_CODE"

    def __init__(self, crs: EpsgCrs) -> None:
        super().__init__(
            f"Horizontal EPSG code {crs.horizontal} is outside the valid range",
            details={"horizontal": crs.horizontal, "vertical": crs.vertical},
        )
        self.crs = crs


class MissingHorizontalCode(CrsError):
    """The CRS record was readable but names no horizontal EPSG code."""

    error_code = "MISSING_HORIZONTAL_CODE"

    def __init__(self, vertical: int | None = None) -> None:
        super().__init__(
            "No horizontal EPSG code found in the CRS record",
            details={"vertical": vertical},
        )
        self.vertical = vertical


class UnimplementedForGeoTiffStringAndDoubleData(CrsError):
    """A relevant GeoKey is stored in the ASCII or double parameter block."""

    error_code = "GEOTIFF_PARAMS_UNSUPPORTED"

    def __init__(self, data: GeoTiffData) -> None:
        super().__init__(
            f"GeoKey {data.key_name} is stored in {data.location.name}, "
            "which is not handled",
            details={
                "key": data.key,
                "location": int(data.location),
                "count": data.count,
                "offset": data.offset,
            },
        )
        self.data = data


class UnsupportedCrsForm(CrsError):
    """A recognized CRS kind that cannot be turned into EPSG codes."""

    error_code = "UNSUPPORTED_CRS_FORM"

    def __init__(self, reason: str) -> None:
        super().__init__(reason, details={"reason": reason})
        self.reason = reason


class MalformedWkt(CrsError):
    """Grammar violation in a WKT buffer."""

    error_code = "MALFORMED_WKT"

    def __init__(self, reason: str, position: int, context: str = "") -> None:
        message = f"{reason} at offset {position}"
        if context:
            message += f" near {context!r}"
        super().__init__(
            message,
            details={"reason": reason, "position": position, "context": context},
        )
        self.reason = reason
        self.position = position
        self.context = context


class MalformedGeoTiffDirectory(CrsError):
    """Truncated or inconsistent GeoKey directory."""

    error_code = "MALFORMED_GEOTIFF_DIRECTORY"

    def __init__(self, reason: str) -> None:
        super().__init__(reason, details={"reason": reason})
        self.reason = reason


class NoCrsRecordPresent(CrsError):
    """No CRS record (or no CRS key inside it) was found."""

    error_code = "NO_CRS"

    def __init__(self, reason: str = "No CRS record present") -> None:
        super().__init__(reason, details={"reason": reason})
        self.reason = reason
