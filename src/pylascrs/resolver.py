"""CRS resolver — the public entry point.

Dispatches a raw CRS record to the GeoTIFF or WKT parser and validates
the result::

    >>> get_epsg_from_wkt_crs_bytes(b'PROJCS["UTM 33N",AUTHORITY["EPSG","32633"]]')
    EpsgCrs(horizontal=32633, vertical=None)
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from pylascrs.core.crs import CrsRecordKind, EpsgCrs, RawCrsCodes
from pylascrs.core.errors import NoCrsRecordPresent
from pylascrs.parsers.geotiff import parse_geotiff_keys
from pylascrs.parsers.wkt import parse_wkt_crs
from pylascrs.validation import EpsgValidator

logger = logging.getLogger(__name__)


class CrsHeader(Protocol):
    """Anything that can hand over the raw CRS record payloads of a file."""

    def get_geotiff_crs(self) -> bytes | None:
        """GeoKey directory payload, if the file has one."""

    def get_wkt_crs_bytes(self) -> bytes | None:
        """WKT CRS payload, if the file has one."""


_PARSERS: dict[CrsRecordKind, Callable[[bytes], RawCrsCodes]] = {
    CrsRecordKind.GEOTIFF: parse_geotiff_keys,
    CrsRecordKind.WKT: parse_wkt_crs,
}


class CrsResolver:
    """Resolve raw CRS records into validated EPSG codes.

    Stateless apart from its validator; safe to share between threads.

    Args:
        validator: Range validator (default: ``EpsgValidator()``).
    """

    def __init__(self, validator: EpsgValidator | None = None) -> None:
        self.validator = validator if validator is not None else EpsgValidator()

    def resolve(self, kind: CrsRecordKind, payload: bytes) -> EpsgCrs:
        """Parse and validate one CRS record of the given kind."""
        raw = _PARSERS[kind](payload)
        logger.debug("Raw %s codes: %s", kind.value, raw)
        return self.validator.validate(raw)

    def from_geotiff(self, payload: bytes) -> EpsgCrs:
        return self.resolve(CrsRecordKind.GEOTIFF, payload)

    def from_wkt(self, payload: bytes | str) -> EpsgCrs:
        return self.resolve(CrsRecordKind.WKT, payload)

    def from_header(self, header: CrsHeader) -> EpsgCrs:
        """Resolve the CRS of a file header, preferring the GeoTIFF record.

        A GeoTIFF directory without any CRS key does not hide a WKT record
        stored next to it.

        Raises:
            NoCrsRecordPresent: The header has neither record, or only a
                GeoTIFF directory without CRS keys.
        """
        geotiff = header.get_geotiff_crs()
        wkt = header.get_wkt_crs_bytes()

        if geotiff is not None:
            try:
                return self.from_geotiff(geotiff)
            except NoCrsRecordPresent:
                if wkt is None:
                    raise
                logger.info("GeoTIFF directory has no CRS key, using the WKT record")

        if wkt is not None:
            return self.from_wkt(wkt)

        raise NoCrsRecordPresent("The header does not contain any CRS record")


_default_resolver = CrsResolver()


def get_epsg_crs(header: CrsHeader) -> EpsgCrs:
    """Get the EPSG CRS of a header exposing its raw CRS records.

    Args:
        header: Object with ``get_geotiff_crs()`` and ``get_wkt_crs_bytes()``.

    Returns:
        Validated EpsgCrs.

    Raises:
        CrsError: See ``pylascrs.core.errors`` for the individual kinds.
    """
    return _default_resolver.from_header(header)


def get_epsg_from_geotiff_crs(payload: bytes) -> EpsgCrs:
    """Get the EPSG CRS from a GeoKey directory payload."""
    return _default_resolver.from_geotiff(payload)


def get_epsg_from_wkt_crs_bytes(payload: bytes | str) -> EpsgCrs:
    """Get the EPSG CRS from a WKT payload (dialect is auto-detected)."""
    return _default_resolver.from_wkt(payload)
