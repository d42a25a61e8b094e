"""LAS/LAZ header adapter using laspy.

Collects the ``LASF_Projection`` CRS records from a file's VLRs and
EVLRs and exposes them to the resolver. Only the header and record
regions are read, so LAZ files are never decompressed.

laspy parses record 34735 into a ``GeoKeyDirectoryVlr`` and re-serializes
it with a repaired key count and without trailing directory values, so
files are read through ``read_projection_records`` to get the payloads
exactly as stored.
"""

from __future__ import annotations

import io
import logging
import struct
from pathlib import Path
from typing import Any, BinaryIO, Iterable

import laspy
from laspy.errors import LaspyException

from pylascrs.core.crs import EpsgCrs
from pylascrs.resolver import CrsResolver, get_epsg_crs

logger = logging.getLogger(__name__)

PROJECTION_USER_ID = "LASF_Projection"
WKT_RECORD_ID = 2112
GEOKEY_DIRECTORY_RECORD_ID = 34735

_CRS_RECORD_IDS = (WKT_RECORD_ID, GEOKEY_DIRECTORY_RECORD_ID)

# Public header: header_size at 94, number_of_vlrs at 100,
# start_of_first_evlr / number_of_evlrs at 235 (LAS 1.4 only)
_MIN_HEADER_SIZE = 227
_HEADER_1_4_SIZE = 375
_EVLR_FIELDS = struct.Struct("<QI")
_EVLR_FIELDS_OFFSET = 235

# reserved, user_id, record_id, record_length_after_header, description
_VLR_HEADER = struct.Struct("<H16sHH32s")
_EVLR_HEADER = struct.Struct("<H16sHQ32s")


def _is_crs_record(user_id: str, record_id: int) -> bool:
    return user_id.lower() == PROJECTION_USER_ID.lower() and record_id in _CRS_RECORD_IDS


def _collect_records(
    stream: BinaryIO,
    offset: int,
    count: int,
    record_header: struct.Struct,
    records: dict[int, bytes],
) -> None:
    stream.seek(offset)
    for _ in range(count):
        raw = stream.read(record_header.size)
        if len(raw) < record_header.size:
            raise LaspyException(f"Truncated (E)VLR header at offset {offset}")
        _, user_id, record_id, length, _ = record_header.unpack(raw)
        user_id = user_id.split(b"\x00", 1)[0].decode("ascii", errors="replace")

        if _is_crs_record(user_id, record_id):
            data = stream.read(length)
            if len(data) < length:
                raise LaspyException(
                    f"Record {record_id} declares {length} bytes, file holds {len(data)}"
                )
            records[record_id] = data
        else:
            stream.seek(length, io.SEEK_CUR)
        offset += record_header.size + length


def read_projection_records(stream: BinaryIO) -> dict[int, bytes]:
    """Read the raw CRS record payloads of a LAS/LAZ file.

    Args:
        stream: Binary file object positioned anywhere.

    Returns:
        Mapping of record id (2112, 34735) to the payload as stored.
        EVLRs come after VLRs, so they win when a record appears twice.
    """
    stream.seek(0)
    head = stream.read(_HEADER_1_4_SIZE)
    if len(head) < _MIN_HEADER_SIZE or head[:4] != b"LASF":
        raise LaspyException("Not a LAS file: missing LASF signature")

    version_minor = head[25]
    (header_size,) = struct.unpack_from("<H", head, 94)
    (num_vlrs,) = struct.unpack_from("<I", head, 100)

    records: dict[int, bytes] = {}
    _collect_records(stream, header_size, num_vlrs, _VLR_HEADER, records)

    if version_minor >= 4 and len(head) >= _EVLR_FIELDS_OFFSET + _EVLR_FIELDS.size:
        start, num_evlrs = _EVLR_FIELDS.unpack_from(head, _EVLR_FIELDS_OFFSET)
        if num_evlrs:
            _collect_records(stream, start, num_evlrs, _EVLR_HEADER, records)

    logger.debug("CRS records found: %s", sorted(records))
    return records


def _record_bytes(vlr: Any) -> bytes:
    """Payload of an in-memory VLR, whether laspy parsed it into a known type or not."""
    if hasattr(vlr, "record_data_bytes"):
        return bytes(vlr.record_data_bytes())
    return bytes(vlr.record_data)


class LasCrsHeader:
    """CRS record view of a ``laspy.LasHeader``.

    Works with any object exposing ``vlrs`` and, optionally, ``evlrs``
    and ``global_encoding``. When a record appears more than once, the
    last one wins (EVLRs come after VLRs).

    Args:
        header: laspy header (or look-alike).
        records: Raw payloads by record id. When given, the header's
            VLR objects are not consulted for the payloads.

    Examples:
        >>> crs = get_epsg_crs(LasCrsHeader.from_file("tile.laz"))
    """

    def __init__(
        self,
        header: laspy.LasHeader,
        records: dict[int, bytes] | None = None,
    ) -> None:
        self.header = header
        if records is not None:
            self._records = {k: v for k, v in records.items() if k in _CRS_RECORD_IDS}
        else:
            self._records = {}
            for vlr in self._all_vlrs():
                if _is_crs_record(str(vlr.user_id), vlr.record_id):
                    self._records[vlr.record_id] = _record_bytes(vlr)

        self._warn_inconsistencies()

    @classmethod
    def from_file(cls, path: str | Path) -> LasCrsHeader:
        """Build from a LAS/LAZ file, using the record payloads as stored."""
        with laspy.open(str(path)) as reader:
            header = reader.header
        with open(path, "rb") as stream:
            records = read_projection_records(stream)
        return cls(header, records=records)

    def _all_vlrs(self) -> Iterable[Any]:
        yield from self.header.vlrs
        evlrs = getattr(self.header, "evlrs", None)
        if evlrs:
            yield from evlrs

    def _warn_inconsistencies(self) -> None:
        has_wkt = WKT_RECORD_ID in self._records
        global_encoding = getattr(self.header, "global_encoding", None)
        wkt_flag = getattr(global_encoding, "wkt", None)

        if wkt_flag is not None:
            if has_wkt and not wkt_flag:
                logger.warning("WKT CRS (E)VLR found, but header says it does not exist")
            elif not has_wkt and wkt_flag:
                logger.warning("No WKT CRS (E)VLR found, but header says it exists")

        if has_wkt and GEOKEY_DIRECTORY_RECORD_ID in self._records:
            logger.warning("Both WKT and GeoTIFF CRS (E)VLRs found, GeoTIFF is parsed")

    def get_geotiff_crs(self) -> bytes | None:
        return self._records.get(GEOKEY_DIRECTORY_RECORD_ID)

    def get_wkt_crs_bytes(self) -> bytes | None:
        return self._records.get(WKT_RECORD_ID)


def read_las_crs(path: str | Path, resolver: CrsResolver | None = None) -> EpsgCrs:
    """Read the EPSG CRS of a LAS/LAZ file.

    Args:
        path: Path to a .las or .laz file.
        resolver: Resolver to use (default: module-level defaults).

    Returns:
        Validated EpsgCrs.
    """
    header = LasCrsHeader.from_file(path)
    logger.info("Resolving CRS of %s", path)
    if resolver is None:
        return get_epsg_crs(header)
    return resolver.from_header(header)
