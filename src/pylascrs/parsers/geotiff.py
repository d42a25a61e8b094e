"""GeoTIFF GeoKey directory parser.

The directory (LASF_Projection record 34735) is a little-endian table of
unsigned 16-bit words::

    header:  key_directory_version, key_revision, minor_revision, number_of_keys
    entry:   key_id, tiff_tag_location, count, value_offset   (x number_of_keys)

Only values stored inline (or as shorts inside the directory itself) are
decoded. Keys stored in the ASCII or double parameter records are reported
with ``UnimplementedForGeoTiffStringAndDoubleData``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from pylascrs.core.crs import GeoKey, GeoKeyLocation, GeoTiffData, RawCrsCodes
from pylascrs.core.errors import (
    MalformedGeoTiffDirectory,
    NoCrsRecordPresent,
    UnimplementedForGeoTiffStringAndDoubleData,
    UnsupportedCrsForm,
)

logger = logging.getLogger(__name__)

_WORD_SIZE = 2
_HEADER_WORDS = 4
_ENTRY_WORDS = 4

_USER_DEFINED = 32767

_HORIZONTAL_KEYS = (GeoKey.PROJECTED_CS_TYPE, GeoKey.GEOGRAPHIC_TYPE)
_CRS_KEYS = (*_HORIZONTAL_KEYS, GeoKey.VERTICAL_CS_TYPE)
_PARAM_LOCATIONS = frozenset((GeoKeyLocation.DOUBLE_PARAMS, GeoKeyLocation.ASCII_PARAMS))


@dataclass(frozen=True)
class GeoKeyEntry:
    """One raw key record of the directory."""

    key: int
    location: int
    count: int
    value_offset: int


@dataclass(frozen=True)
class GeoKeyDirectory:
    """Decoded directory header plus its key entries.

    Attributes:
        version: key_directory_version (always 1).
        revision: key_revision.
        minor_revision: minor_revision.
        entries: Key records, in file order.
        words: The whole directory as u16 words, used for keys stored
            in the directory itself.
    """

    version: int
    revision: int
    minor_revision: int
    entries: tuple[GeoKeyEntry, ...]
    words: tuple[int, ...]

    def find(self, key: int) -> GeoKeyEntry | None:
        """Return the first entry with the given key id."""
        for entry in self.entries:
            if entry.key == key:
                return entry
        return None


def read_geokey_directory(data: bytes) -> GeoKeyDirectory:
    """Decode the directory header and key records.

    Raises:
        MalformedGeoTiffDirectory: If the buffer cannot hold the header or
            the number of keys it declares.
    """
    buf = bytes(data)
    header_size = _HEADER_WORDS * _WORD_SIZE
    if len(buf) < header_size:
        raise MalformedGeoTiffDirectory(
            f"Directory is {len(buf)} bytes, header needs {header_size}"
        )

    n_words = len(buf) // _WORD_SIZE
    words = np.frombuffer(buf, dtype="<u2", count=n_words)
    version, revision, minor, num_keys = (int(w) for w in words[:_HEADER_WORDS])

    if version != 1:
        raise MalformedGeoTiffDirectory(f"Unknown key directory version {version}")

    needed = _HEADER_WORDS + num_keys * _ENTRY_WORDS
    if n_words < needed:
        raise MalformedGeoTiffDirectory(
            f"Directory declares {num_keys} keys ({needed * _WORD_SIZE} bytes) "
            f"but is only {len(buf)} bytes"
        )

    table = words[_HEADER_WORDS:needed].reshape(num_keys, _ENTRY_WORDS)
    entries = tuple(GeoKeyEntry(*row) for row in table.tolist())
    logger.debug("GeoKey directory v%d.%d.%d with %d keys", version, revision, minor, num_keys)

    return GeoKeyDirectory(
        version=version,
        revision=revision,
        minor_revision=minor,
        entries=entries,
        words=tuple(words.tolist()),
    )


def _short_value(directory: GeoKeyDirectory, entry: GeoKeyEntry) -> int:
    """Resolve the u16 value of a key stored inline or in the directory."""
    if entry.location == GeoKeyLocation.INLINE:
        return entry.value_offset

    if entry.location == GeoKeyLocation.DIRECTORY:
        if entry.count != 1:
            raise MalformedGeoTiffDirectory(
                f"GeoKey {entry.key} holds {entry.count} values, expected 1"
            )
        if entry.value_offset >= len(directory.words):
            raise MalformedGeoTiffDirectory(
                f"GeoKey {entry.key} points past the end of the directory "
                f"(index {entry.value_offset})"
            )
        return directory.words[entry.value_offset]

    raise MalformedGeoTiffDirectory(
        f"Invalid storage location {entry.location} for GeoKey {entry.key}"
    )


def parse_geotiff_keys(data: bytes) -> RawCrsCodes:
    """Find the horizontal and vertical EPSG codes in a GeoKey directory.

    The projected CRS key wins over the geographic one when both exist.

    Raises:
        MalformedGeoTiffDirectory: Truncated or inconsistent directory.
        UnimplementedForGeoTiffStringAndDoubleData: A CRS key is stored in
            the ASCII or double parameter record.
        UnsupportedCrsForm: The model type is user-defined.
        NoCrsRecordPresent: The directory holds no CRS key at all.
    """
    directory = read_geokey_directory(data)

    # Parameter-block keys are reported before anything else is looked at,
    # in key priority order rather than file order
    for key in _CRS_KEYS:
        entry = directory.find(key)
        if entry is not None and entry.location in _PARAM_LOCATIONS:
            raise UnimplementedForGeoTiffStringAndDoubleData(
                GeoTiffData(
                    key=entry.key,
                    location=GeoKeyLocation(entry.location),
                    count=entry.count,
                    offset=entry.value_offset,
                )
            )

    model = directory.find(GeoKey.GT_MODEL_TYPE)
    if model is not None and model.location == GeoKeyLocation.INLINE:
        logger.debug("GTModelTypeGeoKey = %d", model.value_offset)
        if model.value_offset == _USER_DEFINED:
            raise UnsupportedCrsForm("GeoTIFF model type is user-defined")

    horizontal = None
    for key in _HORIZONTAL_KEYS:
        entry = directory.find(key)
        if entry is not None:
            horizontal = _short_value(directory, entry)
            logger.debug("Horizontal code %d from %s", horizontal, key.name)
            break

    vertical = None
    entry = directory.find(GeoKey.VERTICAL_CS_TYPE)
    if entry is not None:
        vertical = _short_value(directory, entry)
        logger.debug("Vertical code %d from %s", vertical, GeoKey.VERTICAL_CS_TYPE.name)

    if horizontal is None and vertical is None:
        raise NoCrsRecordPresent("GeoKey directory has no CRS key")

    return RawCrsCodes(horizontal=horizontal, vertical=vertical)
