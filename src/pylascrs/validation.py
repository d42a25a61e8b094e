"""Range validation of raw EPSG codes."""

from __future__ import annotations

import logging

from pylascrs.core.crs import EPSG_RANGE, EpsgCrs, RawCrsCodes, in_epsg_range
from pylascrs.core.errors import BadHorizontalCodeParsed, MissingHorizontalCode

logger = logging.getLogger(__name__)


class EpsgValidator:
    """Turn ``RawCrsCodes`` into an ``EpsgCrs``.

    This is a plausibility filter on the numeric range only, not a
    registry lookup. Out-of-range vertical codes are dropped silently
    (vertical CRS records are often garbage in the wild); an out-of-range
    horizontal code is an error that carries what was found.

    Args:
        bounds: Inclusive (min, max) range of acceptable codes.
    """

    def __init__(self, bounds: tuple[int, int] = EPSG_RANGE) -> None:
        lo, hi = bounds
        if lo > hi:
            raise ValueError(f"Invalid EPSG bounds: {bounds}")
        self.bounds = (lo, hi)

    def validate(self, raw: RawCrsCodes) -> EpsgCrs:
        """Validate raw codes.

        Raises:
            MissingHorizontalCode: No horizontal code was found.
            BadHorizontalCodeParsed: The horizontal code is out of range.
        """
        vertical = raw.vertical
        if vertical is not None and not in_epsg_range(vertical, self.bounds):
            logger.debug("Dropping out-of-range vertical code %d", vertical)
            vertical = None

        if raw.horizontal is None:
            raise MissingHorizontalCode(vertical)

        crs = EpsgCrs(horizontal=raw.horizontal, vertical=vertical)
        if not in_epsg_range(raw.horizontal, self.bounds):
            raise BadHorizontalCodeParsed(crs)
        return crs

    def __repr__(self) -> str:
        return f"EpsgValidator(bounds={self.bounds})"
