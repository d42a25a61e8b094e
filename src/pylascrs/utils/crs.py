"""EPSG registry lookups wrapping pyproj.

Kept out of the parsing core: the resolver only range-checks codes.
Pass ``is_registered_epsg`` (or any ``code -> bool`` callable) where a
registry check is wanted.
"""

from __future__ import annotations

from typing import Callable

from pyproj import CRS
from pyproj.exceptions import CRSError as ProjCRSError

from pylascrs.core.crs import EpsgCrs


def is_registered_epsg(code: int) -> bool:
    """Check whether an EPSG code exists in the PROJ database."""
    try:
        CRS.from_epsg(code)
    except ProjCRSError:
        return False
    return True


def unregistered_codes(
    crs: EpsgCrs,
    lookup: Callable[[int], bool] = is_registered_epsg,
) -> list[int]:
    """Return the codes of ``crs`` that the lookup does not know.

    Args:
        crs: Resolved CRS.
        lookup: Registry capability, ``code -> is registered``.
    """
    codes = [crs.horizontal]
    if crs.vertical is not None:
        codes.append(crs.vertical)
    return [code for code in codes if not lookup(code)]


def to_pyproj_crs(crs: EpsgCrs) -> CRS:
    """Build a pyproj.CRS, compound when a vertical code is present."""
    if crs.vertical is None:
        return CRS.from_epsg(crs.horizontal)
    return CRS.from_user_input(f"EPSG:{crs.horizontal}+{crs.vertical}")
