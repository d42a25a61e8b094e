"""Shared test fixtures."""

import struct

import pytest

GT_MODEL_TYPE = 1024
CITATION = 1026  # GTCitationGeoKey, normally in the ASCII block
PROJECTED_CS_TYPE = 3072
VERTICAL_CS_TYPE = 4096
INLINE = 0
ASCII = 34737


def _build_directory(*keys, num_keys=None, version=1) -> bytes:
    """Build a GeoKey directory from (key, location, count, value) tuples."""
    if num_keys is None:
        num_keys = len(keys)
    words = [version, 1, 0, num_keys]
    for key in keys:
        words.extend(key)
    return struct.pack(f"<{len(words)}H", *words)


WKT1_UTM33N = (
    'PROJCS["WGS 84 / UTM zone 33N",'
    'GEOGCS["WGS 84",'
    'DATUM["WGS_1984",'
    'SPHEROID["WGS 84",6378137,298.257223563,AUTHORITY["EPSG","7030"]],'
    'AUTHORITY["EPSG","6326"]],'
    'PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4326"]],'
    'PROJECTION["Transverse_Mercator"],'
    'PARAMETER["latitude_of_origin",0],'
    'PARAMETER["central_meridian",15],'
    'PARAMETER["scale_factor",0.9996],'
    'PARAMETER["false_easting",500000],'
    'PARAMETER["false_northing",0],'
    'UNIT["metre",1,AUTHORITY["EPSG","9001"]],'
    'AXIS["Easting",EAST],'
    'AXIS["Northing",NORTH],'
    'AUTHORITY["EPSG","32633"]]'
)

WKT1_VERT_NN2000 = (
    'VERT_CS["NN2000 height",'
    'VERT_DATUM["Norwegian Normal Null 2000",2005,AUTHORITY["EPSG","1096"]],'
    'UNIT["metre",1,AUTHORITY["EPSG","9001"]],'
    'AXIS["Gravity-related height",UP],'
    'AUTHORITY["EPSG","5941"]]'
)

WKT1_COMPOUND = (
    f'COMPD_CS["WGS 84 / UTM zone 33N + NN2000 height",{WKT1_UTM33N},{WKT1_VERT_NN2000}]'
)

WKT2_ETRS89_UTM32N = (
    'PROJCRS["ETRS89 / UTM zone 32N",'
    'BASEGEOGCRS["ETRS89",'
    'DATUM["European Terrestrial Reference System 1989",'
    'ELLIPSOID["GRS 1980",6378137,298.257222101,LENGTHUNIT["metre",1]]],'
    'PRIMEM["Greenwich",0,ANGLEUNIT["degree",0.0174532925199433]],'
    'ID["EPSG",4258]],'
    'CONVERSION["UTM zone 32N",'
    'METHOD["Transverse Mercator",ID["EPSG",9807]],'
    'PARAMETER["Longitude of natural origin",9,'
    'ANGLEUNIT["degree",0.0174532925199433],ID["EPSG",8802]],'
    'ID["EPSG",16032]],'
    'CS[Cartesian,2],'
    'AXIS["(E)",east,ORDER[1],LENGTHUNIT["metre",1]],'
    'AXIS["(N)",north,ORDER[2],LENGTHUNIT["metre",1]],'
    'USAGE[SCOPE["Engineering survey, topographic mapping."],'
    'BBOX[38.76,6,84.33,12]],'
    'ID["EPSG",25832]]'
)

WKT2_VERT_DHHN92 = (
    'VERTCRS["DHHN92 height",'
    'VDATUM["Deutsches Haupthoehennetz 1992",ID["EPSG",5181]],'
    'CS[vertical,1],'
    'AXIS["gravity-related height (H)",up,LENGTHUNIT["metre",1]],'
    'ID["EPSG",5783]]'
)

WKT2_COMPOUND = (
    f'COMPOUNDCRS["ETRS89 / UTM zone 32N + DHHN92 height",'
    f'{WKT2_ETRS89_UTM32N},{WKT2_VERT_DHHN92}]'
)


@pytest.fixture
def geokey_directory():
    """Builder for GeoKey directories: geokey_directory((key, loc, count, value), ...)."""
    return _build_directory


@pytest.fixture
def wkt1_utm33n() -> str:
    """WKT1 EPSG:32633 with authority clauses on every nested element."""
    return WKT1_UTM33N


@pytest.fixture
def wkt1_vertical() -> str:
    return WKT1_VERT_NN2000


@pytest.fixture
def wkt1_compound() -> str:
    """WKT1 EPSG:32633 + EPSG:5941, the compound itself has no authority."""
    return WKT1_COMPOUND


@pytest.fixture
def wkt2_utm32n() -> str:
    return WKT2_ETRS89_UTM32N


@pytest.fixture
def wkt2_vertical() -> str:
    return WKT2_VERT_DHHN92


@pytest.fixture
def wkt2_compound() -> str:
    """WKT2 EPSG:25832 + EPSG:5783."""
    return WKT2_COMPOUND


@pytest.fixture
def projected_directory() -> bytes:
    """GeoKey directory: projected model, EPSG:25832 + vertical EPSG:5783."""
    return _build_directory(
        (GT_MODEL_TYPE, INLINE, 1, 1),
        (CITATION, ASCII, 20, 0),
        (PROJECTED_CS_TYPE, INLINE, 1, 25832),
        (VERTICAL_CS_TYPE, INLINE, 1, 5783),
    )
