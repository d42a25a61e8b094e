"""Tests for the LAS/LAZ header adapter."""

import io
import logging
import struct
from types import SimpleNamespace

import laspy
import laspy.header
import numpy as np
import pytest
from laspy.errors import LaspyException

from pylascrs import (
    BadHorizontalCodeParsed,
    CrsResolver,
    EpsgCrs,
    EpsgValidator,
    MalformedGeoTiffDirectory,
    NoCrsRecordPresent,
)
from pylascrs.io.las import LasCrsHeader, read_las_crs, read_projection_records

PROJECTED_CS_TYPE = 3072


def _projection_vlr(record_id: int, data: bytes, user_id: str = "LASF_Projection") -> laspy.VLR:
    return laspy.VLR(user_id=user_id, record_id=record_id, record_data=data)


def _fake_header(vlrs=(), evlrs=None, wkt_flag=None):
    header = SimpleNamespace(vlrs=list(vlrs), evlrs=evlrs)
    if wkt_flag is not None:
        header.global_encoding = SimpleNamespace(wkt=wkt_flag)
    return header


def _write_las(path, vlrs) -> str:
    """Write a tiny LAS 1.2 file carrying the given VLRs."""
    header = laspy.LasHeader(
        point_format=0,
        version=laspy.header.Version(major=1, minor=2),
    )
    header.generating_software = "pylascrs"
    for vlr in vlrs:
        header.vlrs.append(vlr)
    las = laspy.LasData(header)
    las.x = np.array([1.0, 2.0, 3.0])
    las.y = np.array([10.0, 20.0, 30.0])
    las.z = np.array([0.1, 0.2, 0.3])
    las.write(str(path))
    return str(path)


class TestLasCrsHeader:
    def test_collects_wkt_and_geotiff(self, wkt1_utm33n, projected_directory):
        header = LasCrsHeader(_fake_header([
            _projection_vlr(2112, wkt1_utm33n.encode()),
            _projection_vlr(34735, projected_directory),
        ]))
        assert header.get_wkt_crs_bytes() == wkt1_utm33n.encode()
        assert header.get_geotiff_crs() == projected_directory

    def test_user_id_is_case_insensitive(self, wkt1_utm33n):
        header = LasCrsHeader(_fake_header([
            _projection_vlr(2112, wkt1_utm33n.encode(), user_id="lasf_projection"),
        ]))
        assert header.get_wkt_crs_bytes() is not None

    def test_ignores_other_records(self, projected_directory):
        header = LasCrsHeader(_fake_header([
            _projection_vlr(34736, b"\x00" * 8),
            _projection_vlr(34735, projected_directory, user_id="SomeoneElse"),
        ]))
        assert header.get_geotiff_crs() is None
        assert header.get_wkt_crs_bytes() is None

    def test_evlr_overrides_vlr(self, wkt1_utm33n, wkt2_utm32n):
        header = LasCrsHeader(_fake_header(
            vlrs=[_projection_vlr(2112, wkt1_utm33n.encode())],
            evlrs=[_projection_vlr(2112, wkt2_utm32n.encode())],
        ))
        assert header.get_wkt_crs_bytes() == wkt2_utm32n.encode()

    def test_warns_when_flag_set_without_record(self, caplog):
        with caplog.at_level(logging.WARNING, logger="pylascrs.io.las"):
            LasCrsHeader(_fake_header(wkt_flag=True))
        assert "header says it exists" in caplog.text

    def test_warns_when_record_without_flag(self, wkt1_utm33n, caplog):
        with caplog.at_level(logging.WARNING, logger="pylascrs.io.las"):
            LasCrsHeader(_fake_header(
                [_projection_vlr(2112, wkt1_utm33n.encode())], wkt_flag=False
            ))
        assert "header says it does not exist" in caplog.text

    def test_warns_on_both_records(self, wkt1_utm33n, projected_directory, caplog):
        with caplog.at_level(logging.WARNING, logger="pylascrs.io.las"):
            LasCrsHeader(_fake_header([
                _projection_vlr(2112, wkt1_utm33n.encode()),
                _projection_vlr(34735, projected_directory),
            ], wkt_flag=True))
        assert "Both WKT and GeoTIFF" in caplog.text


class TestReadLasCrs:
    def test_wkt_file(self, tmp_path, wkt1_utm33n):
        path = _write_las(tmp_path / "wkt.las", [_projection_vlr(2112, wkt1_utm33n.encode())])
        assert read_las_crs(path) == EpsgCrs(32633)

    def test_geotiff_file(self, tmp_path, projected_directory):
        path = _write_las(tmp_path / "geotiff.las", [_projection_vlr(34735, projected_directory)])
        assert read_las_crs(path) == EpsgCrs(25832, 5783)

    def test_compound_wkt_laz_file(self, tmp_path, wkt2_compound):
        path = _write_las(tmp_path / "compound.laz", [_projection_vlr(2112, wkt2_compound.encode())])
        assert read_las_crs(path) == EpsgCrs(25832, 5783)

    def test_file_without_crs(self, tmp_path):
        path = _write_las(tmp_path / "none.las", [])
        with pytest.raises(NoCrsRecordPresent):
            read_las_crs(path)

    def test_sentinel_code_file(self, tmp_path):
        wkt = b'PROJCS["unknown",AUTHORITY["EPSG","0"]]'
        path = _write_las(tmp_path / "zero.las", [_projection_vlr(2112, wkt)])
        with pytest.raises(BadHorizontalCodeParsed) as exc_info:
            read_las_crs(path)
        assert exc_info.value.crs.horizontal == 0

    def test_custom_resolver(self, tmp_path, wkt1_utm33n):
        path = _write_las(tmp_path / "wkt.las", [_projection_vlr(2112, wkt1_utm33n.encode())])
        resolver = CrsResolver(validator=EpsgValidator(bounds=(1, 2)))
        with pytest.raises(BadHorizontalCodeParsed):
            read_las_crs(path, resolver=resolver)

    def test_geotiff_key_count_is_not_repaired(self, tmp_path, geokey_directory):
        # Declares 3 keys but holds one
        data = geokey_directory((PROJECTED_CS_TYPE, 0, 1, 32633), num_keys=3)
        path = _write_las(tmp_path / "short.las", [_projection_vlr(34735, data)])
        with pytest.raises(MalformedGeoTiffDirectory, match="declares 3 keys"):
            read_las_crs(path)

    def test_geotiff_value_stored_after_entries(self, tmp_path):
        # header(0-3), entry(4-7), value(8)
        data = struct.pack("<9H", 1, 1, 0, 1, PROJECTED_CS_TYPE, 34735, 1, 8, 32633)
        path = _write_las(tmp_path / "stored.las", [_projection_vlr(34735, data)])
        assert read_las_crs(path) == EpsgCrs(32633)


def _raw_las14(vlrs=(), evlrs=()) -> bytes:
    """Header-and-records-only LAS 1.4 image, enough for the record reader."""
    body = b"".join(
        struct.pack("<H16sHH32s", 0, user.encode(), rid, len(data), b"") + data
        for user, rid, data in vlrs
    )
    header = bytearray(375)
    header[:4] = b"LASF"
    header[24:26] = bytes([1, 4])
    struct.pack_into("<H", header, 94, 375)
    struct.pack_into("<I", header, 100, len(vlrs))
    tail = b"".join(
        struct.pack("<H16sHQ32s", 0, user.encode(), rid, len(data), b"") + data
        for user, rid, data in evlrs
    )
    struct.pack_into("<QI", header, 235, 375 + len(body), len(evlrs))
    return bytes(header) + body + tail


class TestReadProjectionRecords:
    def test_vlrs_and_evlrs(self, wkt1_utm33n, wkt2_utm32n, projected_directory):
        image = _raw_las14(
            vlrs=[
                ("LASF_Projection", 2112, wkt1_utm33n.encode()),
                ("SomeoneElse", 2112, b"ignored"),
                ("LASF_Projection", 34735, projected_directory),
            ],
            evlrs=[("LASF_Projection", 2112, wkt2_utm32n.encode())],
        )
        records = read_projection_records(io.BytesIO(image))
        assert records == {
            2112: wkt2_utm32n.encode(),
            34735: projected_directory,
        }

    def test_not_a_las_file(self):
        with pytest.raises(LaspyException, match="LASF"):
            read_projection_records(io.BytesIO(b"\x00" * 400))

    def test_truncated_record(self):
        image = _raw_las14(vlrs=[("LASF_Projection", 2112, b"PROJCS[]")])
        with pytest.raises(LaspyException, match="declares 8 bytes"):
            read_projection_records(io.BytesIO(image[:-3]))

    def test_records_override_header_vlrs(self, wkt1_utm33n, wkt2_utm32n):
        header = LasCrsHeader(
            _fake_header([_projection_vlr(2112, wkt1_utm33n.encode())]),
            records={2112: wkt2_utm32n.encode(), 34736: b"\x00" * 8},
        )
        assert header.get_wkt_crs_bytes() == wkt2_utm32n.encode()
        assert header.get_geotiff_crs() is None
