"""Lidar container adapters."""

from pylascrs.io.las import LasCrsHeader, read_las_crs

__all__ = ["LasCrsHeader", "read_las_crs"]
