"""Axis orientation of the reference systems in the capabilities document.

WMS 1.3.0 writes the ``<BoundingBox>`` coordinates in the axis order
that the EPSG authority defines, while older versions always use x/y.
See https://wiki.osgeo.org/wiki/Axis_Order_Confusion for a good summary.
"""

from __future__ import annotations

import logging
from functools import lru_cache

import pyproj
from pyproj.exceptions import CRSError

from wmsclient.exceptions import ExternalParsingError

logger = logging.getLogger(__name__)

__all__ = [
    "get_axis_direction",
    "is_north_east_order",
]


@lru_cache(maxsize=100)
def get_axis_direction(epsg: int) -> tuple[str, ...]:
    """Tell what the axis ordering of an EPSG system is.

    For example, EPSG:4326 returns ``('north', 'east')``,
    while the projected EPSG:3857 returns ``('east', 'north')``.

    :raises ExternalParsingError: When PROJ doesn't know the code.
    """
    try:
        proj_crs = pyproj.CRS.from_epsg(epsg)
    except CRSError as e:
        logger.debug("Unknown reference system EPSG:%d: %s", epsg, e)
        raise ExternalParsingError(f"Unknown reference system EPSG:{epsg}") from e

    return tuple(axis.direction for axis in proj_crs.axis_info)


def is_north_east_order(epsg: int) -> bool:
    """Tell whether the first axis is the northing (e.g. latitude for EPSG:4326)."""
    return get_axis_direction(epsg)[:2] == ("north", "east")
