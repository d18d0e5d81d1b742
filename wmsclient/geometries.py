"""Helper classes to handle the bounding boxes of the capabilities document."""

from __future__ import annotations

from dataclasses import dataclass

from wmsclient.crs import is_north_east_order
from wmsclient.versions import WMSVersion

__all__ = [
    "BoundingBox",
    "SpatialReferencedBoundingBox",
]


@dataclass(frozen=True)
class BoundingBox:
    """A bounding box.
    Due to the overlap between 2 elements, this is used for 2 cases:

    * The ``<LatLonBoundingBox>`` element of WMS 1.0 - 1.1.1.
    * The ``<EX_GeographicBoundingBox>`` element of WMS 1.3.0.

    Both are expressed in longitude/latitude.
    """

    min_x: float
    min_y: float
    max_x: float
    max_y: float

    @property
    def lower_corner(self):
        return [self.min_x, self.min_y]

    @property
    def upper_corner(self):
        return [self.max_x, self.max_y]

    @property
    def extent(self) -> tuple[float, float, float, float]:
        return (self.min_x, self.min_y, self.max_x, self.max_y)


@dataclass(frozen=True)
class SpatialReferencedBoundingBox(BoundingBox):
    """The ``<BoundingBox>`` element of a layer, which is expressed in a given EPSG system.

    The X/Y coordinates can be either latitude or longitude, depending on the CRS and WMS version.
    """

    epsg: int

    def get_xy_extent(self, version: WMSVersion) -> tuple[float, float, float, float]:
        """Provide the extent in x/y (e.g. longitude/latitude) ordering.

        WMS 1.3.0 follows the axis order that the EPSG authority defines,
        which means the ``minx`` attribute holds the latitude for EPSG:4326.
        Older versions always used x/y ordering.

        :raises ExternalParsingError: When the EPSG code is unknown.
        """
        if version == WMSVersion.V1_3_0 and is_north_east_order(self.epsg):
            return (self.min_y, self.min_x, self.max_y, self.max_x)
        else:
            return self.extent
