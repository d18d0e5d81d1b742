"""The Python objects that describe a parsed capabilities document.

All objects are immutable; the whole tree is created in a single parsing run
by :func:`wmsclient.parsers.capabilities.parse_capabilities`.
Optional data that the server omitted is ``None``, or an empty tuple for lists.

The structure follows the XML layout::

    CapabilitiesDocument
    ├── ServiceDescription
    │   └── ContactInformation
    ├── operations: {OperationKind: OperationDescriptor}
    │                                └── OnlineResource, ...
    └── LayerNode (root)
        ├── LayerStyle, ...
        ├── SpatialReferencedBoundingBox, ...
        └── LayerNode, ... (child layers)
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum

from wmsclient.geometries import BoundingBox, SpatialReferencedBoundingBox
from wmsclient.parsers.xml import NSElement
from wmsclient.versions import WMSVersion

__all__ = (
    "OperationKind",
    "OnlineResource",
    "OperationDescriptor",
    "ContactAddress",
    "ContactPersonPrimary",
    "ContactInformation",
    "ServiceDescription",
    "LegendURL",
    "LayerStyle",
    "LayerNode",
    "CapabilitiesDocument",
)

RE_XML_ENCODING = re.compile(rb"""\A\s*<\?xml[^>]*?\sencoding=["']([A-Za-z0-9._-]+)["']""")
RE_XML_TEXT_ENCODING = re.compile(RE_XML_ENCODING.pattern.decode("ascii"))


class OperationKind(Enum):
    """The operations a WMS server may advertise in ``<Capability><Request>``.
    Each member name is exactly the XML tag that it refers to.
    """

    GetCapabilities = "GetCapabilities"
    GetMap = "GetMap"
    GetFeatureInfo = "GetFeatureInfo"
    DescribeLayer = "DescribeLayer"  # SLD extension
    GetLegendGraphic = "GetLegendGraphic"  # SLD extension
    GetStyles = "GetStyles"  # SLD extension
    PutStyles = "PutStyles"  # SLD extension

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class OnlineResource:
    """A link to a resource on the server.

    For requests, the ``type`` is the HTTP binding element name, without any namespace alias
    (e.g. ``Get`` or ``Post``).
    For legend images, the ``type`` is the image format.
    """

    type: str | None
    url: str


@dataclass(frozen=True)
class OperationDescriptor:
    """The endpoints and output formats of a single operation."""

    online_resources: tuple[OnlineResource, ...] = ()

    #: The output formats, as given by the server (including any duplicates).
    formats: tuple[str, ...] = ()

    def get_url(self, binding: str = "Get") -> str | None:
        """Find the endpoint of a given binding (compared case-insensitive)."""
        binding = binding.lower()
        for resource in self.online_resources:
            if resource.type and resource.type.lower() == binding:
                return resource.url
        return None


@dataclass(frozen=True)
class ContactAddress:
    address_type: str | None = None
    address: str | None = None
    city: str | None = None
    state_or_province: str | None = None
    post_code: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class ContactPersonPrimary:
    person: str | None = None
    organisation: str | None = None


@dataclass(frozen=True)
class ContactInformation:
    person_primary: ContactPersonPrimary = field(default_factory=ContactPersonPrimary)
    position: str | None = None
    address: ContactAddress = field(default_factory=ContactAddress)
    voice_telephone: str | None = None
    facsimile_telephone: str | None = None
    electronic_mail_address: str | None = None


@dataclass(frozen=True)
class ServiceDescription:
    """The ``<Service>`` section, describing the server as a whole."""

    title: str | None = None
    online_resource: str | None = None
    abstract: str | None = None
    fees: str | None = None
    access_constraints: str | None = None
    keywords: tuple[str, ...] = ()
    contact_information: ContactInformation = field(default_factory=ContactInformation)


@dataclass(frozen=True)
class LegendURL:
    """The legend image of a style."""

    width: int
    height: int

    #: The image URL, its ``type`` holds the image format.
    online_resource: OnlineResource

    @property
    def size(self) -> tuple[int, int]:
        return (self.width, self.height)


@dataclass(frozen=True)
class LayerStyle:
    """A ``<Style>`` element of a layer."""

    name: str | None = None
    title: str | None = None
    abstract: str | None = None
    legend_url: LegendURL | None = None
    style_sheet_url: OnlineResource | None = None


@dataclass(frozen=True)
class LayerNode:
    """A ``<Layer>`` element, with all its child layers.

    Each node only holds the data that was written inside its own element.
    Values that WMS defines as inherited (e.g. the CRS list or styles)
    are not copied from the parent layer.
    """

    #: The name for GetMap requests, absent for layers that only group other layers.
    name: str | None = None
    title: str | None = None
    abstract: str | None = None
    queryable: bool = False
    keywords: tuple[str, ...] = ()

    #: The supported reference systems (the ``<SRS>`` or ``<CRS>`` elements).
    crs: tuple[str, ...] = ()
    styles: tuple[LayerStyle, ...] = ()

    #: The ``<LatLonBoundingBox>`` or ``<EX_GeographicBoundingBox>``.
    lat_lon_bounding_box: BoundingBox | None = None

    #: The ``<BoundingBox>`` elements that could be parsed.
    bounding_boxes: tuple[SpatialReferencedBoundingBox, ...] = ()

    #: How many ``<BoundingBox>`` elements were skipped because they were malformed.
    skipped_bounding_boxes: int = 0

    layers: tuple[LayerNode, ...] = ()

    @property
    def is_group(self) -> bool:
        """Tell whether this layer can't be requested itself."""
        return not self.name

    def get_bounding_box(self, epsg: int) -> SpatialReferencedBoundingBox | None:
        """Find the bounding box for a given EPSG code."""
        for bounding_box in self.bounding_boxes:
            if bounding_box.epsg == epsg:
                return bounding_box
        return None

    def iter_layers(self) -> Iterator[LayerNode]:
        """Walk over this layer and all its descendants, in document order."""
        yield self
        for layer in self.layers:
            yield from layer.iter_layers()


@dataclass(frozen=True)
class CapabilitiesDocument:
    """The parsed result of a ``GetCapabilities`` request."""

    version: WMSVersion
    service: ServiceDescription
    layer: LayerNode
    operations: Mapping[OperationKind, OperationDescriptor] = field(default_factory=dict)
    exception_formats: tuple[str, ...] = ()

    #: The ``<VendorSpecificCapabilities>`` element, as-is.
    vendor_specific_capabilities: NSElement | None = field(default=None, compare=False, repr=False)

    #: The XML data that was parsed.
    source: bytes | str = field(default=b"", compare=False, repr=False)

    def get_operation(self, kind: OperationKind | str) -> OperationDescriptor | None:
        """Give the operation, or ``None`` when the server doesn't support it."""
        return self.operations.get(OperationKind(kind))

    def supports(self, kind: OperationKind | str) -> bool:
        """Tell whether the server advertised a given operation."""
        return OperationKind(kind) in self.operations

    def iter_layers(self) -> Iterator[LayerNode]:
        """Walk over all layers, in document order."""
        return self.layer.iter_layers()

    @property
    def named_layers(self) -> list[LayerNode]:
        """All layers that can be requested by name."""
        return [layer for layer in self.iter_layers() if not layer.is_group]

    def get_layer(self, name: str) -> LayerNode | None:
        """Find a layer by its name."""
        for layer in self.iter_layers():
            if layer.name == name:
                return layer
        return None

    @property
    def xml_bytes(self) -> bytes:
        """The capabilities document as bytes.

        A document that was received as text is encoded with its declared encoding,
        so the bytes can be parsed again with the same result.
        """
        if isinstance(self.source, str):
            match = RE_XML_TEXT_ENCODING.match(self.source)
            encoding = match.group(1) if match else "utf-8"
            return self.source.encode(encoding, errors="xmlcharrefreplace")
        return self.source

    @property
    def xml_text(self) -> str:
        """The capabilities document as text, decoded with its declared encoding.
        Without a declaration, it is read as UTF-8 (skipping any byte order mark).
        """
        if isinstance(self.source, str):
            return self.source

        match = RE_XML_ENCODING.match(self.source)
        encoding = match.group(1).decode("ascii") if match else "utf-8-sig"
        return self.source.decode(encoding)
