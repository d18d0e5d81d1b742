"""Parsing of the WMS capabilities document into :mod:`wmsclient.types` objects.

The parsing happens in a single pass over the XML tree:

* :func:`parse_capabilities` negotiates the version, and checks the mandatory sections.
* :func:`parse_service` reads the ``<Service>`` section.
* :func:`parse_capability` reads the ``<Capability>`` section,
  using :func:`parse_operation` for each ``<Request>`` child,
  and :func:`parse_layer` for the (recursive) ``<Layer>`` tree.

Every function receives the :class:`~wmsclient.versions.VersionPolicy`,
which hides the differences between the WMS versions.

Missing optional elements never raise errors, they produce ``None`` or empty values.
Only the absence of the mandatory elements is fatal. The ``<BoundingBox>`` elements
are an exception to this rule: a malformed bounding box is skipped, as servers
frequently advertise reference systems (or coordinates) that can't be read.
"""

from __future__ import annotations

import logging
import re
from types import MappingProxyType

from wmsclient.exceptions import (
    ExternalParsingError,
    MissingCapabilitySectionError,
    MissingLayerError,
    MissingOnlineResourceError,
    MissingRequestSectionError,
    MissingServiceSectionError,
    ServiceExceptionReported,
)
from wmsclient.geometries import BoundingBox, SpatialReferencedBoundingBox
from wmsclient.parsers.xml import NSElement, parse_xml_from_string
from wmsclient.types import (
    CapabilitiesDocument,
    ContactAddress,
    ContactInformation,
    ContactPersonPrimary,
    LayerNode,
    LayerStyle,
    LegendURL,
    OnlineResource,
    OperationDescriptor,
    OperationKind,
    ServiceDescription,
)
from wmsclient.versions import VersionPolicy, negotiate_version

logger = logging.getLogger(__name__)

__all__ = (
    "parse_capabilities",
    "parse_service",
    "parse_capability",
    "parse_operation",
    "parse_layer",
    "parse_float",
    "parse_epsg_code",
)

# Numbers are always written in the invariant notation, e.g. "-12.5" or "1.2E-4".
RE_FLOAT = re.compile(r"\A[-+]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][-+]?[0-9]+)?\Z")
RE_INTEGER = re.compile(r"\A[-+]?[0-9]+\Z")

EPSG_PREFIX = "EPSG:"

#: The attributes that may hold the reference system of a ``<BoundingBox>``, by preference.
BOUNDING_BOX_CRS_ATTRIBUTES = ("srs", "crs", "SRS", "CRS")

#: The full globe, as default for missing values of a ``<LatLonBoundingBox>``.
WORLD_EXTENT = (-180.0, -90.0, 180.0, 90.0)


def parse_float(raw_value: str | None) -> float:
    """Translate a number in invariant notation into a float."""
    value = raw_value.strip() if raw_value else ""
    if not RE_FLOAT.match(value):
        raise ExternalParsingError(f"Can't cast '{raw_value}' to a number")
    return float(value)


def parse_float_or_default(raw_value: str | None, default: float) -> float:
    """Translate a number, using the default when it's missing or unreadable."""
    try:
        return parse_float(raw_value)
    except ExternalParsingError:
        return default


def parse_int(raw_value: str | None) -> int:
    value = raw_value.strip() if raw_value else ""
    if not RE_INTEGER.match(value):
        raise ExternalParsingError(f"Can't cast '{raw_value}' to an integer")
    return int(value)


def parse_epsg_code(raw_value: str | None) -> int:
    """Extract the code from a notation like ``EPSG:4326``.

    Other notations (such as ``CRS:84`` or URNs) are not recognized.
    """
    if not raw_value:
        raise ExternalParsingError("No reference system given")

    index = raw_value.find(EPSG_PREFIX)
    if index < 0:
        raise ExternalParsingError(f"Reference system '{raw_value}' is not an EPSG code")
    return parse_int(raw_value[index + len(EPSG_PREFIX) :])


def parse_capabilities(xml_string: str | bytes) -> CapabilitiesDocument:
    """Parse a capabilities document.

    :raises MalformedDocumentError: When the XML can't be parsed.
    :raises ServiceExceptionReported: When the server returned an exception report.
    :raises VersionError: When the version is missing or not supported.
    :raises MissingElementError: When a mandatory element is missing.
    """
    root = parse_xml_from_string(xml_string)
    if root.localname == "ServiceExceptionReport":
        _raise_service_exception(root)

    policy = negotiate_version(root)

    service_element = policy.find(root, "sm:Service")
    if service_element is None:
        raise MissingServiceSectionError()

    capability_element = policy.find(root, "sm:Capability")
    if capability_element is None:
        raise MissingCapabilitySectionError()

    service = parse_service(service_element, policy)
    operations, layer, exception_formats, vendor_specific = parse_capability(
        capability_element, policy
    )

    return CapabilitiesDocument(
        version=policy.version,
        service=service,
        layer=layer,
        operations=operations,
        exception_formats=exception_formats,
        vendor_specific_capabilities=vendor_specific,
        source=xml_string,
    )


def _raise_service_exception(root: NSElement):
    """Report the ``<ServiceException>`` that the server returned."""
    exception = next(iter(root), None)
    if exception is None:
        raise ServiceExceptionReported(None)

    text = (exception.text or "").strip() or None
    raise ServiceExceptionReported(text, code=exception.get("code"))


def parse_service(element: NSElement, policy: VersionPolicy) -> ServiceDescription:
    """Parse the ``<Service>`` section. All fields are optional."""
    return ServiceDescription(
        title=policy.findtext(element, "sm:Title"),
        online_resource=_parse_service_online_resource(element, policy),
        abstract=policy.findtext(element, "sm:Abstract"),
        fees=policy.findtext(element, "sm:Fees"),
        access_constraints=policy.findtext(element, "sm:AccessConstraints"),
        keywords=_parse_keywords(element, policy),
        contact_information=_parse_contact_information(element, policy),
    )


def _parse_service_online_resource(element: NSElement, policy: VersionPolicy) -> str | None:
    online_resource = policy.find(element, "sm:OnlineResource")
    if online_resource is None:
        return None

    url = policy.attrib(online_resource, "xlink:href")
    if url is None:
        # WMS 1.0 wrote this as <OnlineResource>http://...</OnlineResource>
        url = (online_resource.text or "").strip() or None
    return url


def _parse_keywords(element: NSElement, policy: VersionPolicy) -> tuple[str, ...]:
    return tuple(
        keyword.text or "" for keyword in policy.findall(element, "sm:KeywordList/sm:Keyword")
    )


def _parse_contact_information(element: NSElement, policy: VersionPolicy) -> ContactInformation:
    contact = policy.find(element, "sm:ContactInformation")
    if contact is None:
        return ContactInformation()

    return ContactInformation(
        person_primary=ContactPersonPrimary(
            person=policy.findtext(contact, "sm:ContactPersonPrimary/sm:ContactPerson"),
            organisation=policy.findtext(
                contact, "sm:ContactPersonPrimary/sm:ContactOrganization"
            ),
        ),
        position=policy.findtext(contact, "sm:ContactPosition"),
        address=ContactAddress(
            address_type=policy.findtext(contact, "sm:ContactAddress/sm:AddressType"),
            address=policy.findtext(contact, "sm:ContactAddress/sm:Address"),
            city=policy.findtext(contact, "sm:ContactAddress/sm:City"),
            state_or_province=policy.findtext(contact, "sm:ContactAddress/sm:StateOrProvince"),
            post_code=policy.findtext(contact, "sm:ContactAddress/sm:PostCode"),
            country=policy.findtext(contact, "sm:ContactAddress/sm:Country"),
        ),
        voice_telephone=policy.findtext(contact, "sm:ContactVoiceTelephone"),
        facsimile_telephone=policy.findtext(contact, "sm:ContactFacsimileTelephone"),
        electronic_mail_address=policy.findtext(contact, "sm:ContactElectronicMailAddress"),
    )


def parse_capability(
    element: NSElement, policy: VersionPolicy
) -> tuple[
    MappingProxyType[OperationKind, OperationDescriptor],
    LayerNode,
    tuple[str, ...],
    NSElement | None,
]:
    """Parse the ``<Capability>`` section.

    This returns the operations, root layer, exception formats
    and the ``<VendorSpecificCapabilities>`` element.

    :raises MissingRequestSectionError: When there is no ``<Request>`` element.
    :raises MissingLayerError: When there is no top-level ``<Layer>`` element.
    """
    request_element = policy.find(element, "sm:Request")
    if request_element is None:
        raise MissingRequestSectionError()

    operations = {}
    for kind in OperationKind:
        tag = policy.operation_tags.get(kind.value, kind.value)
        descriptor = parse_operation(policy.find(request_element, f"sm:{tag}"), policy)
        if descriptor is not None:
            operations[kind] = descriptor

    layer_element = policy.find(element, "sm:Layer")
    if layer_element is None:
        raise MissingLayerError()
    layer = parse_layer(layer_element, policy)

    exception_element = policy.find(element, "sm:Exception")
    exception_formats = (
        _parse_formats(exception_element, policy) if exception_element is not None else ()
    )

    vendor_specific = policy.find(element, "sm:VendorSpecificCapabilities")
    return MappingProxyType(operations), layer, exception_formats, vendor_specific


def parse_operation(
    element: NSElement | None, policy: VersionPolicy
) -> OperationDescriptor | None:
    """Parse a single operation of the ``<Request>`` section (e.g. ``<GetMap>``).

    When the element is absent, the server doesn't support the operation and ``None`` is returned.

    :raises MissingOnlineResourceError: When an HTTP binding has no URL.
    """
    if element is None:
        return None

    online_resources = []
    for http_element in policy.findall(element, "sm:DCPType/sm:HTTP"):
        for binding in http_element:
            online_resources.append(
                OnlineResource(type=binding.localname, url=_get_binding_url(binding, policy))
            )

    return OperationDescriptor(
        online_resources=tuple(online_resources),
        formats=_parse_formats(element, policy),
    )


def _get_binding_url(binding: NSElement, policy: VersionPolicy) -> str:
    """Read the URL of a ``<Get>`` or ``<Post>`` binding."""
    online_resource = policy.find(binding, "sm:OnlineResource")
    if online_resource is not None:
        url = policy.attrib(online_resource, "xlink:href")
    else:
        # WMS 1.0 wrote this as <Get onlineResource="..."/>
        url = binding.get("onlineResource")

    if url is None:
        raise MissingOnlineResourceError(element=binding.localname)
    return url


def _parse_formats(element: NSElement, policy: VersionPolicy) -> tuple[str, ...]:
    """Read the ``<Format>`` elements, in document order."""
    formats = []
    for format_element in policy.findall(element, "sm:Format"):
        if len(format_element):
            # WMS 1.0 listed the formats as child elements, e.g. <Format><PNG/><GIF/></Format>
            formats.extend(child.localname for child in format_element)
        else:
            formats.append(format_element.text or "")
    return tuple(formats)


def parse_layer(element: NSElement, policy: VersionPolicy) -> LayerNode:
    """Parse a ``<Layer>`` element and all its child layers.

    Each node only receives the values that are written in its own element.
    """
    bounding_boxes = BoundingBoxCollector(policy)
    for bbox_element in policy.findall(element, "sm:BoundingBox"):
        bounding_boxes.add(bbox_element)

    if bounding_boxes.skipped:
        logger.debug(
            "Skipped %d malformed <BoundingBox> elements in layer %r: %s",
            len(bounding_boxes.skipped),
            policy.findtext(element, "sm:Name"),
            "; ".join(bounding_boxes.skipped),
        )

    return LayerNode(
        name=policy.findtext(element, "sm:Name"),
        title=policy.findtext(element, "sm:Title"),
        abstract=policy.findtext(element, "sm:Abstract"),
        queryable=element.get("queryable") == "1",
        keywords=_parse_keywords(element, policy),
        crs=tuple(crs.text or "" for crs in policy.findall(element, f"sm:{policy.crs_tag}")),
        styles=tuple(
            _parse_style(style, policy) for style in policy.findall(element, "sm:Style")
        ),
        lat_lon_bounding_box=_parse_lat_lon_bounding_box(element, policy),
        bounding_boxes=tuple(bounding_boxes.bounding_boxes),
        skipped_bounding_boxes=len(bounding_boxes.skipped),
        layers=tuple(parse_layer(child, policy) for child in policy.findall(element, "sm:Layer")),
    )


def _parse_style(element: NSElement, policy: VersionPolicy) -> LayerStyle:
    return LayerStyle(
        name=policy.findtext(element, "sm:Name"),
        title=policy.findtext(element, "sm:Title"),
        abstract=policy.findtext(element, "sm:Abstract"),
        legend_url=_parse_legend_url(element, policy),
        style_sheet_url=_parse_style_sheet_url(element, policy),
    )


def _parse_legend_url(element: NSElement, policy: VersionPolicy) -> LegendURL | None:
    """Parse the ``<LegendURL>``, only when it's complete.
    A legend with an unknown size or location can't be displayed.
    """
    legend = policy.find(element, "sm:LegendURL")
    if legend is None:
        legend = policy.find(element, "sm:LegendUrl")  # seen in the wild
        if legend is None:
            return None

    online_resource = policy.find(legend, "sm:OnlineResource")
    image_format = policy.findtext(legend, "sm:Format")
    if online_resource is None or image_format is None:
        return None

    url = policy.attrib(online_resource, "xlink:href")
    if url is None:
        return None

    try:
        width = parse_int(legend.get("width"))
        height = parse_int(legend.get("height"))
    except ExternalParsingError:
        return None

    return LegendURL(
        width=width,
        height=height,
        online_resource=OnlineResource(type=image_format, url=url),
    )


def _parse_style_sheet_url(element: NSElement, policy: VersionPolicy) -> OnlineResource | None:
    style_sheet = policy.find(element, "sm:StyleSheetURL")
    if style_sheet is None:
        return None

    online_resource = policy.find(style_sheet, "sm:OnlineResource")
    url = policy.attrib(online_resource, "xlink:href") if online_resource is not None else None
    if url is None:
        return None
    return OnlineResource(type=policy.findtext(style_sheet, "sm:Format"), url=url)


def _parse_lat_lon_bounding_box(element: NSElement, policy: VersionPolicy) -> BoundingBox | None:
    """Parse the geographic extent of the layer.

    Each missing value falls back to the full globe, but when the whole element is missing
    there is no extent at all.
    """
    # WMS 1.0 - 1.1.1
    bbox = policy.find(element, "sm:LatLonBoundingBox")
    if bbox is not None:
        return BoundingBox(
            *(
                parse_float_or_default(bbox.get(name), default)
                for name, default in zip(("minx", "miny", "maxx", "maxy"), WORLD_EXTENT)
            )
        )

    # WMS 1.3.0
    bbox = policy.find(element, "sm:EX_GeographicBoundingBox")
    if bbox is not None:
        return BoundingBox(
            *(
                parse_float_or_default(policy.findtext(bbox, f"sm:{name}"), default)
                for name, default in zip(
                    (
                        "westBoundLongitude",
                        "southBoundLatitude",
                        "eastBoundLongitude",
                        "northBoundLatitude",
                    ),
                    WORLD_EXTENT,
                )
            )
        )

    return None


class BoundingBoxCollector:
    """Collect the ``<BoundingBox>`` elements of a layer.

    Unlike the rest of the document, a malformed element is not fatal.
    It's recorded in :attr:`skipped`, and the remaining elements are still read.
    """

    def __init__(self, policy: VersionPolicy):
        self.policy = policy
        self.bounding_boxes: list[SpatialReferencedBoundingBox] = []
        self.skipped: list[str] = []

    def add(self, element: NSElement):
        try:
            bounding_box = self.parse(element)
        except ExternalParsingError as e:
            self.skipped.append(str(e))
        else:
            self.bounding_boxes.append(bounding_box)

    def parse(self, element: NSElement) -> SpatialReferencedBoundingBox:
        """Parse a single element, raise an :class:`ExternalParsingError` when it's malformed."""
        crs = next(
            (
                element.get(name)
                for name in BOUNDING_BOX_CRS_ATTRIBUTES
                if element.get(name) is not None
            ),
            None,
        )
        return SpatialReferencedBoundingBox(
            min_x=parse_float(element.get("minx")),
            min_y=parse_float(element.get("miny")),
            max_x=parse_float(element.get("maxx")),
            max_y=parse_float(element.get("maxy")),
            epsg=parse_epsg_code(crs),
        )
