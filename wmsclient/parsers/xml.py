"""XML parsing for all capabilities documents.

This logic uses the etree logic from the standard library,
with a custom element class that exposes the local tag name.
Using defusedxml, external entities and entity expansion attacks are prevented.
"""

from __future__ import annotations

import logging
import typing
from enum import Enum
from xml.etree.ElementTree import Element, TreeBuilder

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import DefusedXMLParser, ParseError

from wmsclient.exceptions import MalformedDocumentError

logger = logging.getLogger(__name__)

__all__ = (
    "xmlns",
    "NSElement",
    "parse_xml_from_string",
    "split_ns",
)


class xmlns(Enum):
    """Common namespaces within WMS land.
    Note these short aliases are arbitrary in XML syntax;
    the XML code may use any alias (such as ns0).
    The full qualified name (e.g. ``<{http://www.opengis.net/wms}Layer>``) is the actual tag name.
    """

    # XML standard
    xsi = "http://www.w3.org/2001/XMLSchema-instance"
    xlink = "http://www.w3.org/1999/xlink"

    # APIs by the Open Geospatial Consortium (OGC)
    wms = "http://www.opengis.net/wms"  # Web Map Service (WMS) 1.3
    ogc = "http://www.opengis.net/ogc"  # ServiceExceptionReport of WMS 1.3

    def __str__(self):
        # Python 3.11+ has StrEnum for this.
        return self.value


class NSElement(Element):
    """Custom XML element, which also exposes the tag without its namespace.

    Namespace aliases are arbitrary in XML syntax, so elements are reported
    by their local name. For example, both of these request bindings are named ``Post``:

    * ``<Post><OnlineResource xlink:href="..."/></Post>``
    * ``<wms:Post><wms:OnlineResource xlink:href="..."/></wms:Post>``
    """

    @property
    def localname(self) -> str:
        """Provide the tag name without any namespace."""
        return split_ns(self.tag)[1]

    if typing.TYPE_CHECKING:
        # Make sure the type checking knows the actual type of the elements.
        def find(self, path: str, namespaces: dict[str, str] | None = None) -> NSElement | None:
            return super().find(path, namespaces)

        def findall(self, path: str, namespaces: dict[str, str] | None = None) -> list[NSElement]:
            return super().findall(path, namespaces)

        def __iter__(self) -> typing.Iterator[NSElement]:
            return super().__iter__()


def parse_xml_from_string(xml_string: str | bytes) -> NSElement:
    """Provide a safe and consistent way for parsing XML.

    All elements are created as :class:`NSElement`, which adds the :attr:`~NSElement.localname`.

    Unlike incoming requests, capabilities documents of WMS 1.0 - 1.1.1
    carry a ``<!DOCTYPE>`` declaration. That is allowed here,
    but the entities it may declare are never resolved or expanded.
    """
    # Passing a custom parser potentially circumvents defusedxml,
    # so note the parser is again configured in the same way:
    parser = DefusedXMLParser(
        target=TreeBuilder(element_factory=NSElement),
        forbid_dtd=False,
        forbid_entities=True,
        forbid_external=True,
    )

    # A str can't be fed with an encoding declaration, strip it.
    if isinstance(xml_string, str) and xml_string.startswith("<?"):
        xml_string = xml_string[xml_string.find("?>") + 2 :]

    try:
        parser.feed(xml_string)
        return parser.close()
    except (ParseError, DefusedXmlException) as e:
        # Offer consistent results for callers to check for invalid data.
        logger.debug("Parsing XML error: %s", e)
        raise MalformedDocumentError(f"Could not parse the capabilities document: {e}") from e


def split_ns(xml_name: str) -> tuple[str | None, str]:
    """Split the element tag or attribute/text value into the namespace and
    local name. The stdlib etree doesn't have the properties for this (lxml does).
    """
    # Tags may start with a `{ns}`
    if xml_name.startswith("{"):
        end = xml_name.index("}")
        return xml_name[1:end], xml_name[end + 1 :]
    else:
        return None, xml_name
