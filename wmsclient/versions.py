"""Version negotiation of the capabilities document.

The WMS versions differ in a few element names, and only 1.3.0 uses an XML namespace.
Instead of checking the version throughout the parser, the differences are collected
into a :class:`VersionPolicy` that is selected once, and passed to every parsing function.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum

from wmsclient.exceptions import MissingVersionError, UnsupportedVersionError
from wmsclient.parsers.xml import NSElement, xmlns

logger = logging.getLogger(__name__)

__all__ = (
    "WMSVersion",
    "VersionPolicy",
    "negotiate_version",
)


class WMSVersion(Enum):
    """The supported WMS versions.
    There are no version ranges in this protocol, each value is matched literally.
    """

    V1_0_0 = "1.0.0"
    V1_1_0 = "1.1.0"
    V1_1_1 = "1.1.1"
    V1_3_0 = "1.3.0"

    def __str__(self):
        return self.value

    @classmethod
    def _missing_(cls, value):
        raise UnsupportedVersionError(value)


@dataclass(frozen=True)
class VersionPolicy:
    """The version-specific bits of the capabilities schema.

    The ``namespaces`` follow the aliases that are commonly used in XPath expressions;
    the ``sm`` prefix points to the WMS namespace in 1.3.0 and to no namespace otherwise.
    """

    version: WMSVersion

    #: The element name for the reference systems of a layer.
    crs_tag: str

    #: The namespace of all elements (None for documents without namespaces).
    default_namespace: str | None

    namespaces: dict[str, str] = field(default_factory=dict)

    #: Operations that had a different element name, e.g. {"GetMap": "Map"}.
    operation_tags: dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_version(cls, version: WMSVersion) -> VersionPolicy:
        """Select the policy for a version."""
        return _POLICIES[version]

    def qname(self, local_name: str) -> str:
        """Give the fully qualified name for an element in the WMS schema."""
        if self.default_namespace:
            return f"{{{self.default_namespace}}}{local_name}"
        else:
            return local_name

    def resolve(self, path: str) -> str:
        """Resolve a path (e.g. ``sm:ContactInformation/sm:ContactAddress``) to qualified names.
        Steps without a prefix are treated as part of the WMS schema too.
        """
        return "/".join(self._resolve_step(step) for step in path.split("/"))

    def _resolve_step(self, step: str) -> str:
        if step in (".", "..", "*") or step.startswith("{"):
            return step

        prefix, _, local_name = step.rpartition(":")
        if prefix and prefix != "sm":
            uri = self.namespaces[prefix]
            return f"{{{uri}}}{local_name}" if uri else local_name
        else:
            return self.qname(local_name)

    def find(self, element: NSElement, path: str) -> NSElement | None:
        return element.find(self.resolve(path))

    def findall(self, element: NSElement, path: str) -> list[NSElement]:
        return element.findall(self.resolve(path))

    def findtext(self, element: NSElement, path: str) -> str | None:
        """Give the text of an element, or ``None`` when it doesn't exist."""
        return element.findtext(self.resolve(path))

    def attrib(self, element: NSElement, name: str) -> str | None:
        """Give an attribute (e.g. ``xlink:href``), or ``None`` when it doesn't exist."""
        # Attributes without a prefix never inherit the default namespace.
        return element.get(self._resolve_step(name) if ":" in name else name)


def _build_policy(version: WMSVersion) -> VersionPolicy:
    wms_ns = xmlns.wms.value if version == WMSVersion.V1_3_0 else ""
    return VersionPolicy(
        version=version,
        crs_tag="SRS" if version in (WMSVersion.V1_1_0, WMSVersion.V1_1_1) else "CRS",
        default_namespace=wms_ns or None,
        namespaces={
            "": wms_ns,
            "sm": wms_ns,
            "xlink": xmlns.xlink.value,
            "xsi": xmlns.xsi.value,
        },
        operation_tags=(
            {"GetCapabilities": "Capabilities", "GetMap": "Map", "GetFeatureInfo": "FeatureInfo"}
            if version == WMSVersion.V1_0_0
            else {}
        ),
    )


_POLICIES = {version: _build_policy(version) for version in WMSVersion}


def negotiate_version(root: NSElement) -> VersionPolicy:
    """Read the ``version`` attribute of the root element, and select the matching policy.

    :raises MissingVersionError: When the attribute is absent.
    :raises UnsupportedVersionError: When the version is not one of the known literals.
    """
    raw_version = root.get("version")
    if raw_version is None:
        raise MissingVersionError()

    version = WMSVersion(raw_version)
    logger.debug("Negotiated WMS version %s for <%s>", version, root.tag)
    return VersionPolicy.for_version(version)
