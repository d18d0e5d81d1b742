"""Retrieving the capabilities document of a WMS server.

The :class:`Client` combines the fetching and parsing::

    client = Client("https://example.com/wms?map=streets")
    for layer in client.document.named_layers:
        print(layer.name, layer.title)

Each client instance holds a single parsed document,
create a new instance to refresh the data.
"""

from __future__ import annotations

import logging

import requests

from wmsclient import conf
from wmsclient.exceptions import TransportError
from wmsclient.parsers.capabilities import parse_capabilities
from wmsclient.validation import validate_xml

logger = logging.getLogger(__name__)

__all__ = (
    "Client",
    "build_capabilities_url",
    "fetch_xml",
)


def build_capabilities_url(base_url: str) -> str:
    """Add the ``SERVICE`` and ``REQUEST`` parameters for a GetCapabilities request.

    Parameters that are already present (compared case-insensitive) are not added twice,
    and any existing parameters (such as ``map=...``) are kept as-is.
    This means the function can be applied multiple times with the same result.
    """
    url = base_url
    if "?" not in url:
        url += "?"
    if not url.endswith(("?", "&")):
        url += "&"

    lowered = url.lower()
    if "service=wms" not in lowered:
        url += "SERVICE=WMS&"
    if "request=getcapabilities" not in lowered:
        url += "REQUEST=GetCapabilities&"
    return url


def _get_proxies(proxy: dict | str | None) -> dict | None:
    if isinstance(proxy, str):
        # A single proxy for all schemes.
        return {"http": proxy, "https": proxy}
    return proxy


def fetch_xml(url: str, timeout: int | None = None, proxy: dict | str | None = None) -> bytes:
    """Perform a single GET request, and return the raw response body.

    :param timeout: The time to wait in milliseconds, defaults to ``WMSCLIENT_DEFAULT_TIMEOUT``.
    :param proxy: The proxy mapping for python-requests, or a single proxy URL.
    :raises TransportError: When the server can't be reached, gives an error status,
        or returns an empty document.
    """
    if timeout is None:
        timeout = conf.WMSCLIENT_DEFAULT_TIMEOUT

    logger.debug("Fetching WMS capabilities from %s", url)
    try:
        response = requests.get(
            url,
            timeout=timeout / 1000,
            proxies=_get_proxies(proxy),
            headers={"User-Agent": conf.WMSCLIENT_USER_AGENT},
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise TransportError(f"Failed to fetch the WMS capabilities: {e}", url=url) from e

    if not response.content:
        raise TransportError("The WMS server returned an empty response.", url=url)

    logger.debug(
        "Received %d bytes (%s) from %s",
        len(response.content),
        response.headers.get("Content-Type"),
        url,
    )
    return response.content


class Client:
    """A client for the capabilities of a WMS server.

    Creating the instance directly fetches and parses the capabilities document.
    When the document is already available, use :meth:`from_bytes` instead.

    :raises TransportError: When the document can't be retrieved.
    :raises ExternalParsingError: When the document can't be parsed.
    """

    def __init__(self, url: str, proxy: dict | str | None = None, timeout: int | None = None):
        self.base_url = url
        self.capabilities_url = build_capabilities_url(url)
        self.timeout = timeout if timeout is not None else conf.WMSCLIENT_DEFAULT_TIMEOUT
        self.proxy = proxy if proxy is not None else conf.WMSCLIENT_PROXIES
        self.document = parse_capabilities(
            fetch_xml(self.capabilities_url, timeout=self.timeout, proxy=self.proxy)
        )

    @classmethod
    def from_bytes(cls, xml: bytes | str, url: str | None = None) -> Client:
        """Parse a capabilities document that was retrieved elsewhere."""
        client = cls.__new__(cls)
        client.base_url = url
        client.capabilities_url = build_capabilities_url(url) if url else None
        client.timeout = None
        client.proxy = None
        client.document = parse_capabilities(xml)
        return client

    def __repr__(self):
        return (
            f"<{self.__class__.__name__}: {self.base_url or '(document)'}"
            f" version={self.document.version}>"
        )

    # Shortcuts to the document

    @property
    def version(self):
        return self.document.version

    @property
    def service(self):
        return self.document.service

    @property
    def layer(self):
        return self.document.layer

    @property
    def operations(self):
        return self.document.operations

    @property
    def exception_formats(self):
        return self.document.exception_formats

    @property
    def vendor_specific_capabilities(self):
        return self.document.vendor_specific_capabilities

    @property
    def xml_text(self) -> str:
        return self.document.xml_text

    @property
    def xml_bytes(self) -> bytes:
        return self.document.xml_bytes

    def validate_xml(self):
        """Check the document against the official DTD or XML Schema of its version.

        :raises SchemaValidationError: When the document is not valid.
        """
        validate_xml(self.xml_bytes, self.document.version)

