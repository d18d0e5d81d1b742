"""Exceptions for reading WMS capabilities.

Fatal errors abort the whole fetch-and-parse cycle, and keep the original
exception attached as ``__cause__``. Malformed optional data (such as a single
unparsable ``<BoundingBox>``) is not reported through these exceptions.

See:
https://portal.ogc.org/files/?artifact_id=14416 (WMS 1.3.0, section 7.2)
"""

from __future__ import annotations


class WMSClientError(Exception):
    """Base class for all errors raised by this package."""


class TransportError(WMSClientError):
    """The capabilities document could not be retrieved from the server."""

    def __init__(self, message, url=None):
        super().__init__(message)
        self.url = url


class ExternalParsingError(WMSClientError, ValueError):
    """Raise a ValueError for a parsing problem of the server data.
    This helps to distinguish between internal bugs
    (e.g. unpacking values) and malformed external input.
    """


class MalformedDocumentError(ExternalParsingError):
    """The response body is not well-formed XML."""


class ServiceExceptionReported(ExternalParsingError):
    """The server returned a ``<ServiceExceptionReport>`` instead of its capabilities."""

    def __init__(self, text, code=None):
        super().__init__(
            f"Server reported an exception: {text}" if text else "Server reported an exception"
        )
        self.text = text
        self.code = code


class VersionError(ExternalParsingError):
    """Base class for version negotiation problems."""


class MissingVersionError(VersionError):
    """The root element has no ``version`` attribute."""

    def __init__(self, text=None):
        super().__init__(
            text or "No service version number was found in the capabilities document."
        )


class UnsupportedVersionError(VersionError):
    """The root element advertises a version this package can't read."""

    def __init__(self, version: str):
        super().__init__(f"WMS version '{version}' is not supported.")
        self.version = version


class MissingElementError(ExternalParsingError):
    """A mandatory element of the capabilities document is missing."""

    element = None
    text_template = "Capabilities document misses the required <{element}> element."

    def __init__(self, text=None, element=None):
        self.element = element or self.element
        super().__init__(text or self.text_template.format(element=self.element))


class MissingServiceSectionError(MissingElementError):
    element = "Service"


class MissingCapabilitySectionError(MissingElementError):
    element = "Capability"


class MissingRequestSectionError(MissingElementError):
    element = "Request"


class MissingLayerError(MissingElementError):
    element = "Layer"


class MissingOnlineResourceError(MissingElementError):
    """An HTTP binding of a request lacks its ``<OnlineResource xlink:href="...">``."""

    element = "HTTP"
    text_template = "Online resource not set for the <{element}> request binding."


class SchemaValidationError(WMSClientError):
    """The capabilities document doesn't validate against the OGC DTD/XSD."""

    def __init__(self, messages: list[str]):
        self.messages = messages
        super().__init__(
            "Could not validate the WMS capabilities document: " + "\n".join(messages)
        )
