"""Validation of capabilities documents against the official OGC schemas.

WMS 1.0 - 1.1.1 publish a DTD, WMS 1.3.0 publishes an XML Schema.
The locations are configured in ``WMSCLIENT_SCHEMA_LOCATIONS``.
Remote schemas (including the ones they import) are downloaded with python-requests,
and the compiled schemas are kept in memory for the next validation.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from io import BytesIO
from pathlib import Path

import requests
from django.core.exceptions import ImproperlyConfigured
from lxml import etree

from wmsclient import conf
from wmsclient.exceptions import MalformedDocumentError, SchemaValidationError, TransportError
from wmsclient.versions import WMSVersion

logger = logging.getLogger(__name__)

__all__ = (
    "validate_xml",
    "compile_schema",
)


def _is_url(location: str) -> bool:
    return location.startswith(("http://", "https://"))


def read_schema(location: str) -> bytes:
    """Read a schema file, either from a URL or the local filesystem."""
    if not _is_url(location):
        return Path(location).read_bytes()

    logger.debug("Downloading schema %s", location)
    try:
        response = requests.get(
            location,
            timeout=conf.WMSCLIENT_DEFAULT_TIMEOUT / 1000,
            proxies=conf.WMSCLIENT_PROXIES,
            headers={"User-Agent": conf.WMSCLIENT_USER_AGENT},
        )
        response.raise_for_status()
    except requests.RequestException as e:
        raise TransportError(f"Failed to download schema: {e}", url=location) from e
    return response.content


class SchemaResolver(etree.Resolver):
    """Let lxml download the imported schemas (such as ``xlinks.xsd``) through python-requests.
    Local paths are left to lxml itself.
    """

    def resolve(self, system_url, public_id, context):
        if system_url and _is_url(system_url):
            return self.resolve_string(read_schema(system_url), context, base_url=system_url)
        return None


@lru_cache(maxsize=10)
def compile_schema(location: str, is_dtd: bool) -> etree.DTD | etree.XMLSchema:
    """Compile the DTD or XML Schema at the given location."""
    data = read_schema(location)
    try:
        if is_dtd:
            return etree.DTD(BytesIO(data))

        parser = etree.XMLParser()
        parser.resolvers.add(SchemaResolver())
        return etree.XMLSchema(etree.fromstring(data, parser, base_url=location))
    except (etree.DTDParseError, etree.XMLSchemaParseError, etree.XMLSyntaxError) as e:
        raise ImproperlyConfigured(f"Unable to read the schema at {location}: {e}") from e


def get_schema(version: WMSVersion) -> etree.DTD | etree.XMLSchema:
    """Provide the compiled schema for a WMS version."""
    try:
        location = conf.WMSCLIENT_SCHEMA_LOCATIONS[str(version)]
    except KeyError:
        raise ImproperlyConfigured(
            f"WMSCLIENT_SCHEMA_LOCATIONS has no schema for WMS {version}"
        ) from None

    return compile_schema(str(location), is_dtd=version != WMSVersion.V1_3_0)


def validate_xml(xml: bytes | str, version: WMSVersion):
    """Validate the capabilities document against the schema of its version.

    :raises MalformedDocumentError: When the document can't be parsed.
    :raises SchemaValidationError: When the document doesn't follow the schema.
    """
    schema = get_schema(version)

    if isinstance(xml, str):
        xml = xml.encode("utf-8")

    # The <!DOCTYPE> of the document is not followed, only the configured schema is used.
    parser = etree.XMLParser(resolve_entities=False, no_network=True, load_dtd=False)
    try:
        xml_doc = etree.fromstring(xml, parser)
    except etree.XMLSyntaxError as e:
        raise MalformedDocumentError(f"Could not parse the capabilities document: {e}") from e

    if not schema.validate(xml_doc):
        messages = [f"{err.message} at {err.line}:{err.column}" for err in schema.error_log]
        logger.debug("WMS %s capabilities failed validation: %s", version, messages)
        raise SchemaValidationError(messages)
