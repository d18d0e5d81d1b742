"""Quick utility to inspect the capabilities of a WMS server."""

from __future__ import annotations

from xml.etree import ElementTree

import orjson
from django.core.management import BaseCommand, CommandError, CommandParser

from wmsclient.client import Client
from wmsclient.exceptions import WMSClientError
from wmsclient.types import CapabilitiesDocument, LayerNode


class Command(BaseCommand):
    """Show the layers and operations of a WMS server."""

    help = (
        "Fetch the capabilities of a WMS server, and show its layers. This can be done using:"
        "  manage.py wms_capabilities https://example.com/wms"
        " or with a previously downloaded document: manage.py wms_capabilities capabilities.xml"
    )

    def add_arguments(self, parser: CommandParser):
        parser.add_argument(
            "--timeout",
            type=int,
            metavar="MS",
            help="Time to wait for the server in milliseconds, defaults to the settings.",
        )
        parser.add_argument(
            "--format",
            choices=("tree", "json"),
            default="tree",
            help="Show the layers as an indented tree (default), or the whole document as JSON.",
        )
        parser.add_argument(
            "--validate",
            action="store_true",
            help="Also check the document against the official DTD or XML Schema.",
        )
        parser.add_argument(
            "source",
            help="URL of the WMS server, or the path to a capabilities XML file.",
        )

    def handle(self, *args, **options):
        client = self._get_client(options["source"], options["timeout"])

        if options["validate"]:
            try:
                client.validate_xml()
            except WMSClientError as e:
                raise CommandError(str(e)) from e
            self.stderr.write(self.style.SUCCESS("Document is valid"))

        if options["format"] == "json":
            self.stdout.write(self._as_json(client.document))
        else:
            self._write_tree(client.document)

    def _get_client(self, source: str, timeout: int | None) -> Client:
        """Fetch and parse the document, translate any errors."""
        try:
            if "://" in source:
                return Client(source, timeout=timeout)
            else:
                with open(source, "rb") as fh:
                    return Client.from_bytes(fh.read())
        except OSError as e:  # FileNotFoundError
            raise CommandError(str(e)) from e
        except WMSClientError as e:
            raise CommandError(str(e)) from e

    def _write_tree(self, document: CapabilitiesDocument):
        self.stdout.write(f"WMS {document.version}: {document.service.title or '(untitled)'}")
        for kind, operation in document.operations.items():
            self.stdout.write(f"  {kind}: {operation.get_url() or '-'}")

        self.stdout.write("Layers:")
        self._write_layer(document.layer, depth=1)

    def _write_layer(self, layer: LayerNode, depth: int):
        flags = " [queryable]" if layer.queryable else ""
        label = layer.name if layer.name else "(group)"
        self.stdout.write(f"{'  ' * depth}- {label}: {layer.title or ''}{flags}")
        for child in layer.layers:
            self._write_layer(child, depth + 1)

    def _as_json(self, document: CapabilitiesDocument) -> str:
        """Serialize the document, the nested dataclasses are handled by orjson."""
        vendor_specific = document.vendor_specific_capabilities
        data = {
            "version": document.version,
            "service": document.service,
            "operations": dict(document.operations),
            "exception_formats": document.exception_formats,
            "vendor_specific_capabilities": (
                ElementTree.tostring(vendor_specific, encoding="unicode")
                if vendor_specific is not None
                else None
            ),
            "layer": document.layer,
        }
        return orjson.dumps(data, option=orjson.OPT_INDENT_2 | orjson.OPT_NON_STR_KEYS).decode()
