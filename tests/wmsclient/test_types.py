import pytest

from wmsclient.geometries import SpatialReferencedBoundingBox
from wmsclient.parsers.capabilities import parse_capabilities
from wmsclient.types import (
    CapabilitiesDocument,
    LayerNode,
    OnlineResource,
    OperationDescriptor,
    OperationKind,
    ServiceDescription,
)
from wmsclient.versions import WMSVersion


class TestOperationDescriptor:
    def test_get_url(self):
        descriptor = OperationDescriptor(
            online_resources=(
                OnlineResource(type="Get", url="https://example.com/get"),
                OnlineResource(type="Post", url="https://example.com/post"),
            ),
            formats=("image/png",),
        )
        assert descriptor.get_url() == "https://example.com/get"
        assert descriptor.get_url("POST") == "https://example.com/post"
        assert descriptor.get_url("Put") is None

    def test_empty(self):
        assert OperationDescriptor().get_url() is None


class TestLayerNode:
    def test_tree(self):
        leaf = LayerNode(name="leaf")
        group = LayerNode(title="Group", layers=(LayerNode(name="a", layers=(leaf,)),))
        assert group.is_group
        assert not leaf.is_group
        assert [layer.name for layer in group.iter_layers()] == [None, "a", "leaf"]

    def test_get_bounding_box(self):
        bbox = SpatialReferencedBoundingBox(1, 2, 3, 4, epsg=28992)
        layer = LayerNode(name="a", bounding_boxes=(bbox,))
        assert layer.get_bounding_box(28992) is bbox
        assert layer.get_bounding_box(4326) is None


class TestCapabilitiesDocument:
    def _document(self, **kwargs):
        return CapabilitiesDocument(
            version=WMSVersion.V1_3_0,
            service=ServiceDescription(title="Test"),
            layer=LayerNode(title="Root", layers=(LayerNode(name="a"), LayerNode(name="b"))),
            **kwargs,
        )

    def test_operations(self):
        document = self._document(operations={OperationKind.GetMap: OperationDescriptor()})
        assert document.supports("GetMap")
        assert document.supports(OperationKind.GetMap)
        assert not document.supports(OperationKind.GetFeatureInfo)
        assert document.get_operation("GetMap") == OperationDescriptor()

        with pytest.raises(ValueError):
            document.get_operation("GetTile")

    def test_layers(self):
        document = self._document()
        assert [layer.name for layer in document.named_layers] == ["a", "b"]
        assert document.get_layer("b").name == "b"
        assert document.get_layer("c") is None

    def test_xml_encoding(self):
        source = '<?xml version="1.0" encoding="ISO-8859-1"?><Title>Légende</Title>'
        document = self._document(source=source.encode("latin-1"))
        assert document.xml_text == source
        assert document.xml_bytes == source.encode("latin-1")

    def test_xml_default_encoding(self):
        document = self._document(source="<Title>Légende</Title>".encode())
        assert document.xml_text == "<Title>Légende</Title>"

    def test_xml_byte_order_mark(self):
        """Prove that the UTF-8 byte order mark is not part of the text."""
        document = self._document(source=b"\xef\xbb\xbf" + "<Title>Légende</Title>".encode())
        assert document.xml_text == "<Title>Légende</Title>"

    def test_text_source_declared_encoding(self):
        """Prove that a text document is encoded with its declared encoding."""
        source = (
            '<?xml version="1.0" encoding="ISO-8859-1"?>'
            '<WMT_MS_Capabilities version="1.1.1">'
            "<Service><Title>Café</Title></Service>"
            "<Capability><Request/><Layer><Title>Root</Title></Layer></Capability>"
            "</WMT_MS_Capabilities>"
        )
        document = parse_capabilities(source)
        assert document.xml_text == source
        assert document.xml_bytes == source.encode("latin-1")

        # Parsing the bytes again gives the same text.
        assert parse_capabilities(document.xml_bytes).service.title == "Café"

    def test_text_source_default_encoding(self):
        document = self._document(source="<Title>Légende</Title>")
        assert document.xml_bytes == "<Title>Légende</Title>".encode()

    def test_source_not_compared(self):
        assert self._document(source=b"<a/>") == self._document(source=b"<b/>")
