import pytest
from django.core.exceptions import ImproperlyConfigured

from tests.utils import FILES_ROOT, SIMPLE_DTD, SIMPLE_XSD
from wmsclient.client import Client
from wmsclient.exceptions import MalformedDocumentError, SchemaValidationError
from wmsclient.parsers.xml import xmlns
from wmsclient.validation import validate_xml
from wmsclient.versions import WMSVersion

VALID_111 = (
    '<?xml version="1.0" encoding="UTF-8"?>\n'
    "<!DOCTYPE WMT_MS_Capabilities SYSTEM"
    ' "http://schemas.opengis.net/wms/1.1.1/WMS_MS_Capabilities.dtd">\n'
    '<WMT_MS_Capabilities version="1.1.1">'
    "<Service><Name>OGC:WMS</Name><Title>Test</Title></Service>"
    "<Capability><Request><GetMap><Format>image/png</Format></GetMap></Request>"
    "<Layer><Title>Root</Title></Layer></Capability>"
    "</WMT_MS_Capabilities>"
).encode()

VALID_130 = (
    f'<WMS_Capabilities version="1.3.0" xmlns="{xmlns.wms}">'
    "<Service><Name>WMS</Name><Title>Test</Title></Service>"
    "<Capability><Request/><Layer><Name>depth</Name><Title>Depth</Title></Layer></Capability>"
    "</WMS_Capabilities>"
).encode()


@pytest.fixture()
def local_schemas(settings):
    """Use the reduced schemas of the test suite."""
    settings.WMSCLIENT_SCHEMA_LOCATIONS = {
        "1.1.1": SIMPLE_DTD,
        "1.3.0": SIMPLE_XSD,
    }


@pytest.mark.usefixtures("local_schemas")
class TestValidateXml:
    def test_dtd_valid(self):
        validate_xml(VALID_111, WMSVersion.V1_1_1)

    def test_dtd_invalid(self):
        xml = VALID_111.replace(b"<Layer><Title>Root</Title></Layer>", b"<Layer/>")
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_xml(xml, WMSVersion.V1_1_1)

        assert exc_info.value.messages
        assert "Layer" in str(exc_info.value)

    def test_xsd_valid(self):
        validate_xml(VALID_130, WMSVersion.V1_3_0)
        validate_xml(VALID_130.decode(), WMSVersion.V1_3_0)  # str works too

    def test_xsd_invalid(self):
        xml = VALID_130.replace(b"<Name>WMS</Name>", b"")
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_xml(xml, WMSVersion.V1_3_0)

        assert len(exc_info.value.messages) == 1
        assert "Title" in exc_info.value.messages[0]

    def test_malformed(self):
        with pytest.raises(MalformedDocumentError):
            validate_xml(b"<WMS_Capabilities", WMSVersion.V1_3_0)

    def test_no_schema(self):
        """Prove that an unconfigured version is reported."""
        with pytest.raises(ImproperlyConfigured):
            validate_xml(VALID_111, WMSVersion.V1_0_0)

    def test_client(self):
        client = Client.from_bytes(VALID_130)
        client.validate_xml()

        client = Client.from_bytes(FILES_ROOT.joinpath("wms_1_3_0.xml").read_bytes())
        with pytest.raises(SchemaValidationError):
            client.validate_xml()  # has more elements than the reduced schema allows.


def test_remote_schema(settings, fake_get):
    """Prove that remote schemas are downloaded once."""
    settings.WMSCLIENT_SCHEMA_LOCATIONS = {"1.3.0": "http://schemas.example.org/wms.xsd"}
    fake = fake_get(FILES_ROOT.joinpath("schemas/simple_1_3_0.xsd").read_bytes())

    validate_xml(VALID_130, WMSVersion.V1_3_0)
    validate_xml(VALID_130, WMSVersion.V1_3_0)

    assert len(fake.calls) == 1
    assert fake.calls[0][0] == "http://schemas.example.org/wms.xsd"
