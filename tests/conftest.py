from __future__ import annotations

import django
import pytest
import requests

from tests.utils import FakeGet, make_response, read_file
from wmsclient.parsers.capabilities import parse_capabilities
from wmsclient.types import CapabilitiesDocument
from wmsclient.validation import compile_schema


def pytest_configure():
    print(f"Running with Django {django.__version__}")


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Make sure no test accidentally performs a real HTTP request."""

    def _blocked(url, **kwargs):
        raise AssertionError(f"Test attempted to fetch {url}")

    monkeypatch.setattr(requests, "get", _blocked)


@pytest.fixture()
def fake_get(monkeypatch):
    """Let ``requests.get()`` return a response of the test."""

    def _install(content: bytes = b"", status_code=200, error=None) -> FakeGet:
        fake = FakeGet(make_response(content, status_code=status_code), error=error)
        monkeypatch.setattr(requests, "get", fake)
        return fake

    return _install


@pytest.fixture(autouse=True)
def clear_schema_cache():
    yield
    compile_schema.cache_clear()


@pytest.fixture(scope="session")
def wms111_xml() -> bytes:
    return read_file("wms_1_1_1.xml")


@pytest.fixture(scope="session")
def wms130_xml() -> bytes:
    return read_file("wms_1_3_0.xml")


@pytest.fixture(scope="session")
def wms100_xml() -> bytes:
    return read_file("wms_1_0_0.xml")


@pytest.fixture(scope="session")
def wms111(wms111_xml) -> CapabilitiesDocument:
    return parse_capabilities(wms111_xml)


@pytest.fixture(scope="session")
def wms130(wms130_xml) -> CapabilitiesDocument:
    return parse_capabilities(wms130_xml)


@pytest.fixture(scope="session")
def wms100(wms100_xml) -> CapabilitiesDocument:
    return parse_capabilities(wms100_xml)
