from __future__ import annotations

from pathlib import Path

import requests

FILES_ROOT = Path(__file__).parent.joinpath("files")
SIMPLE_DTD = str(FILES_ROOT.joinpath("schemas/simple_1_1_1.dtd"))
SIMPLE_XSD = str(FILES_ROOT.joinpath("schemas/simple_1_3_0.xsd"))


def read_file(name: str) -> bytes:
    """Read one of the test documents."""
    return FILES_ROOT.joinpath(name).read_bytes()


def make_response(content: bytes, status_code=200, url="https://maps.example.com/wms"):
    """Construct a python-requests response, as if it was received from a server."""
    response = requests.Response()
    response.status_code = status_code
    response._content = content
    response.url = url
    response.headers["Content-Type"] = "application/vnd.ogc.wms_xml"
    return response


class FakeGet:
    """Replacement for ``requests.get()`` that records all calls."""

    def __init__(self, response: requests.Response | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls = []

    def __call__(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response
