"""Django client for the OGC Web Map Service (WMS) GetCapabilities protocol."""

__version__ = "1.0"
