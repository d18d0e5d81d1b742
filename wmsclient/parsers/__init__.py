"""Parsers for the XML documents that a WMS server returns."""
