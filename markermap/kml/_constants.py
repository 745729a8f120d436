"""Shared constants for KML parsing."""

from __future__ import annotations

# KML 2.2 namespace (documents without it are accepted too)
KML_NAMESPACE = "http://www.opengis.net/kml/2.2"

# KML colors are aabbggrr hex strings
KML_COLOR_LENGTH = 8

HEX_DIGITS = frozenset("0123456789abcdefABCDEF")
