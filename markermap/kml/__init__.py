"""KML import parser.

Converts a KML document, in the dialect exported by the Map Marker app,
into MarkerMap folders and markers.

The parsing pipeline is split into focused stages:
- **_validation**: hardened XML load, ``<kml>``/``<Document>`` checks,
  namespace-agnostic element lookups
- **_styles**: ``aabbggrr`` -> ``#rrggbb``, scoped style tables
- **_normalization**: coordinates, description cleanup, timestamps
- **_extended_data**: ExtendedData pairs and the vendor JSON blobs
- **_tree**: depth-first folder/placemark walk
- **reconcile**: fresh id space for persisted re-imports

Error policy:
- Structural problems (not XML, not KML, no Document) raise
  ``KmlParseError``; there is no partial result.
- Problems inside a placemark (bad coordinates, timestamp, color or
  vendor JSON) skip or default that piece and parsing continues.

Only raw ``.kml`` text is accepted; KMZ archives are not unpacked.
"""

from __future__ import annotations

from markermap.kml._constants import KML_NAMESPACE
from markermap.kml._extended_data import (
    extract_extended_data,
    parse_custom_fields,
    parse_image_filenames,
)
from markermap.kml._normalization import (
    Coordinates,
    clean_description,
    parse_coordinates,
    parse_when,
)
from markermap.kml._styles import (
    StyleTable,
    color_from_style_url,
    inline_color,
    parse_kml_color,
)
from markermap.kml._tree import ParsedKml, parse_kml, parse_placemark
from markermap.kml._validation import KmlParseError, load_document
from markermap.kml.reconcile import ReconciledImport, reconcile_ids, resolve_image_urls

__all__ = [
    "KML_NAMESPACE",
    "Coordinates",
    "KmlParseError",
    "ParsedKml",
    "ReconciledImport",
    "StyleTable",
    "clean_description",
    "color_from_style_url",
    "extract_extended_data",
    "inline_color",
    "load_document",
    "parse_coordinates",
    "parse_custom_fields",
    "parse_image_filenames",
    "parse_kml",
    "parse_kml_color",
    "parse_placemark",
    "parse_when",
    "reconcile_ids",
    "resolve_image_urls",
]
