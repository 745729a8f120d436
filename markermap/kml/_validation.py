"""Document loading and structural validation for KML parsing.

Responsibilities:
- Well-formed XML check with a hardened lxml parser
- ``<kml>`` root and ``<Document>`` presence
- Namespace-agnostic element lookups shared by the other stages
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from lxml import etree

from markermap.core.exceptions import ValidationError

if TYPE_CHECKING:
    from lxml.etree import _Element


# ---------------------------------------------------------------------------
# Exceptions (public API, re-exported from __init__)
# ---------------------------------------------------------------------------


class KmlParseError(ValidationError):
    """Raised when a KML document cannot be parsed. Fatal for the import."""

    default_stage = "parse_kml"
    default_code = "KML_PARSE_FAILED"


# ---------------------------------------------------------------------------
# Element helpers
# ---------------------------------------------------------------------------


def local_name(elem: _Element) -> str:
    """Return the tag of *elem* without its namespace (``""`` for comments/PIs)."""
    tag = elem.tag
    if not isinstance(tag, str):
        return ""
    return tag.rsplit("}", 1)[-1]


def children(elem: _Element, name: str) -> list[_Element]:
    """Direct children of *elem* named *name*, in any namespace."""
    return [c for c in elem if local_name(c) == name]


def child(elem: _Element, name: str) -> _Element | None:
    """First direct child of *elem* named *name*, or ``None``."""
    for c in elem:
        if local_name(c) == name:
            return c
    return None


def child_text(elem: _Element, *path: str) -> str | None:
    """Stripped text at *path* below *elem*, or ``None`` if absent or empty.

    Example: ``child_text(placemark, "Point", "coordinates")``.
    """
    node: _Element | None = elem
    for name in path:
        if node is None:
            return None
        node = child(node, name)
    if node is None or node.text is None:
        return None
    text = node.text.strip()
    return text or None


# ---------------------------------------------------------------------------
# Document loading
# ---------------------------------------------------------------------------


def load_document(content: bytes | str) -> _Element:
    """Parse KML text and return its ``<Document>`` element.

    Raises:
        KmlParseError: If the content is empty, not well-formed XML, not
            rooted at ``<kml>``, or has no ``<Document>``.
    """
    raw = content.encode("utf-8") if isinstance(content, str) else content
    if not raw or not raw.strip():
        msg = "KML file is empty"
        raise KmlParseError(msg)

    parser = etree.XMLParser(
        resolve_entities=False, no_network=True, huge_tree=False, strip_cdata=True
    )
    try:
        root = etree.fromstring(raw, parser=parser)
    except etree.XMLSyntaxError as exc:
        msg = f"Failed to parse KML: {exc}"
        raise KmlParseError(msg) from exc

    if local_name(root) != "kml":
        msg = f"Invalid KML structure: root element is <{local_name(root) or root.tag}>"
        raise KmlParseError(msg)

    document = child(root, "Document")
    if document is None:
        msg = "Invalid KML structure: missing <Document>"
        raise KmlParseError(msg)
    return document
