"""Folder/Placemark tree walk.

Walks the ``<Document>`` depth first and converts it into flat lists of
``Folder`` and ``Marker`` entities:

- the document itself becomes an implicit root folder holding the
  document's direct placemarks
- every ``<Folder>`` becomes a ``Folder``; top-level KML folders have no
  parent, nested ones point at their enclosing folder
- every ``<Placemark>`` with a parseable ``<Point>`` becomes a ``Marker``

Style tables are derived per scope (see ``StyleTable.merged``) and handed
down the recursion by value.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from markermap.core.constants import (
    DEFAULT_COLOR,
    ROOT_FOLDER_NAME,
    UNTITLED_FOLDER_NAME,
    UNTITLED_MARKER_TITLE,
)
from markermap.kml._extended_data import (
    extract_extended_data,
    parse_custom_fields,
    parse_image_filenames,
)
from markermap.kml._normalization import clean_description, parse_coordinates, parse_when
from markermap.kml._styles import StyleTable, inline_color
from markermap.kml._validation import child, child_text, children, load_document
from markermap.models.entities import Folder, Marker
from markermap.utils.helpers import utc_now
from markermap.utils.ids import generate_id

if TYPE_CHECKING:
    from datetime import datetime

    from lxml.etree import _Element

logger = logging.getLogger("markermap.kml")


@dataclass(frozen=True, slots=True)
class ParsedKml:
    """Result of parsing one KML document.

    Attributes:
        folders: Every folder, the implicit root included. Order is not
            part of the contract.
        markers: Every marker that had usable coordinates.
        document_name: ``<Document><name>``, empty if absent.
    """

    folders: list[Folder] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    document_name: str = ""

    @property
    def root_folder(self) -> Folder:
        """The implicit folder created for the document itself."""
        return self.folders[0]


def parse_kml(content: bytes | str) -> ParsedKml:
    """Parse KML text into folders and markers.

    Raises:
        KmlParseError: If the document is not well-formed KML or has no
            ``<Document>``. Problems inside individual placemarks never
            raise; the placemark or the bad field is skipped instead.
    """
    document = load_document(content)
    now = utc_now()

    styles = StyleTable().merged(document)
    logger.info("Parsed %d document-level style(s)", len(styles))

    document_name = child_text(document, "name") or ""
    root = Folder(
        id=generate_id(),
        name=document_name or ROOT_FOLDER_NAME,
        color=DEFAULT_COLOR,
        created_at=now,
        updated_at=now,
    )
    folders: list[Folder] = [root]
    markers: list[Marker] = []

    for placemark in children(document, "Placemark"):
        marker = parse_placemark(placemark, root.id, styles, now=now)
        if marker is not None:
            markers.append(marker)

    for kml_folder in children(document, "Folder"):
        _walk_folder(kml_folder, None, styles, folders, markers, now=now)

    logger.info(
        "Parsed KML | document=%s | folders=%d | markers=%d",
        document_name or "<unnamed>",
        len(folders),
        len(markers),
    )
    return ParsedKml(folders=folders, markers=markers, document_name=document_name)


def parse_placemark(
    placemark: _Element,
    folder_id: str,
    styles: StyleTable,
    *,
    now: datetime,
) -> Marker | None:
    """Convert one ``<Placemark>`` into a ``Marker`` in *folder_id*.

    Returns ``None`` for placemarks without a ``<Point>`` or with
    unparseable coordinates.

    Color priority: inline ``<Style>``, then ``styleUrl`` against *styles*,
    then ``DEFAULT_COLOR``.
    """
    title = child_text(placemark, "name") or UNTITLED_MARKER_TITLE
    coords = parse_coordinates(child_text(placemark, "Point", "coordinates"))
    if coords is None:
        logger.debug("Skipping placemark without usable point coordinates: %s", title)
        return None

    data = extract_extended_data(placemark)
    color = inline_color(placemark) or styles.resolve(child_text(placemark, "styleUrl"))

    description_elem = child(placemark, "description")
    raw_description = description_elem.text if description_elem is not None else None

    return Marker(
        id=generate_id(),
        folder_id=folder_id,
        title=title,
        description=clean_description(raw_description),
        latitude=coords.lat,
        longitude=coords.lng,
        color=color,
        address="",
        images=parse_image_filenames(data),
        custom_fields=parse_custom_fields(data),
        created_at=parse_when(child_text(placemark, "TimeStamp", "when"), now=now),
        updated_at=now,
    )


def _walk_folder(
    kml_folder: _Element,
    parent_id: str | None,
    inherited: StyleTable,
    folders: list[Folder],
    markers: list[Marker],
    *,
    now: datetime,
) -> None:
    styles = inherited.merged(kml_folder)

    folder = Folder(
        id=generate_id(),
        name=child_text(kml_folder, "name") or UNTITLED_FOLDER_NAME,
        color=styles.resolve(child_text(kml_folder, "styleUrl")),
        parent_id=parent_id,
        created_at=now,
        updated_at=now,
    )
    folders.append(folder)

    for placemark in children(kml_folder, "Placemark"):
        marker = parse_placemark(placemark, folder.id, styles, now=now)
        if marker is not None:
            markers.append(marker)

    for nested in children(kml_folder, "Folder"):
        _walk_folder(nested, folder.id, styles, folders, markers, now=now)
