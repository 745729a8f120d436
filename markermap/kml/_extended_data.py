"""ExtendedData extraction, including the Map Marker vendor JSON blobs.

Exports from the Map Marker app embed two JSON arrays in
``ExtendedData/Data`` values:

- ``com_exlyo_mapmarker_customfields``: user-defined fields, each
  ``{"base_params": {"name": ...}, "value": {"selected_value": ...}}``
- ``com_exlyo_mapmarker_images_with_ext``: attached photos, each
  ``{"file_rel_path": "images/IMG_0001.jpg", ...}``

The blobs are validated entry by entry through pydantic models that ignore
unknown keys. A malformed blob (or entry) is logged and skipped; it never
fails the placemark.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict
from pydantic import ValidationError as PydanticValidationError

from markermap.core.constants import VENDOR_CUSTOM_FIELDS_KEY, VENDOR_IMAGES_KEY
from markermap.kml._validation import child_text, children

if TYPE_CHECKING:
    from lxml.etree import _Element

logger = logging.getLogger("markermap.kml")


class _VendorModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class VendorFieldParams(_VendorModel):
    name: str | None = None


class VendorFieldValue(_VendorModel):
    selected_value: Any = None


class VendorCustomField(_VendorModel):
    """One entry of the vendor custom-fields array."""

    base_params: VendorFieldParams | None = None
    value: VendorFieldValue | None = None


class VendorImage(_VendorModel):
    """One entry of the vendor images array."""

    file_rel_path: str | None = None


# ---------------------------------------------------------------------------
# Raw ExtendedData
# ---------------------------------------------------------------------------


def extract_extended_data(placemark: _Element) -> list[tuple[str, str]]:
    """Return ``(name, value)`` pairs from ``ExtendedData/Data`` in document order.

    Entries without a ``name`` attribute or a non-empty ``<value>`` are skipped.
    """
    pairs: list[tuple[str, str]] = []
    for extended in children(placemark, "ExtendedData"):
        for data in children(extended, "Data"):
            name = data.get("name")
            value = child_text(data, "value")
            if name and value:
                pairs.append((name, value))
    return pairs


# ---------------------------------------------------------------------------
# Custom fields
# ---------------------------------------------------------------------------


def parse_custom_fields(data: list[tuple[str, str]]) -> dict[str, Any]:
    """Build a marker's custom fields from its ExtendedData pairs.

    The vendor custom-fields blob expands into one field per valid entry;
    every other key is stored verbatim.
    """
    fields: dict[str, Any] = {}
    for name, value in data:
        if name == VENDOR_CUSTOM_FIELDS_KEY:
            fields.update(_expand_vendor_fields(value))
        else:
            fields[name] = value
    return fields


def _expand_vendor_fields(blob: str) -> dict[str, Any]:
    entries = _load_json_array(blob, VENDOR_CUSTOM_FIELDS_KEY)
    fields: dict[str, Any] = {}
    for entry in entries:
        try:
            parsed = VendorCustomField.model_validate(entry)
        except PydanticValidationError:
            logger.warning("Skipping malformed custom field entry: %r", entry)
            continue
        name = parsed.base_params.name if parsed.base_params else None
        selected = parsed.value.selected_value if parsed.value else None
        if name and selected not in (None, ""):
            fields[name] = selected
    return fields


# ---------------------------------------------------------------------------
# Image references
# ---------------------------------------------------------------------------


def parse_image_filenames(data: list[tuple[str, str]]) -> list[str]:
    """Return the basenames of the vendor image references, in order."""
    filenames: list[str] = []
    for name, value in data:
        if name != VENDOR_IMAGES_KEY:
            continue
        for entry in _load_json_array(value, VENDOR_IMAGES_KEY):
            try:
                image = VendorImage.model_validate(entry)
            except PydanticValidationError:
                logger.warning("Skipping malformed image entry: %r", entry)
                continue
            if image.file_rel_path:
                basename = image.file_rel_path.rsplit("/", 1)[-1]
                if basename:
                    filenames.append(basename)
    return filenames


def _load_json_array(blob: str, key: str) -> list[Any]:
    try:
        decoded = json.loads(blob)
    except (json.JSONDecodeError, ValueError) as exc:
        logger.warning("Failed to parse %s JSON: %s", key, exc)
        return []
    if not isinstance(decoded, list):
        logger.warning("Expected a JSON array in %s, got %s", key, type(decoded).__name__)
        return []
    return decoded
