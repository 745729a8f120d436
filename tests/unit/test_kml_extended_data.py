"""Tests for ExtendedData extraction and the vendor JSON blobs."""

from __future__ import annotations

import json

from lxml import etree

from markermap.core.constants import VENDOR_CUSTOM_FIELDS_KEY, VENDOR_IMAGES_KEY
from markermap.kml import extract_extended_data, parse_custom_fields, parse_image_filenames


def _custom_fields_blob(*entries: object) -> str:
    return json.dumps(list(entries))


def _field(name: str, value: object) -> dict[str, object]:
    return {"base_params": {"name": name}, "value": {"selected_value": value}}


class TestExtractExtendedData:
    def test_pairs_in_document_order(self) -> None:
        """Test extraction of named pairs in document order."""
        placemark = etree.fromstring(
            '<Placemark xmlns="http://www.opengis.net/kml/2.2"><ExtendedData>'
            '<Data name="b"><value> 2 </value></Data>'
            '<Data name="a"><value>1</value></Data>'
            '<Data name="empty"><value>  </value></Data>'
            "<Data><value>nameless</value></Data>"
            "</ExtendedData></Placemark>"
        )
        assert extract_extended_data(placemark) == [("b", "2"), ("a", "1")]

    def test_no_extended_data(self) -> None:
        """Test a placemark without ExtendedData."""
        assert extract_extended_data(etree.fromstring("<Placemark/>")) == []


class TestParseCustomFields:
    def test_vendor_blob_expanded(self) -> None:
        """Test expansion of the vendor custom-fields blob."""
        blob = _custom_fields_blob(_field("Rating", "5"), _field("Visited", True))
        fields = parse_custom_fields([(VENDOR_CUSTOM_FIELDS_KEY, blob)])
        assert fields == {"Rating": "5", "Visited": True}

    def test_empty_selected_value_skipped(self) -> None:
        """Test that empty selected values are skipped."""
        blob = _custom_fields_blob(_field("Blank", ""), _field("Null", None), _field("Zero", 0))
        assert parse_custom_fields([(VENDOR_CUSTOM_FIELDS_KEY, blob)]) == {"Zero": 0}

    def test_entry_without_name_skipped(self) -> None:
        """Test that entries without a name are skipped."""
        blob = _custom_fields_blob({"value": {"selected_value": "x"}}, _field("Kept", "y"))
        assert parse_custom_fields([(VENDOR_CUSTOM_FIELDS_KEY, blob)]) == {"Kept": "y"}

    def test_malformed_entry_skipped(self) -> None:
        """Test that malformed entries are skipped."""
        blob = _custom_fields_blob(42, "text", _field("Kept", "y"))
        assert parse_custom_fields([(VENDOR_CUSTOM_FIELDS_KEY, blob)]) == {"Kept": "y"}

    def test_malformed_json_yields_nothing(self) -> None:
        """Test that malformed JSON yields no fields."""
        assert parse_custom_fields([(VENDOR_CUSTOM_FIELDS_KEY, "[{not json")]) == {}

    def test_non_array_json_yields_nothing(self) -> None:
        """Test that a non-array blob yields no fields."""
        assert parse_custom_fields([(VENDOR_CUSTOM_FIELDS_KEY, '{"a": 1}')]) == {}

    def test_other_keys_stored_verbatim(self) -> None:
        """Test that other keys are stored verbatim."""
        images_blob = '[{"file_rel_path": "a.jpg"}]'
        fields = parse_custom_fields([("phone", "555"), (VENDOR_IMAGES_KEY, images_blob)])
        assert fields == {"phone": "555", VENDOR_IMAGES_KEY: images_blob}


class TestParseImageFilenames:
    def test_basenames_in_order(self) -> None:
        """Test extraction of image basenames in order."""
        blob = json.dumps(
            [{"file_rel_path": "images/IMG_1.jpg"}, {"file_rel_path": "IMG_2.png"}]
        )
        assert parse_image_filenames([(VENDOR_IMAGES_KEY, blob)]) == ["IMG_1.jpg", "IMG_2.png"]

    def test_entries_without_path_skipped(self) -> None:
        """Test that entries without a usable path are skipped."""
        blob = json.dumps([{"caption": "x"}, {"file_rel_path": ""}, {"file_rel_path": "dir/"}])
        assert parse_image_filenames([(VENDOR_IMAGES_KEY, blob)]) == []

    def test_malformed_json(self) -> None:
        """Test that malformed JSON yields no filenames."""
        assert parse_image_filenames([(VENDOR_IMAGES_KEY, "not json")]) == []

    def test_other_keys_ignored(self) -> None:
        """Test that other keys are ignored."""
        assert parse_image_filenames([("photo", "IMG_1.jpg")]) == []
