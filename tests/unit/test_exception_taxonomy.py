"""Tests for the unified exception taxonomy.

Validates:
- MarkerMapError hierarchy and structured attributes
- Category classification
- ``to_error_dict()`` produces stable payload keys
- Retry semantics are consistent with taxonomy class
- HTTP status defaults per category
"""

from __future__ import annotations

from typing import ClassVar

import pytest

from markermap.api.images import PayloadTooLargeError
from markermap.api.imports import ImportPersistError
from markermap.core.config import ConfigValidationError
from markermap.core.exceptions import (
    ContractError,
    MarkerMapError,
    NotFoundError,
    PermanentError,
    PermissionDeniedError,
    ServiceNotConfiguredError,
    TransientError,
    ValidationError,
)
from markermap.kml import KmlParseError
from markermap.services.identity import IdentityError
from markermap.services.media import MediaStoreError
from markermap.services.store import StoreError


class TestMarkerMapErrorBase:
    def test_attributes(self) -> None:
        err = MarkerMapError("boom", stage="s", code="C", retryable=True, status_code=418)
        assert err.message == "boom"
        assert err.stage == "s"
        assert err.code == "C"
        assert err.retryable is True
        assert err.status_code == 418
        assert str(err) == "boom"

    def test_default_status_is_500(self) -> None:
        assert MarkerMapError("x").status_code == 500

    def test_uncategorised_category_follows_retry_flag(self) -> None:
        assert MarkerMapError("x", retryable=True).category == "transient"
        assert MarkerMapError("x").category == "permanent"

    def test_to_error_dict_keys(self) -> None:
        payload = ValidationError("bad", stage="ingress", code="MISSING_FIELDS").to_error_dict()
        assert payload == {
            "category": "validation",
            "code": "MISSING_FIELDS",
            "stage": "ingress",
            "message": "bad",
            "retryable": False,
            "status_code": 400,
        }


class TestCategories:
    CASES: ClassVar[list[tuple[MarkerMapError, str, int, bool]]] = [
        (ValidationError("v"), "validation", 400, False),
        (ContractError("c"), "contract", 400, False),
        (PermissionDeniedError("p"), "permission", 403, False),
        (NotFoundError("n"), "not_found", 404, False),
        (TransientError("t"), "transient", 500, True),
        (PermanentError("p"), "permanent", 500, False),
        (ServiceNotConfiguredError("s"), "configuration", 503, False),
    ]

    @pytest.mark.parametrize(("err", "category", "status", "retryable"), CASES)
    def test_category_status_retry(
        self, err: MarkerMapError, category: str, status: int, retryable: bool
    ) -> None:
        assert err.category == category
        assert err.status_code == status
        assert err.retryable is retryable

    def test_validation_cannot_default_to_retryable(self) -> None:
        assert ValidationError("x").retryable is False
        assert TransientError("x", retryable=False).retryable is False


class TestDomainSubclasses:
    """Every domain exception sits in the taxonomy with its own stage/code."""

    def test_kml_parse_error(self) -> None:
        err = KmlParseError("bad kml")
        assert isinstance(err, ValidationError)
        assert (err.stage, err.code, err.status_code) == ("parse_kml", "KML_PARSE_FAILED", 400)

    def test_store_error(self) -> None:
        err = StoreError("db down", table="markers")
        assert isinstance(err, TransientError)
        assert err.table == "markers"
        assert (err.stage, err.code, err.status_code) == ("store", "STORE_ERROR", 500)
        assert err.retryable is True

    def test_media_store_error(self) -> None:
        err = MediaStoreError("cdn down")
        assert isinstance(err, TransientError)
        assert (err.stage, err.code) == ("media", "MEDIA_ERROR")

    def test_identity_error_carries_provider_status(self) -> None:
        err = IdentityError("invalid_grant", status_code=400)
        assert err.stage == "identity"
        assert err.status_code == 400

    def test_import_persist_error(self) -> None:
        err = ImportPersistError("failed")
        assert err.category == "permanent"
        assert err.code == "IMPORT_PERSIST_FAILED"

    def test_payload_too_large(self) -> None:
        err = PayloadTooLargeError("big")
        assert err.category == "validation"
        assert err.status_code == 413

    def test_config_validation_error(self) -> None:
        assert isinstance(ConfigValidationError("K", 0, "bad"), MarkerMapError)

    def test_all_are_marker_map_errors(self) -> None:
        for cls in (
            KmlParseError,
            StoreError,
            MediaStoreError,
            IdentityError,
            ImportPersistError,
            PayloadTooLargeError,
            ConfigValidationError,
        ):
            assert issubclass(cls, MarkerMapError)
