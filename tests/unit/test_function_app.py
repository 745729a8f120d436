"""Tests for the HTTP wiring layer in ``function_app``.

Route functions are thin; these tests cover the shared plumbing that turns
handler results and errors into JSON responses.
"""

from __future__ import annotations

import io
import json
import logging
from datetime import UTC, datetime
from types import SimpleNamespace

import pytest

import function_app
from markermap.api.responses import ApiResponse
from markermap.core.config import MarkerMapConfig
from markermap.core.exceptions import (
    ContractError,
    NotFoundError,
    ServiceNotConfiguredError,
    ValidationError,
)
from markermap.services.store import StoreError


def _body(response) -> dict[str, object]:  # noqa: ANN001
    return json.loads(response.get_body())


class _Files:
    """Minimal stand-in for the werkzeug ``MultiDict`` behind ``req.files``."""

    def __init__(self, **fields: list[SimpleNamespace]) -> None:
        self._fields = fields

    def get(self, name: str) -> SimpleNamespace | None:
        values = self._fields.get(name) or []
        return values[0] if values else None

    def getlist(self, name: str) -> list[SimpleNamespace]:
        return list(self._fields.get(name) or [])


def _storage(filename: str, content: bytes = b"data") -> SimpleNamespace:
    return SimpleNamespace(filename=filename, content_type="", read=io.BytesIO(content).read)


# ---------------------------------------------------------------------------
# _respond
# ---------------------------------------------------------------------------


class TestRespond:
    def test_success(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test a handler result becoming a JSON response."""
        response = function_app._respond("test", lambda config: ApiResponse({"ok": True}))
        assert response.status_code == 200
        assert response.mimetype == "application/json"
        assert _body(response) == {"ok": True}

    def test_handler_receives_env_config(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that handlers get configuration loaded from the environment."""
        clean_env.setenv("IMPORT_UPLOAD_WORKERS", "7")
        seen: list[MarkerMapConfig] = []

        def handler(config: MarkerMapConfig) -> ApiResponse:
            seen.append(config)
            return ApiResponse()

        function_app._respond("test", handler)
        assert seen[0].import_upload_workers == 7

    @pytest.mark.parametrize(
        ("exc", "status"),
        [
            (ValidationError("User ID is required"), 400),
            (ContractError("Request body is not valid JSON"), 400),
            (NotFoundError("Share not found"), 404),
            (StoreError("relation missing", table="folders"), 500),
            (ServiceNotConfiguredError("Supabase not configured"), 503),
        ],
    )
    def test_domain_errors(
        self, clean_env: pytest.MonkeyPatch, exc: Exception, status: int
    ) -> None:
        """Test that domain errors keep their message and status."""
        def handler(config: MarkerMapConfig) -> ApiResponse:
            raise exc

        response = function_app._respond("test", handler)
        assert response.status_code == status
        assert _body(response) == {"error": str(exc)}

    def test_unexpected_error_is_opaque(
        self, clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that unexpected errors become a generic 500."""
        def handler(config: MarkerMapConfig) -> ApiResponse:
            msg = "secret detail"
            raise RuntimeError(msg)

        with caplog.at_level(logging.ERROR, logger="markermap.function_app"):
            response = function_app._respond("test", handler)

        assert response.status_code == 500
        assert _body(response) == {"error": "Internal server error"}
        assert "route=test" in caplog.text

    def test_client_errors_logged_as_warning(
        self, clean_env: pytest.MonkeyPatch, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test that client errors are logged at warning level."""
        def handler(config: MarkerMapConfig) -> ApiResponse:
            raise ValidationError("bad")

        with caplog.at_level(logging.WARNING, logger="markermap.function_app"):
            function_app._respond("test", handler)

        (record,) = [r for r in caplog.records if r.name == "markermap.function_app"]
        assert record.levelno == logging.WARNING

    def test_invalid_config_is_500(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that invalid configuration surfaces as a 500."""
        clean_env.setenv("IMPORT_UPLOAD_WORKERS", "0")
        response = function_app._respond("test", lambda config: ApiResponse())
        assert response.status_code == 500
        assert "IMPORT_UPLOAD_WORKERS" in _body(response)["error"]

    def test_datetimes_serialised(self, clean_env: pytest.MonkeyPatch) -> None:
        """Test that datetimes in bodies are serialised as ISO strings."""
        body = {"at": datetime(2024, 1, 1, tzinfo=UTC)}
        response = function_app._respond("test", lambda config: ApiResponse(body))
        assert _body(response) == {"at": "2024-01-01T00:00:00+00:00"}


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


class TestRequestHelpers:
    def test_method_not_allowed(self) -> None:
        """Test the 405 response for unsupported methods."""
        err = function_app._method_not_allowed(SimpleNamespace(method="PUT"))
        assert err.status_code == 405
        assert err.message == "Method PUT not allowed"

    def test_json_body(self) -> None:
        """Test JSON body decoding."""
        req = SimpleNamespace(get_body=lambda: b'{"userId": "u1"}')
        assert function_app._json(req) == {"userId": "u1"}

    def test_single_file(self) -> None:
        """Test reading one uploaded file."""
        req = SimpleNamespace(files=_Files(kmlFile=[_storage("trip.kml", b"<kml/>")]))
        upload = function_app._file(req, "kmlFile")
        assert upload is not None
        assert upload.filename == "trip.kml"
        assert upload.content == b"<kml/>"

    def test_missing_file(self) -> None:
        """Test that a missing upload reads as ``None``."""
        assert function_app._file(SimpleNamespace(files=_Files()), "kmlFile") is None

    def test_repeated_files(self) -> None:
        """Test reading a repeated file field."""
        req = SimpleNamespace(files=_Files(imageFiles=[_storage("a.jpg"), _storage("b.jpg")]))
        assert [f.filename for f in function_app._files(req, "imageFiles")] == ["a.jpg", "b.jpg"]
