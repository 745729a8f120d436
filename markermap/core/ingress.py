"""Thin ingress boundary helpers for the HTTP entrypoints.

Centralises the transport concerns shared by every route so that
``function_app.py`` contains only route bindings and handoff:

- **parse_json_body** - decodes a request body into a JSON object,
  raising ``ContractError`` for anything else.
- **require_fields** - presence check with the route's own error message.
- **UploadedFile** - a multipart file part read into memory.
- **get_store / get_media_store** - collaborator factories that fail with
  ``ServiceNotConfiguredError`` (503) when credentials are missing.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from markermap.core.exceptions import ContractError, ServiceNotConfiguredError, ValidationError

if TYPE_CHECKING:
    from markermap.core.config import MarkerMapConfig
    from markermap.services.media import CloudinaryMediaStore
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger("markermap.core.ingress")

SUPABASE_NOT_CONFIGURED = "Supabase not configured"
CLOUDINARY_NOT_CONFIGURED = "Cloudinary not configured"


# ---------------------------------------------------------------------------
# JSON bodies
# ---------------------------------------------------------------------------


def parse_json_body(raw: bytes | str | dict[str, Any] | None) -> dict[str, Any]:
    """Normalise a request body to a plain dict.

    Args:
        raw: Raw body bytes/text, or an already-decoded dict.

    Returns:
        Parsed JSON object. An empty body yields an empty dict.

    Raises:
        ContractError: If the body is not valid JSON or not an object.
    """
    if isinstance(raw, dict):
        return raw
    if raw is None:
        return {}
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            msg = f"Request body is not valid UTF-8: {exc}"
            raise ContractError(msg, stage="ingress", code="INVALID_JSON") from exc
    if not raw.strip():
        return {}
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, ValueError) as exc:
        msg = f"Request body is not valid JSON: {exc}"
        raise ContractError(msg, stage="ingress", code="INVALID_JSON") from exc
    if not isinstance(parsed, dict):
        msg = f"Request body JSON must be an object, got {type(parsed).__name__}"
        raise ContractError(msg, stage="ingress", code="INVALID_INPUT_TYPE")
    return parsed


def require_fields(payload: dict[str, Any], *names: str, message: str) -> None:
    """Raise ``ValidationError(message)`` unless every field is present and truthy."""
    missing = [name for name in names if not payload.get(name)]
    if missing:
        logger.debug("Rejected request | missing=%s", ",".join(missing))
        raise ValidationError(message, stage="ingress", code="MISSING_FIELDS")


# ---------------------------------------------------------------------------
# Multipart files
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class UploadedFile:
    """One multipart file part, fully read.

    Attributes:
        filename: Client-supplied filename (basename only).
        content: File bytes.
        content_type: Declared MIME type, empty if not sent.
    """

    filename: str
    content: bytes
    content_type: str = ""

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def stem(self) -> str:
        """Filename up to the first dot (``IMG_1.final.jpg`` -> ``IMG_1``)."""
        return self.filename.split(".", 1)[0]

    @classmethod
    def from_storage(cls, storage: Any) -> UploadedFile:
        """Read a werkzeug ``FileStorage`` (``req.files`` entry)."""
        filename = str(getattr(storage, "filename", "") or "")
        return cls(
            filename=filename.replace("\\", "/").rsplit("/", 1)[-1],
            content=storage.read(),
            content_type=str(getattr(storage, "content_type", "") or ""),
        )


# ---------------------------------------------------------------------------
# Collaborator factories
# ---------------------------------------------------------------------------


def get_store(config: MarkerMapConfig, *, admin: bool = False) -> MarkerMapStore:
    """Create a persistence store from *config*.

    Args:
        config: Loaded configuration.
        admin: Use the service-role key (social routes) instead of the
            anon key.

    Raises:
        ServiceNotConfiguredError: If the Supabase URL or key is missing.
    """
    from markermap.services.store import create_store

    if not config.supabase_configured:
        raise ServiceNotConfiguredError(SUPABASE_NOT_CONFIGURED)
    key = config.supabase_service_key if admin else config.supabase_anon_key
    return create_store(config.supabase_url, key)


def get_optional_store(config: MarkerMapConfig) -> MarkerMapStore | None:
    """Like ``get_store`` but returns ``None`` when Supabase is not configured."""
    if not config.supabase_configured:
        return None
    return get_store(config)


def get_media_store(config: MarkerMapConfig) -> CloudinaryMediaStore:
    """Create the media store from *config*.

    Raises:
        ServiceNotConfiguredError: If any Cloudinary credential is missing.
    """
    from markermap.services.media import CloudinaryMediaStore

    if not config.cloudinary_configured:
        raise ServiceNotConfiguredError(CLOUDINARY_NOT_CONFIGURED)
    return CloudinaryMediaStore(
        cloud_name=config.cloudinary_cloud_name,
        api_key=config.cloudinary_api_key,
        api_secret=config.cloudinary_api_secret,
        upload_preset=config.cloudinary_upload_preset,
        folder=config.cloudinary_folder,
    )
