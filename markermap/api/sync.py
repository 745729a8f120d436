"""``/api/sync/folders`` and ``/api/sync/markers``.

Cloud backup of a user's folders and markers. Uploads are upserts keyed on
entity id; entities without an owner are stamped with the request's user.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.exceptions import ServiceNotConfiguredError, ValidationError
from markermap.core.ingress import SUPABASE_NOT_CONFIGURED, require_fields
from markermap.models.entities import Folder, Marker
from markermap.models.payloads import SyncFoldersBody, SyncMarkersBody, validate_payload

if TYPE_CHECKING:
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)

_USER_ID_REQUIRED = "User ID is required"


# ---------------------------------------------------------------------------
# Folders
# ---------------------------------------------------------------------------


def list_folders(user_id: str | None, store: MarkerMapStore) -> ApiResponse:
    if not user_id:
        raise ValidationError(_USER_ID_REQUIRED)
    rows = store.list_folders(user_id)
    return ApiResponse({"folders": [Folder.from_row(row).to_dict() for row in rows]})


def save_folders(body: dict[str, Any], store: MarkerMapStore) -> ApiResponse:
    require_fields(body, "userId", message=_USER_ID_REQUIRED)
    validate_payload(body, SyncFoldersBody, route="sync/folders")
    user_id = str(body["userId"])

    try:
        folders = [Folder.from_dict(item) for item in body["folders"]]
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValidationError(f"Invalid folder payload: {exc}") from exc

    rows = [replace(f, user_id=f.user_id or user_id).to_row() for f in folders]
    saved = store.upsert_folders(rows)
    logger.info("Synced folders | user=%s | count=%d", user_id, len(rows))
    return ApiResponse({"success": True, "data": saved})


def delete_folders(
    user_id: str | None, folder_id: str | None, store: MarkerMapStore
) -> ApiResponse:
    """Delete one folder, or every folder but ``Default`` when no id is given."""
    if not user_id:
        raise ValidationError(_USER_ID_REQUIRED)
    if folder_id:
        store.delete_folder(user_id, folder_id)
        logger.info("Deleted folder | user=%s | folder=%s", user_id, folder_id)
    else:
        store.delete_all_folders(user_id)
        logger.info("Deleted all folders | user=%s", user_id)
    return ApiResponse({"success": True})


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


def list_markers(user_id: str | None, store: MarkerMapStore | None) -> ApiResponse:
    """A deployment without Supabase has no backup and answers an empty list."""
    if store is None:
        return ApiResponse({"markers": []})
    if not user_id:
        raise ValidationError(_USER_ID_REQUIRED)
    rows = store.list_markers(user_id)
    return ApiResponse({"markers": [Marker.from_row(row).to_dict() for row in rows]})


def save_markers(body: dict[str, Any], store: MarkerMapStore | None) -> ApiResponse:
    if store is None:
        raise ServiceNotConfiguredError(SUPABASE_NOT_CONFIGURED)
    require_fields(body, "userId", message=_USER_ID_REQUIRED)
    validate_payload(body, SyncMarkersBody, route="sync/markers")
    user_id = str(body["userId"])

    try:
        markers = [Marker.from_dict(item) for item in body["markers"]]
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValidationError(f"Invalid marker payload: {exc}") from exc

    rows = [replace(m, user_id=m.user_id or user_id).to_row() for m in markers]
    saved = store.upsert_markers(rows)
    logger.info("Synced markers | user=%s | count=%d", user_id, len(rows))
    return ApiResponse({"success": True, "data": saved})


def delete_markers(user_id: str | None, store: MarkerMapStore) -> ApiResponse:
    if not user_id:
        raise ValidationError(_USER_ID_REQUIRED)
    store.delete_all_markers(user_id)
    logger.info("Deleted all markers | user=%s", user_id)
    return ApiResponse({"success": True})
