"""``/api/folders/share``: folder sharing between users."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.constants import SHARE_PERMISSIONS, SHARED_BY_ME, SHARED_WITH_ME
from markermap.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from markermap.core.ingress import require_fields
from markermap.models.payloads import ShareFolderBody, validate_payload
from markermap.models.social import FolderShare, UserProfile

if TYPE_CHECKING:
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)


def list_shares(user_id: str | None, kind: str | None, store: MarkerMapStore) -> ApiResponse:
    """Shares involving *user_id*, enriched with folder and user details.

    Received shares (``shared-with-me`` or no kind) carry ``folder`` and
    ``owner``; granted shares (``shared-by-me``) carry ``sharedWith``.
    Without a kind, received-share enrichment wins when any share exists.
    """
    if not user_id:
        raise ValidationError("User ID is required")

    shares = store.list_shares(user_id, kind)
    logger.info("Fetched shares | user=%s | type=%s | count=%d", user_id, kind, len(shares))
    if not shares:
        return ApiResponse({"shares": []})

    if kind in (SHARED_WITH_ME, None):
        return ApiResponse({"shares": _with_folder_and_owner(shares, store)})
    if kind == SHARED_BY_ME:
        return ApiResponse({"shares": _with_recipient(shares, store)})
    return ApiResponse({"shares": shares})


def share_folder(body: dict[str, Any], store: MarkerMapStore) -> ApiResponse:
    """Share a folder the caller owns; re-sharing updates the permission."""
    require_fields(
        body, "folderId", "userId", "sharedWithId", "permission", message="All fields are required"
    )
    validate_payload(body, ShareFolderBody, route="folders/share")
    folder_id = str(body["folderId"])
    user_id = str(body["userId"])
    shared_with_id = str(body["sharedWithId"])
    permission = str(body["permission"])
    if permission not in SHARE_PERMISSIONS:
        raise ValidationError("Invalid permission")

    if store.get_folder_owner(folder_id) != user_id:
        raise PermissionDeniedError("You do not own this folder")

    existing = store.find_share(folder_id, shared_with_id)
    if existing:
        store.update_share_permission(str(existing["id"]), permission)
        logger.info(
            "Updated share permission | folder=%s | with=%s | permission=%s",
            folder_id,
            shared_with_id,
            permission,
        )
        return ApiResponse({"success": True, "shareId": existing["id"]})

    data = store.insert_share(folder_id, user_id, shared_with_id, permission)
    logger.info("Shared folder | folder=%s | owner=%s | with=%s", folder_id, user_id, shared_with_id)
    return ApiResponse({"success": True, "data": data})


def unshare_folder(share_id: str | None, user_id: str | None, store: MarkerMapStore) -> ApiResponse:
    """Delete a share; either the owner or the recipient may do so."""
    if not share_id or not user_id:
        raise ValidationError("Share ID and User ID are required")

    row = store.get_share(share_id)
    if row is None:
        raise NotFoundError("Share not found")
    if not FolderShare.from_row(row).involves(user_id):
        raise PermissionDeniedError("You do not have permission to delete this share")

    store.delete_share(share_id)
    logger.info("Deleted share | share=%s | by=%s", share_id, user_id)
    return ApiResponse({"success": True})


# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


def _users_by_id(user_ids: set[str], store: MarkerMapStore) -> dict[str, dict[str, Any]]:
    return {str(row["user_id"]): row for row in store.get_users(user_ids)}


def _with_folder_and_owner(
    shares: list[dict[str, Any]], store: MarkerMapStore
) -> list[dict[str, Any]]:
    folder_ids = [str(share["folder_id"]) for share in shares]
    folders = {str(row["id"]): row for row in store.get_folders(folder_ids)}
    owners = _users_by_id(store.share_owner_ids(folder_ids), store)
    return [
        {
            **share,
            "folder": folders.get(str(share["folder_id"])),
            "owner": owners.get(str(share["owner_id"]))
            or UserProfile.placeholder(str(share["owner_id"])).to_row(),
        }
        for share in shares
    ]


def _with_recipient(shares: list[dict[str, Any]], store: MarkerMapStore) -> list[dict[str, Any]]:
    recipients = _users_by_id({str(share["shared_with_id"]) for share in shares}, store)
    return [
        {
            **share,
            "sharedWith": recipients.get(str(share["shared_with_id"]))
            or UserProfile.placeholder(str(share["shared_with_id"])).to_row(),
        }
        for share in shares
    ]
