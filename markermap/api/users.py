"""``/api/users/*``: profiles, search and backfill."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from markermap.api.responses import ApiResponse
from markermap.core.exceptions import NotFoundError, ValidationError
from markermap.core.ingress import require_fields
from markermap.models.payloads import UserProfileBody, validate_payload
from markermap.models.social import Friendship, UserProfile

if TYPE_CHECKING:
    from markermap.services.store import MarkerMapStore

logger = logging.getLogger(__name__)


def get_profile(user_id: str | None, store: MarkerMapStore) -> ApiResponse:
    if not user_id:
        raise ValidationError("User ID is required")
    row = store.get_user(user_id)
    if row is None:
        raise NotFoundError("User not found")
    return ApiResponse({"user": row})


def save_profile(body: dict[str, Any], store: MarkerMapStore) -> ApiResponse:
    """Create or update the caller's ``users`` row."""
    require_fields(body, "userId", "email", message="User ID and email are required")
    validate_payload(body, UserProfileBody, route="users/profile")
    profile = UserProfile(
        user_id=str(body["userId"]),
        email=str(body["email"]),
        display_name=body.get("displayName") or None,
        profile_picture_url=body.get("profilePictureUrl") or None,
    )
    data = store.upsert_users([profile.to_row()])
    logger.info("Profile saved | user=%s", profile.user_id)
    return ApiResponse({"success": True, "user": data})


def search_users(query: str | None, user_id: str | None, store: MarkerMapStore) -> ApiResponse:
    """Up to 10 users matching *query*, minus the caller and anyone already related."""
    if not query or not user_id:
        raise ValidationError("Query and user ID are required")

    users = store.search_users(query, exclude_user_id=user_id)
    related = {
        Friendship.from_row(row).other_party(user_id) for row in store.list_friendships(user_id)
    }
    matches = [user for user in users if str(user.get("user_id")) not in related]
    logger.info("User search | user=%s | query=%s | matches=%d", user_id, query, len(matches))
    return ApiResponse({"users": matches})


def backfill_users(store: MarkerMapStore) -> ApiResponse:
    """Create provisional profiles for every owner of folders or markers."""
    owner_ids = sorted(store.distinct_owner_ids())
    logger.info("User backfill | owners=%d", len(owner_ids))

    rows = [UserProfile.backfill(owner_id).to_row() for owner_id in owner_ids]
    if rows:
        store.upsert_users(rows)

    return ApiResponse(
        {
            "success": True,
            "usersCreated": len(rows),
            "message": (
                f"Created {len(rows)} user profiles. They will be updated with "
                "real email/names when users sign in."
            ),
        }
    )
